# main.py - Punto de entrada principal de la aplicación FastAPI
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from services.errors import LedgerError
from routes import auth_routes
from routes import user_routes
from routes import report_routes
from routes import reward_routes
from routes import region_routes
from routes import live_routes
from routes import metrics_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# Configuración de la aplicación FastAPI con metadatos descriptivos
app = FastAPI(
    title="WasteWard API",
    description="Backend de WasteWard: reportes ciudadanos de residuos geolocalizados, revisión por administradores y puntos canjeables por recompensas.",
    version="1.0.0",
)

# Configuración de CORS para comunicación con el frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Errores de dominio del ledger y del catálogo -> respuesta HTTP
@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Registro de todos los routers con sus respectivos prefijos de ruta
app.include_router(auth_routes.router, prefix="/auth", tags=["auth"])
app.include_router(user_routes.router, prefix="/users", tags=["users"])
app.include_router(report_routes.router, prefix="/reports", tags=["reports"])
app.include_router(reward_routes.router, prefix="/rewards", tags=["rewards"])
app.include_router(region_routes.router, prefix="/regions", tags=["regions"])
app.include_router(live_routes.router, prefix="/live", tags=["live"])
app.include_router(metrics_routes.router, prefix="/metrics", tags=["metrics"])


# Endpoint de verificación de salud del servidor
@app.get("/")
async def root():
    return {"message": "WasteWard backend activo"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
