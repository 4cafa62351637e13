# auth_routes.py
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from fastapi.concurrency import run_in_threadpool

from services.firebase_client import get_db
from services.identity_provider import get_identity_provider
from services.login_throttle import LoginThrottle, get_login_throttle
from services.session_manager import SessionManager
from models.session import SessionContext
from models.user import UserCreate, LoginRequest, LoginResponse, UserProfile

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


# -------------------- Dependencias de sesión -------------------- #
def get_session_manager(
    db=Depends(get_db),
    identity=Depends(get_identity_provider),
) -> SessionManager:
    return SessionManager(db, identity)


def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    manager: SessionManager = Depends(get_session_manager),
) -> SessionContext:
    session = manager.resolve(credentials.credentials)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sesión inválida o expirada",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


def require_admin(session: SessionContext = Depends(get_current_session)) -> SessionContext:
    if not session.is_admin:
        raise HTTPException(status_code=403, detail="Solo administradores")
    return session


def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    manager: SessionManager = Depends(get_session_manager),
) -> Optional[SessionContext]:
    if credentials is None:
        return None
    return manager.resolve(credentials.credentials)


# -------------------- Registro -------------------- #
@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserCreate,
    manager: SessionManager = Depends(get_session_manager),
):
    # El registro no devuelve token: el usuario debe iniciar sesión después
    if not manager.register(user_data.username, user_data.email, user_data.password):
        raise HTTPException(status_code=400, detail="No se pudo completar el registro")
    return {"success": True}


# -------------------- Login -------------------- #
@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    manager: SessionManager = Depends(get_session_manager),
    throttle: LoginThrottle = Depends(get_login_throttle),
):
    if throttle.is_blocked(data.email):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Demasiados intentos fallidos. Intenta más tarde",
        )

    token = await manager.login(data.email, data.password)
    if not token:
        attempts = throttle.record_failure(data.email)
        logger.info("Intento de login fallido #%d para %s", attempts, data.email)
        raise HTTPException(status_code=401, detail="Email o contraseña incorrectos")

    throttle.reset(data.email)
    session = await run_in_threadpool(manager.resolve, token)
    return LoginResponse(
        access_token=token,
        user=UserProfile(**session.profile()) if session else None,
    )


# -------------------- Logout -------------------- #
@router.post("/logout")
def logout(
    session: SessionContext = Depends(get_current_session),
    manager: SessionManager = Depends(get_session_manager),
):
    manager.logout(session)
    return {"success": True}


# -------------------- Obtener usuario actual -------------------- #
@router.get("/me", response_model=UserProfile)
def get_me(session: SessionContext = Depends(get_current_session)):
    """Obtiene el perfil del usuario autenticado"""
    return UserProfile(**session.profile())
