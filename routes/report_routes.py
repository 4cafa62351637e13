# report_routes.py
from fastapi import APIRouter, HTTPException, Depends, Query, status
from typing import List, Optional

from services.firebase_client import get_db, REPORTS
from services.ledger import PointsLedger
from models.report import Report, ReportCreate, ReportStatusUpdate
from models.enums import ReportStatus
from models.session import SessionContext
from routes.auth_routes import get_current_session, get_optional_session

# Configuración del router
router = APIRouter(tags=["Reports"])


def get_ledger(db=Depends(get_db)) -> PointsLedger:
    return PointsLedger(db)


def _load_report(db, report_id: str) -> dict:
    doc = db.collection(REPORTS).document(report_id).get()
    if not doc.exists:
        raise HTTPException(status_code=404, detail="Reporte no encontrado")
    return {**doc.to_dict(), "id": doc.id}


# Endpoint para creación de nuevos reportes (+10 puntos al autor)
@router.post("/", response_model=Report, status_code=status.HTTP_201_CREATED)
def create_report(
    report_data: ReportCreate,
    session: SessionContext = Depends(get_current_session),
    ledger: PointsLedger = Depends(get_ledger),
):
    report = ledger.create_report(session, report_data.description, report_data.location.dict())
    return Report(**report)


# Endpoint para listar reportes; el mapa público no requiere sesión
@router.get("/", response_model=List[Report])
def list_reports(
    status: Optional[ReportStatus] = Query(None),
    mine: bool = Query(False, description="Filtrar solo mis reportes"),
    session: Optional[SessionContext] = Depends(get_optional_session),
    db=Depends(get_db),
):
    reports_ref = db.collection(REPORTS)

    if status:
        reports_ref = reports_ref.where("status", "==", status.value)
    if mine:
        if session is None:
            raise HTTPException(status_code=401, detail="Inicia sesión para ver tus reportes")
        reports_ref = reports_ref.where("user_id", "==", session.id)

    reports = [Report(**{**doc.to_dict(), "id": doc.id}) for doc in reports_ref.stream()]

    # Ordenamiento cronológico inverso de reportes
    reports.sort(key=lambda r: r.timestamp, reverse=True)
    return reports


# Endpoint para obtener un reporte específico por su identificador
@router.get("/{report_id}", response_model=Report)
def get_report(report_id: str, db=Depends(get_db)):
    return Report(**_load_report(db, report_id))


# Endpoint para actualización del estado (solo administradores)
@router.patch("/{report_id}/status", response_model=Report)
def update_report_status(
    report_id: str,
    update: ReportStatusUpdate,
    session: SessionContext = Depends(get_current_session),
    ledger: PointsLedger = Depends(get_ledger),
    db=Depends(get_db),
):
    ledger.update_report_status(session, report_id, update.status)
    return Report(**_load_report(db, report_id))


# Endpoint para cancelar un reporte pendiente propio (-10 puntos)
@router.delete("/{report_id}")
def cancel_report(
    report_id: str,
    session: SessionContext = Depends(get_current_session),
    ledger: PointsLedger = Depends(get_ledger),
):
    ledger.cancel_report(session, report_id, session.id)
    return {"message": "Reporte cancelado correctamente"}
