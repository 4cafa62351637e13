import logging
from collections import Counter
from typing import Dict

from cachetools import TTLCache
from fastapi import APIRouter, Depends
from pydantic import BaseModel

import config
from services.firebase_client import get_db, REPORTS, USERS, USER_REWARDS
from models.enums import ReportStatus
from models.session import SessionContext
from routes.auth_routes import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Metrics"])

metrics_cache = TTLCache(maxsize=32, ttl=config.METRICS_CACHE_TTL)


# ==============================================================================
# MODELOS DE TRANSFERENCIA DE DATOS (DTOs)
# ==============================================================================


class KPIData(BaseModel):
    total_reportes: int
    reportes_pendientes: int
    tasa_resolucion: float
    total_usuarios: int
    puntos_en_circulacion: int
    total_canjes: int
    puntos_canjeados: int


class DashboardResponse(BaseModel):
    kpis: KPIData
    graficas: Dict[str, Dict[str, int]]


# ==============================================================================
# CAPA DE SERVICIO
# ==============================================================================


class MetricsService:
    @staticmethod
    def calculate(report_docs, user_docs, redemption_docs) -> DashboardResponse:
        status_counts = Counter({status.value: 0 for status in ReportStatus})
        province_counts = Counter()

        for doc in report_docs:
            data = doc.to_dict()
            status_counts[str(data.get("status", ReportStatus.PENDING.value))] += 1
            province = (data.get("location") or {}).get("province") or "Desconocida"
            province_counts[province] += 1

        total_reports = sum(status_counts.values())
        resolved = status_counts[ReportStatus.RESOLVED.value]
        resolution_rate = round(resolved / total_reports * 100, 1) if total_reports else 0.0

        outstanding_points = 0
        total_users = 0
        for doc in user_docs:
            total_users += 1
            outstanding_points += int(doc.to_dict().get("points", 0))

        total_redemptions = 0
        redeemed_points = 0
        for doc in redemption_docs:
            total_redemptions += 1
            redeemed_points += int(doc.to_dict().get("points_redeemed", 0))

        return DashboardResponse(
            kpis=KPIData(
                total_reportes=total_reports,
                reportes_pendientes=status_counts[ReportStatus.PENDING.value],
                tasa_resolucion=resolution_rate,
                total_usuarios=total_users,
                puntos_en_circulacion=outstanding_points,
                total_canjes=total_redemptions,
                puntos_canjeados=redeemed_points,
            ),
            graficas={
                "por_estado": dict(status_counts),
                "por_provincia": dict(province_counts),
            },
        )


# ==============================================================================
# ENDPOINTS
# ==============================================================================


@router.get("/summary", response_model=DashboardResponse)
def get_summary(
    session: SessionContext = Depends(require_admin),
    db=Depends(get_db),
):
    cached = metrics_cache.get("summary")
    if cached is not None:
        return cached

    logger.info("Calculando métricas del panel para %s", session.id)
    response = MetricsService.calculate(
        db.collection(REPORTS).stream(),
        db.collection(USERS).stream(),
        db.collection(USER_REWARDS).stream(),
    )
    metrics_cache["summary"] = response
    return response
