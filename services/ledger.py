"""
Ledger de puntos y flujo de reportes.

Cada operación recibe el SessionContext del llamante de forma explícita y
escribe en Firestore con un único batch o una única transacción, de modo que
el cambio de puntos y la escritura que lo provoca se confirman juntos.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from firebase_admin import firestore

from models.enums import ReportStatus, UserRole
from models.session import SessionContext
from services.errors import InvalidTransition, PermissionDenied, ReportNotFound
from services.firebase_client import USERS, REPORTS, REWARDS, USER_REWARDS

logger = logging.getLogger(__name__)

REPORT_CREATED_POINTS = 10
REPORT_RESOLVED_POINTS = 15
REPORT_CANCELLED_POINTS = 10

# Transiciones de estado permitidas; resolved y rejected son terminales
VALID_TRANSITIONS = {
    ReportStatus.PENDING: {ReportStatus.RESOLVED, ReportStatus.REJECTED},
    ReportStatus.RESOLVED: set(),
    ReportStatus.REJECTED: set(),
}


def build_full_address(village: str, district: str, city: str, province: str) -> str:
    return f"{village}, {district}, {city}, {province}"


def can_transition(current: ReportStatus, new: ReportStatus) -> bool:
    return new in VALID_TRANSITIONS.get(current, set())


class PointsLedger:
    def __init__(self, db):
        self.db = db

    def _user_ref(self, uid: str):
        return self.db.collection(USERS).document(uid)

    # -------------------- Crear reporte (+10) -------------------- #
    def create_report(self, session: Optional[SessionContext], description: str, location: dict) -> Optional[dict]:
        if session is None:
            return None

        location = dict(location)
        if not location.get("full_address"):
            location["full_address"] = build_full_address(
                location["village"], location["district"], location["city"], location["province"]
            )

        report_ref = self.db.collection(REPORTS).document()
        report = {
            "id": report_ref.id,
            "user_id": session.id,
            "description": description,
            "location": location,
            "status": ReportStatus.PENDING.value,
            "timestamp": datetime.now(timezone.utc),
        }

        batch = self.db.batch()
        batch.set(report_ref, report)
        batch.update(self._user_ref(session.id), {"points": firestore.Increment(REPORT_CREATED_POINTS)})
        batch.commit()

        logger.info("Reporte %s creado por %s (+%d)", report_ref.id, session.id, REPORT_CREATED_POINTS)
        return report

    # -------------------- Cambiar estado (admin, +15 al resolver) -------------------- #
    def update_report_status(self, session: Optional[SessionContext], report_id: str, new_status: ReportStatus) -> bool:
        if session is None:
            return False
        if not session.is_admin:
            raise PermissionDenied("Solo administradores pueden cambiar el estado de un reporte")

        new_status = ReportStatus(new_status)
        report_ref = self.db.collection(REPORTS).document(report_id)

        @firestore.transactional
        def _update(transaction):
            report_doc = report_ref.get(transaction=transaction)
            if not report_doc.exists:
                raise ReportNotFound()

            report = report_doc.to_dict()
            current_status = ReportStatus(report.get("status", ReportStatus.PENDING.value))
            if not can_transition(current_status, new_status):
                raise InvalidTransition(
                    f"Transición de estado inválida: {current_status.value} -> {new_status.value}"
                )

            award = 0
            owner_ref = None
            if new_status == ReportStatus.RESOLVED:
                owner_ref = self._user_ref(report.get("user_id"))
                owner_doc = owner_ref.get(transaction=transaction)
                # Los reportes de administradores no suman puntos
                if owner_doc.exists and owner_doc.to_dict().get("role") != UserRole.ADMIN.value:
                    award = REPORT_RESOLVED_POINTS

            transaction.update(report_ref, {
                "status": new_status.value,
                "updated_at": datetime.now(timezone.utc),
            })
            if award:
                transaction.update(owner_ref, {"points": firestore.Increment(award)})
            return award

        award = _update(self.db.transaction())
        logger.info("Reporte %s -> %s por %s (+%d al dueño)", report_id, new_status.value, session.id, award)
        return True

    # -------------------- Cancelar reporte pendiente (-10) -------------------- #
    def cancel_report(self, session: Optional[SessionContext], report_id: str, caller_id: str) -> bool:
        if session is None or session.id != caller_id:
            return False

        report_ref = self.db.collection(REPORTS).document(report_id)
        user_ref = self._user_ref(caller_id)

        @firestore.transactional
        def _cancel(transaction):
            report_doc = report_ref.get(transaction=transaction)
            if not report_doc.exists:
                raise ReportNotFound()

            report = report_doc.to_dict()
            if report.get("user_id") != caller_id:
                raise PermissionDenied("Solo puedes cancelar tus propios reportes")
            if report.get("status") != ReportStatus.PENDING.value:
                raise InvalidTransition("Solo puedes cancelar reportes pendientes")

            transaction.delete(report_ref)
            transaction.update(user_ref, {"points": firestore.Increment(-REPORT_CANCELLED_POINTS)})

        _cancel(self.db.transaction())
        logger.info("Reporte %s cancelado por %s (-%d)", report_id, caller_id, REPORT_CANCELLED_POINTS)
        return True

    # -------------------- Canjear recompensa (-coste) -------------------- #
    def redeem_reward(self, session: Optional[SessionContext], reward_id: str) -> bool:
        if session is None:
            return False

        reward_ref = self.db.collection(REWARDS).document(reward_id)
        user_ref = self._user_ref(session.id)
        redemption_ref = self.db.collection(USER_REWARDS).document()

        @firestore.transactional
        def _redeem(transaction):
            reward_doc = reward_ref.get(transaction=transaction)
            user_doc = user_ref.get(transaction=transaction)
            if not reward_doc.exists or not user_doc.exists:
                return False

            reward = reward_doc.to_dict()
            cost = int(reward.get("points_required", 0))
            if user_doc.to_dict().get("points", 0) < cost:
                return False

            transaction.set(redemption_ref, {
                "id": redemption_ref.id,
                "user_id": session.id,
                "reward_id": reward_id,
                "points_redeemed": cost,
                "reward_item": reward.get("name"),
                "redeemed_at": datetime.now(timezone.utc),
            })
            transaction.update(user_ref, {"points": firestore.Increment(-cost)})
            return True

        redeemed = _redeem(self.db.transaction())
        if redeemed:
            logger.info("Recompensa %s canjeada por %s", reward_id, session.id)
        else:
            logger.info("Canje rechazado: recompensa %s, usuario %s", reward_id, session.id)
        return redeemed

