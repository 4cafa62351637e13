import logging
from typing import List, Optional

from models.session import SessionContext
from services.errors import PermissionDenied, RewardNotFound
from services.firebase_client import REWARDS

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {"name", "description", "points_required", "category"}


def _require_admin(session: Optional[SessionContext]) -> None:
    if session is None or not session.is_admin:
        raise PermissionDenied("Solo administradores pueden gestionar recompensas")


class RewardCatalog:
    """Catálogo de recompensas. Solo los administradores lo modifican."""

    def __init__(self, db):
        self.db = db

    def list_rewards(self) -> List[dict]:
        rewards = [{**doc.to_dict(), "id": doc.id} for doc in self.db.collection(REWARDS).stream()]
        rewards.sort(key=lambda r: (r.get("points_required", 0), r.get("name", "")))
        return rewards

    def create_reward(self, session: Optional[SessionContext], data: dict) -> dict:
        _require_admin(session)
        reward_ref = self.db.collection(REWARDS).document()
        reward = {**data, "id": reward_ref.id}
        reward_ref.set(reward)
        logger.info("Recompensa %s creada por %s", reward_ref.id, session.id)
        return reward

    def update_reward(self, session: Optional[SessionContext], reward_id: str, changes: dict) -> dict:
        _require_admin(session)
        reward_ref = self.db.collection(REWARDS).document(reward_id)
        if not reward_ref.get().exists:
            raise RewardNotFound()

        # Un null explícito solo puede vaciar image_url
        changes = {
            k: v for k, v in changes.items()
            if k != "id" and (v is not None or k not in REQUIRED_FIELDS)
        }
        if changes:
            reward_ref.update(changes)
        logger.info("Recompensa %s actualizada por %s", reward_id, session.id)
        return {**reward_ref.get().to_dict(), "id": reward_id}

    def delete_reward(self, session: Optional[SessionContext], reward_id: str) -> None:
        _require_admin(session)
        reward_ref = self.db.collection(REWARDS).document(reward_id)
        if not reward_ref.get().exists:
            raise RewardNotFound()

        # Los registros de canje ya guardan nombre y coste, no se tocan
        reward_ref.delete()
        logger.info("Recompensa %s eliminada por %s", reward_id, session.id)
