"""
Suscripciones en vivo a colecciones de Firestore.

Cada notificación de on_snapshot reemplaza la colección completa en caché;
no hay diff incremental. Los callbacks de Firestore llegan en hilos propios,
por eso el reemplazo se hace bajo un lock.
"""
import logging
import threading
from typing import Callable, List, Optional

from services.firebase_client import REPORTS, REWARDS, USER_REWARDS

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[str, List[dict]], None]


class CollectionWatch:
    def __init__(self, name: str, query, on_change: Optional[SnapshotListener] = None):
        self.name = name
        self._query = query
        self._on_change = on_change
        self._items: List[dict] = []
        self._lock = threading.Lock()
        self._watch = None
        self._stopped = False

    def start(self) -> "CollectionWatch":
        if self._watch is None:
            self._watch = self._query.on_snapshot(self._on_snapshot)
        return self

    def stop(self) -> None:
        self._stopped = True
        if self._watch is not None:
            self._watch.unsubscribe()
            self._watch = None

    @property
    def active(self) -> bool:
        return self._watch is not None

    def items(self) -> List[dict]:
        with self._lock:
            return list(self._items)

    def _on_snapshot(self, docs, changes, read_time) -> None:
        # Un listener ya cancelado puede entregar un último snapshot
        if self._stopped:
            return
        items = [{**doc.to_dict(), "id": doc.id} for doc in docs]
        with self._lock:
            self._items = items
        logger.debug("Snapshot %s: %d documentos", self.name, len(items))
        if self._on_change:
            self._on_change(self.name, list(items))


class LiveFeed:
    """
    Tres suscripciones: todos los reportes, todas las recompensas y los canjes
    del usuario autenticado. La última se rehace en cada cambio de identidad.
    """

    def __init__(self, db, on_change: Optional[SnapshotListener] = None):
        self.db = db
        self._on_change = on_change
        self.reports = CollectionWatch(REPORTS, db.collection(REPORTS), on_change)
        self.rewards = CollectionWatch(REWARDS, db.collection(REWARDS), on_change)
        self.user_rewards: Optional[CollectionWatch] = None
        self.identity: Optional[str] = None
        self._lock = threading.Lock()

    def start(self) -> "LiveFeed":
        self.reports.start()
        self.rewards.start()
        return self

    def set_identity(self, uid: Optional[str]) -> None:
        with self._lock:
            if self.user_rewards is not None and uid == self.identity:
                return

            self._drop_user_feed()
            self.identity = uid

            if uid is None:
                logger.info("Feed de canjes cerrado (sin sesión)")
                if self._on_change:
                    self._on_change(USER_REWARDS, [])
                return

            query = self.db.collection(USER_REWARDS).where("user_id", "==", uid)
            self.user_rewards = CollectionWatch(USER_REWARDS, query, self._on_change).start()
            logger.info("Feed de canjes abierto para %s", uid)

    def _drop_user_feed(self) -> None:
        if self.user_rewards is not None:
            self.user_rewards.stop()
            self.user_rewards = None

    def my_redemptions(self) -> List[dict]:
        watch = self.user_rewards
        return watch.items() if watch is not None else []

    def stop(self) -> None:
        with self._lock:
            self._drop_user_feed()
            self.identity = None
        self.reports.stop()
        self.rewards.stop()
