import logging
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt as pyjwt
from fastapi.concurrency import run_in_threadpool

import config
from models.enums import UserRole
from models.session import SessionContext
from services.firebase_client import USERS, SESSIONS
from services.identity_provider import IdentityError

logger = logging.getLogger(__name__)

SessionListener = Callable[[str, Optional[SessionContext]], None]


class SessionEvents:
    """Notificaciones de cambio de sesión: (session_id, contexto o None al cerrar)."""

    def __init__(self):
        self._listeners = []
        self._lock = threading.Lock()

    def subscribe(self, callback: SessionListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def publish(self, session_id: str, context: Optional[SessionContext]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(session_id, context)
            except Exception:
                logger.exception("Listener de sesión falló para %s", session_id)


session_events = SessionEvents()


# -------------------- JWT -------------------- #
def create_jwt(uid: str, session_id: str, expires_at: datetime) -> str:
    payload = {"sub": uid, "sid": session_id, "exp": expires_at}
    return pyjwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_jwt(token: str) -> Optional[dict]:
    try:
        return pyjwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except pyjwt.PyJWTError:
        return None


class SessionManager:
    """
    Une la identidad de Firebase Auth con el perfil de Firestore.
    Registro y login reducen cualquier error del proveedor a un fallo sin causa.
    """

    def __init__(self, db, identity, events: SessionEvents = session_events):
        self.db = db
        self.identity = identity
        self.events = events

    def register(self, username: str, email: str, password: str) -> bool:
        try:
            uid = self.identity.create_account(email, password, username)
        except IdentityError as e:
            logger.warning("Registro fallido para %s: %s", email, e)
            return False

        profile = {
            "id": uid,
            "username": username,
            "email": email,
            "role": UserRole.USER.value,
            "points": 0,
            "created_at": datetime.now(timezone.utc),
        }
        try:
            self.db.collection(USERS).document(uid).set(profile)
        except Exception:
            logger.exception("No se pudo guardar el perfil de %s, eliminando la cuenta", uid)
            try:
                self.identity.delete_account(uid)
            except IdentityError as e:
                logger.error("No se pudo eliminar la cuenta huérfana %s: %s", uid, e)
            return False

        # El registro no inicia sesión: no se emite token
        logger.info("Usuario registrado: %s", uid)
        return True

    async def login(self, email: str, password: str) -> Optional[str]:
        try:
            uid = await self.identity.sign_in(email, password)
        except IdentityError as e:
            logger.warning("Login fallido para %s: %s", email, e)
            return None

        # Firestore es síncrono: fuera del event loop
        return await run_in_threadpool(self._open_session, uid)

    def _open_session(self, uid: str) -> Optional[str]:
        session_id = uuid.uuid4().hex
        context = self._load_context(uid, session_id)
        if context is None:
            # Cuenta sin perfil: no se abre sesión
            return None

        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(minutes=config.JWT_EXPIRATION_MINUTES)
        self.db.collection(SESSIONS).document(session_id).set({
            "user_id": uid,
            "created_at": now,
            "expires_at": expires_at,
        })

        logger.info("Sesión %s abierta para %s", session_id, uid)
        self.events.publish(session_id, context)
        return create_jwt(uid, session_id, expires_at)

    def logout(self, session: SessionContext) -> None:
        self.db.collection(SESSIONS).document(session.session_id).delete()
        logger.info("Sesión %s cerrada para %s", session.session_id, session.id)
        self.events.publish(session.session_id, None)

    def resolve(self, token: str) -> Optional[SessionContext]:
        payload = decode_jwt(token)
        if not payload:
            return None

        uid = payload.get("sub")
        session_id = payload.get("sid")
        if not uid or not session_id:
            return None

        session_doc = self.db.collection(SESSIONS).document(session_id).get()
        if not session_doc.exists or session_doc.to_dict().get("user_id") != uid:
            return None

        return self._load_context(uid, session_id)

    def _load_context(self, uid: str, session_id: str) -> Optional[SessionContext]:
        doc = self.db.collection(USERS).document(uid).get()
        if not doc.exists:
            logger.warning("Sesión %s sin perfil para %s", session_id, uid)
            return None

        profile = doc.to_dict()
        profile["id"] = uid
        profile["session_id"] = session_id
        return SessionContext(**profile)
