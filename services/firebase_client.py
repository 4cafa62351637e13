import logging

import firebase_admin
from firebase_admin import credentials, firestore, auth

import config

logger = logging.getLogger(__name__)

# Nombres de las colecciones de Firestore
USERS = "users"
REPORTS = "reports"
REWARDS = "rewards"
USER_REWARDS = "userRewards"
SESSIONS = "sessions"


def _firebase_credentials() -> dict:
    return {
        "type": config.FIREBASE_TYPE,
        "project_id": config.FIREBASE_PROJECT_ID,
        "private_key_id": config.FIREBASE_PRIVATE_KEY_ID,
        "private_key": config.FIREBASE_PRIVATE_KEY.replace("\\n", "\n"),
        "client_email": config.FIREBASE_CLIENT_EMAIL,
        "client_id": config.FIREBASE_CLIENT_ID,
        "auth_uri": config.FIREBASE_AUTH_URI,
        "token_uri": config.FIREBASE_TOKEN_URI,
        "auth_provider_x509_cert_url": config.FIREBASE_AUTH_PROVIDER_X509_CERT_URL,
        "client_x509_cert_url": config.FIREBASE_CLIENT_X509_CERT_URL,
        "universe_domain": config.FIREBASE_UNIVERSE_DOMAIN,
    }


def init_firebase() -> firebase_admin.App:
    """Inicializa Firebase una sola vez, en el primer uso."""
    if firebase_admin._apps:
        return firebase_admin.get_app()

    try:
        cred = credentials.Certificate(_firebase_credentials())
        app = firebase_admin.initialize_app(cred)
        logger.info("Conexión a Firebase exitosa (proyecto %s)", config.FIREBASE_PROJECT_ID)
        return app
    except Exception:
        logger.exception("Error al conectar con Firebase")
        raise


# Cliente de Firestore (dependencia de FastAPI)
def get_db():
    init_firebase()
    return firestore.client()


# Cliente de Firebase Authentication
def get_auth():
    init_firebase()
    return auth
