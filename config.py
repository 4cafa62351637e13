# config.py - Configuración cargada desde variables de entorno
import os

from dotenv import load_dotenv

# Cargar el archivo .env
load_dotenv()

# -------------------- Firebase -------------------- #
FIREBASE_TYPE = os.getenv("FIREBASE_TYPE", "service_account")
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
FIREBASE_PRIVATE_KEY_ID = os.getenv("FIREBASE_PRIVATE_KEY_ID")
FIREBASE_PRIVATE_KEY = os.getenv("FIREBASE_PRIVATE_KEY", "")
FIREBASE_CLIENT_EMAIL = os.getenv("FIREBASE_CLIENT_EMAIL")
FIREBASE_CLIENT_ID = os.getenv("FIREBASE_CLIENT_ID")
FIREBASE_AUTH_URI = os.getenv("FIREBASE_AUTH_URI", "https://accounts.google.com/o/oauth2/auth")
FIREBASE_TOKEN_URI = os.getenv("FIREBASE_TOKEN_URI", "https://oauth2.googleapis.com/token")
FIREBASE_AUTH_PROVIDER_X509_CERT_URL = os.getenv(
    "FIREBASE_AUTH_PROVIDER_X509_CERT_URL", "https://www.googleapis.com/oauth2/v1/certs"
)
FIREBASE_CLIENT_X509_CERT_URL = os.getenv("FIREBASE_CLIENT_X509_CERT_URL")
FIREBASE_UNIVERSE_DOMAIN = os.getenv("FIREBASE_UNIVERSE_DOMAIN", "googleapis.com")

# API key web, solo se usa para el login por contraseña vía REST
FIREBASE_WEB_API_KEY = os.getenv("FIREBASE_WEB_API_KEY", "")
IDENTITY_TOOLKIT_URL = os.getenv(
    "IDENTITY_TOOLKIT_URL",
    "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword",
)

# -------------------- Sesiones -------------------- #
JWT_SECRET = os.getenv("JWT_SECRET", "supersecretkey")
JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_MINUTES = int(os.getenv("JWT_EXPIRATION_MINUTES", 60 * 24))  # 1 día

LOGIN_MAX_ATTEMPTS = int(os.getenv("LOGIN_MAX_ATTEMPTS", 5))
LOGIN_LOCKOUT_SECONDS = int(os.getenv("LOGIN_LOCKOUT_SECONDS", 300))

# -------------------- Servicios externos -------------------- #
REGION_API_BASE = os.getenv(
    "REGION_API_BASE", "https://www.emsifa.com/api-wilayah-indonesia/api"
).rstrip("/")
GEOCODER_URL = os.getenv("GEOCODER_URL", "https://nominatim.openstreetmap.org/search")
HTTP_USER_AGENT = os.getenv("HTTP_USER_AGENT", "WasteWard/1.0 (contact: support@wasteward.local)")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", 8.0))

CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET")
CLOUDINARY_FOLDER = os.getenv("CLOUDINARY_FOLDER", "wasteward/rewards")

# -------------------- Aplicación -------------------- #
METRICS_CACHE_TTL = int(os.getenv("METRICS_CACHE_TTL", 5))
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",")]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
