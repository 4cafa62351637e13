import logging

import httpx

import config
from services.firebase_client import get_auth

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """Error devuelto por Firebase Auth (credenciales inválidas, email duplicado...)."""


class FirebaseIdentityProvider:
    """
    Adaptador sobre Firebase Authentication.
    - Alta y baja de cuentas con el Admin SDK.
    - Verificación de contraseña con la API REST de Identity Toolkit,
      el Admin SDK no puede comprobar contraseñas.
    """

    def __init__(self, auth_client=None, api_key: str = None):
        self._auth = auth_client
        self.api_key = api_key if api_key is not None else config.FIREBASE_WEB_API_KEY

    @property
    def auth(self):
        if self._auth is None:
            self._auth = get_auth()
        return self._auth

    def create_account(self, email: str, password: str, display_name: str) -> str:
        try:
            firebase_user = self.auth.create_user(
                email=email,
                password=password,
                display_name=display_name,
            )
        except Exception as e:
            raise IdentityError(str(e)) from e
        return firebase_user.uid

    def delete_account(self, uid: str) -> None:
        try:
            self.auth.delete_user(uid)
        except Exception as e:
            raise IdentityError(str(e)) from e

    async def sign_in(self, email: str, password: str) -> str:
        """Devuelve el UID si las credenciales son válidas."""
        if not self.api_key:
            raise IdentityError("FIREBASE_WEB_API_KEY no configurada")

        payload = {"email": email, "password": password, "returnSecureToken": True}
        try:
            async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS) as client:
                r = await client.post(
                    config.IDENTITY_TOOLKIT_URL,
                    params={"key": self.api_key},
                    json=payload,
                )
        except httpx.HTTPError as e:
            raise IdentityError(f"Auth provider no disponible: {e}") from e

        if r.status_code != 200:
            try:
                message = r.json().get("error", {}).get("message", "UNKNOWN")
            except ValueError:
                message = f"HTTP {r.status_code}"
            raise IdentityError(message)

        uid = r.json().get("localId")
        if not uid:
            raise IdentityError("Respuesta sin localId")
        return uid


# Dependencia de FastAPI
def get_identity_provider() -> FirebaseIdentityProvider:
    return FirebaseIdentityProvider()
