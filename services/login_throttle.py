import threading

from cachetools import TTLCache

import config


class LoginThrottle:
    """
    Cuenta los logins fallidos por email. Tras max_attempts fallos dentro de la
    ventana, el email queda bloqueado hasta que caduca la entrada.
    """

    def __init__(self, max_attempts: int = config.LOGIN_MAX_ATTEMPTS,
                 window_seconds: int = config.LOGIN_LOCKOUT_SECONDS, maxsize: int = 4096):
        self.max_attempts = max_attempts
        self._failures = TTLCache(maxsize=maxsize, ttl=window_seconds)
        self._lock = threading.Lock()

    @staticmethod
    def _key(email: str) -> str:
        return email.strip().lower()

    def is_blocked(self, email: str) -> bool:
        with self._lock:
            return self._failures.get(self._key(email), 0) >= self.max_attempts

    def record_failure(self, email: str) -> int:
        key = self._key(email)
        with self._lock:
            # Reasignar reinicia el TTL: la ventana cuenta desde el último fallo
            self._failures[key] = self._failures.get(key, 0) + 1
            return self._failures[key]

    def reset(self, email: str) -> None:
        with self._lock:
            self._failures.pop(self._key(email), None)

    def clear(self) -> None:
        with self._lock:
            self._failures.clear()


login_throttle = LoginThrottle()


# Dependencia de FastAPI
def get_login_throttle() -> LoginThrottle:
    return login_throttle
