from pydantic import BaseModel
from datetime import datetime
from models.enums import UserRole

# Identidad autenticada unida con su perfil de Firestore.
# Se pasa explícitamente a cada operación del ledger.
class SessionContext(BaseModel):
    id: str
    email: str
    username: str
    role: UserRole
    points: int = 0
    created_at: datetime
    session_id: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def profile(self) -> dict:
        data = self.dict()
        data.pop("session_id")
        return data
