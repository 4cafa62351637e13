from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from models.enums import UserRole

# Perfil guardado en Firestore (users/{uid})
class UserProfile(BaseModel):
    id: str  # Firebase UID
    email: EmailStr
    username: str
    role: UserRole = UserRole.USER
    points: int = 0
    created_at: datetime

# Modelo para crear usuario (registro)
class UserCreate(BaseModel):
    username: str = Field(..., min_length=3)
    email: EmailStr
    password: str = Field(..., min_length=6)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)

# Fila de la tabla de usuarios del panel de administración
class UserSummary(UserProfile):
    reports_count: int = 0

class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Optional[UserProfile] = None
