# user_routes.py
from collections import Counter
from fastapi import APIRouter, HTTPException, Depends
from typing import List

from services.firebase_client import get_db, USERS, REPORTS
from models.session import SessionContext
from models.user import UserProfile, UserSummary

# Importar dependencia de autenticación desde auth_routes
from routes.auth_routes import get_current_session, require_admin

router = APIRouter(tags=["Users"])


# -------------------- Funciones de autorización -------------------- #
def can_view_user(session: SessionContext, target_user_id: str) -> bool:
    """
    - Admin puede ver a cualquier usuario
    - Usuarios no-admin solo pueden verse a sí mismos
    """
    return session.is_admin or session.id == target_user_id


# -------------------- Obtener perfil propio -------------------- #
@router.get("/me", response_model=UserProfile)
def get_my_profile(session: SessionContext = Depends(get_current_session)):
    return UserProfile(**session.profile())


# -------------------- Listar usuarios (admin) -------------------- #
@router.get("/", response_model=List[UserSummary])
def list_users(
    session: SessionContext = Depends(require_admin),
    db=Depends(get_db),
):
    """
    Tabla de gestión de usuarios del panel de administración,
    con el número de reportes de cada uno.
    """
    reports_by_user = Counter(
        doc.to_dict().get("user_id") for doc in db.collection(REPORTS).stream()
    )

    users = []
    for doc in db.collection(USERS).stream():
        user_data = doc.to_dict()
        user_data["id"] = doc.id
        user_data["reports_count"] = reports_by_user.get(doc.id, 0)
        users.append(UserSummary(**user_data))

    users.sort(key=lambda u: u.created_at, reverse=True)
    return users


# -------------------- Obtener usuario por ID -------------------- #
@router.get("/{user_id}", response_model=UserProfile)
def get_user(
    user_id: str,
    session: SessionContext = Depends(get_current_session),
    db=Depends(get_db),
):
    if not can_view_user(session, user_id):
        raise HTTPException(status_code=403, detail="No tienes permisos para ver este usuario")

    doc = db.collection(USERS).document(user_id).get()
    if not doc.exists:
        raise HTTPException(status_code=404, detail="Usuario no encontrado")

    user_data = doc.to_dict()
    user_data["id"] = doc.id
    return UserProfile(**user_data)
