# reward_routes.py
from fastapi import APIRouter, HTTPException, Depends, Form, File, UploadFile, status
from typing import List, Optional

from services.firebase_client import get_db, USER_REWARDS
from services.ledger import PointsLedger
from services.reward_catalog import RewardCatalog
from services.cloudinary_client import ImageUploadError, upload_reward_image
from models.enums import RewardCategory
from models.reward import Reward, RewardCreate, RewardUpdate, UserReward, RedemptionResult
from models.session import SessionContext
from routes.auth_routes import get_current_session
from routes.report_routes import get_ledger

router = APIRouter(tags=["Rewards"])


def get_catalog(db=Depends(get_db)) -> RewardCatalog:
    return RewardCatalog(db)


# Catálogo completo de recompensas
@router.get("/", response_model=List[Reward])
def list_rewards(catalog: RewardCatalog = Depends(get_catalog)):
    return [Reward(**reward) for reward in catalog.list_rewards()]


# Alta de recompensa (solo administradores), imagen opcional en Cloudinary
@router.post("/", response_model=Reward, status_code=status.HTTP_201_CREATED)
def create_reward(
    name: str = Form(..., min_length=1),
    description: str = Form(..., min_length=1),
    points_required: int = Form(..., ge=0),
    category: RewardCategory = Form(RewardCategory.ITEM),
    image_url: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    session: SessionContext = Depends(get_current_session),
    catalog: RewardCatalog = Depends(get_catalog),
):
    if not session.is_admin:
        raise HTTPException(status_code=403, detail="Solo administradores pueden gestionar recompensas")

    if image is not None and image.filename:
        try:
            image_url = upload_reward_image(image.file, image.filename)
        except ImageUploadError as e:
            raise HTTPException(status_code=400, detail=str(e))

    reward_data = RewardCreate(
        name=name,
        description=description,
        points_required=points_required,
        category=category,
        image_url=image_url,
    )
    reward = catalog.create_reward(session, reward_data.dict())
    return Reward(**reward)


@router.put("/{reward_id}", response_model=Reward)
def update_reward(
    reward_id: str,
    changes: RewardUpdate,
    session: SessionContext = Depends(get_current_session),
    catalog: RewardCatalog = Depends(get_catalog),
):
    reward = catalog.update_reward(session, reward_id, changes.dict(exclude_unset=True))
    return Reward(**reward)


@router.delete("/{reward_id}")
def delete_reward(
    reward_id: str,
    session: SessionContext = Depends(get_current_session),
    catalog: RewardCatalog = Depends(get_catalog),
):
    catalog.delete_reward(session, reward_id)
    return {"message": "Recompensa eliminada correctamente"}


# Canje: comprueba saldo y descuenta puntos en una sola transacción
@router.post("/{reward_id}/redeem", response_model=RedemptionResult)
def redeem_reward(
    reward_id: str,
    session: SessionContext = Depends(get_current_session),
    ledger: PointsLedger = Depends(get_ledger),
):
    if not ledger.redeem_reward(session, reward_id):
        raise HTTPException(status_code=400, detail="No se pudo canjear la recompensa")
    return RedemptionResult(success=True)


# Historial de canjes del usuario autenticado
@router.get("/redemptions/me", response_model=List[UserReward])
def my_redemptions(
    session: SessionContext = Depends(get_current_session),
    db=Depends(get_db),
):
    query = db.collection(USER_REWARDS).where("user_id", "==", session.id)
    redemptions = [UserReward(**{**doc.to_dict(), "id": doc.id}) for doc in query.stream()]
    redemptions.sort(key=lambda r: r.redeemed_at, reverse=True)
    return redemptions
