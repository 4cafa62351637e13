from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from models.enums import RewardCategory

class RewardCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    points_required: int = Field(..., ge=0)
    category: RewardCategory = RewardCategory.ITEM
    image_url: Optional[str] = None

class RewardUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    points_required: Optional[int] = Field(None, ge=0)
    category: Optional[RewardCategory] = None
    image_url: Optional[str] = None

class Reward(BaseModel):
    id: str
    name: str
    description: str
    points_required: int
    category: RewardCategory
    image_url: Optional[str] = None

# Registro de canje (inmutable, colección userRewards)
class UserReward(BaseModel):
    id: str
    user_id: str
    reward_id: str
    points_redeemed: int
    reward_item: str
    redeemed_at: datetime

class RedemptionResult(BaseModel):
    success: bool
