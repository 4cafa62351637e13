from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from models.enums import ReportStatus

class ReportLocation(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    province: str
    city: str
    district: str
    village: str
    full_address: Optional[str] = None

# Lo que envía el frontend
class ReportCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=2000)
    location: ReportLocation

class ReportStatusUpdate(BaseModel):
    status: ReportStatus

# Modelo guardado en Firestore y devuelto al cliente
class Report(BaseModel):
    id: str
    user_id: str
    description: str
    location: ReportLocation
    status: ReportStatus = ReportStatus.PENDING
    timestamp: datetime
    updated_at: Optional[datetime] = None
