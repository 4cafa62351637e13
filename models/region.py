from pydantic import BaseModel
from typing import Optional

# Región administrativa (provincia, ciudad, distrito o aldea)
class Region(BaseModel):
    id: str
    name: str

class GeocodeResult(BaseModel):
    found: bool
    full_address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
