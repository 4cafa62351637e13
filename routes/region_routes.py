# region_routes.py
from fastapi import APIRouter, Depends, Query
from typing import List
import httpx

from services import region_client
from services.ledger import build_full_address
from models.region import Region, GeocodeResult

router = APIRouter(tags=["Regions"])


# Selectores en cascada: provincia -> ciudad -> distrito -> aldea
@router.get("/provinces", response_model=List[Region])
async def list_provinces(client: httpx.AsyncClient = Depends(region_client.get_http_client)):
    return await region_client.list_provinces(client)


@router.get("/provinces/{province_id}/cities", response_model=List[Region])
async def list_cities(province_id: str, client: httpx.AsyncClient = Depends(region_client.get_http_client)):
    return await region_client.list_children(client, "cities", province_id)


@router.get("/cities/{city_id}/districts", response_model=List[Region])
async def list_districts(city_id: str, client: httpx.AsyncClient = Depends(region_client.get_http_client)):
    return await region_client.list_children(client, "districts", city_id)


@router.get("/districts/{district_id}/villages", response_model=List[Region])
async def list_villages(district_id: str, client: httpx.AsyncClient = Depends(region_client.get_http_client)):
    return await region_client.list_children(client, "villages", district_id)


# Centra el mapa en la aldea seleccionada; sin resultado el mapa no se mueve
@router.get("/geocode", response_model=GeocodeResult)
async def geocode(
    village: str = Query(..., min_length=1),
    district: str = Query(..., min_length=1),
    city: str = Query(..., min_length=1),
    province: str = Query(..., min_length=1),
    client: httpx.AsyncClient = Depends(region_client.get_http_client),
):
    full_address = build_full_address(village, district, city, province)
    coordinates = await region_client.geocode(client, full_address)
    if coordinates is None:
        return GeocodeResult(found=False, full_address=full_address)

    latitude, longitude = coordinates
    return GeocodeResult(found=True, full_address=full_address, latitude=latitude, longitude=longitude)
