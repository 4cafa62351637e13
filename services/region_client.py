"""
Consultas de solo lectura a servicios de terceros:
- regiones administrativas (provincia -> ciudad -> distrito -> aldea)
- geocodificación de una dirección de texto con Nominatim

Los fallos se registran y degradan a lista vacía / None.
"""
import logging
from typing import AsyncIterator, List, Optional, Tuple

import httpx

import config

logger = logging.getLogger(__name__)

# Nivel hijo -> recurso de la API de regiones
CHILD_RESOURCES = {
    "cities": "regencies",
    "districts": "districts",
    "villages": "villages",
}


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    headers = {"User-Agent": config.HTTP_USER_AGENT}
    async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS, headers=headers) as client:
        yield client


async def _fetch_regions(client: httpx.AsyncClient, path: str) -> List[dict]:
    url = f"{config.REGION_API_BASE}/{path}.json"
    try:
        r = await client.get(url)
        r.raise_for_status()
        data = r.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error("No se pudieron obtener las regiones %s: %s", path, e)
        return []

    return [{"id": str(item["id"]), "name": item["name"]} for item in data
            if isinstance(item, dict) and "id" in item and "name" in item]


async def list_provinces(client: httpx.AsyncClient) -> List[dict]:
    return await _fetch_regions(client, "provinces")


async def list_children(client: httpx.AsyncClient, level: str, parent_id: str) -> List[dict]:
    resource = CHILD_RESOURCES[level]
    return await _fetch_regions(client, f"{resource}/{parent_id}")


async def geocode(client: httpx.AsyncClient, address: str) -> Optional[Tuple[float, float]]:
    params = {"format": "json", "q": address, "limit": 1}
    try:
        r = await client.get(config.GEOCODER_URL, params=params)
        r.raise_for_status()
        results = r.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Error en la API de geocodificación para %r: %s", address, e)
        return None

    if not results:
        logger.warning("Geocodificación sin resultados para: %s", address)
        return None

    try:
        return float(results[0]["lat"]), float(results[0]["lon"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Respuesta inesperada del geocodificador para: %s", address)
        return None
