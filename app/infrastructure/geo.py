from typing import Optional

import httpx
from cachetools import TTLCache

from app.domain.models import UserLocality
from shared.core import get_logger

logger = get_logger(__name__)

UNKNOWN_CITY = "未知城市"

class LocalityResolver:
    """
    Resolves the subscriber's city from coordinates through a Nominatim style
    reverse geocoding endpoint. Any failure falls back to the default city.
    """

    def __init__(
        self,
        url: str,
        default_city: str = "北京",
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
        cache_ttl: int = 3600,
    ):
        self.url = url
        self.default_city = default_city
        self.timeout = timeout
        self._client = client
        self._cache = TTLCache(maxsize=256, ttl=cache_ttl)

    def default(self) -> UserLocality:
        return UserLocality(city_name=self.default_city)

    async def resolve(self, latitude: Optional[float] = None, longitude: Optional[float] = None) -> UserLocality:
        if latitude is None or longitude is None:
            return self.default()

        key = (round(latitude, 3), round(longitude, 3))
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            city = await self._reverse(latitude, longitude)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Reverse geocoding failed, using {self.default_city}: {e}")
            return self.default()

        locality = UserLocality(city_name=city)
        self._cache[key] = locality
        return locality

    async def _reverse(self, latitude: float, longitude: float) -> str:
        params = {"format": "json", "lat": latitude, "lon": longitude, "zoom": 10}
        if self._client is not None:
            response = await self._client.get(self.url, params=params, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.url, params=params)
        response.raise_for_status()
        body = response.json()
        address = body.get("address") if isinstance(body, dict) else None
        if not isinstance(address, dict):
            raise ValueError(f"no address in geocoder response: {body!r:.200}")
        return address.get("city") or address.get("town") or address.get("county") or UNKNOWN_CITY
