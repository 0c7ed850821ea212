"""
Geocoding Service - place search and reverse geocoding via Nominatim (OpenStreetMap).

Failures never reach the caller: search degrades to an empty list and
reverse geocoding to None, with the cause logged.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

import httpx
from pydantic import ValidationError

from tripplanner.config.settings import GeocodingSettings, get_settings
from tripplanner.schemas.geocoding import GeocodeResult, ReverseGeocodeResult

logger = logging.getLogger(__name__)

_MAX_CACHE_ENTRIES = 256

_PLACE_KEYS = ("city", "town", "village", "municipality", "county", "state")


def _place_name(item: dict) -> str:
    address = item.get("address") or {}
    for key in _PLACE_KEYS:
        if address.get(key):
            return address[key]
    if item.get("name"):
        return item["name"]
    display_name = item.get("display_name") or ""
    return display_name.split(",")[0].strip()


class GeocodingService(ABC):
    """Place lookup used by the trip wizard to find destinations."""

    @abstractmethod
    async def search(self, query: str, max_results: int) -> List[GeocodeResult]:
        """Find places matching ``query``; an empty list on no match or failure."""

    @abstractmethod
    async def reverse_geocode(self, latitude: float, longitude: float) -> Optional[ReverseGeocodeResult]:
        """Name the place at a coordinate; None on failure."""


class NominatimGeocodingService(GeocodingService):
    """Geocoding against the public Nominatim API with a small in-memory TTL cache."""

    def __init__(
        self,
        settings: Optional[GeocodingSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings().geocoding
        self._client = client
        self._cache: Dict[str, Tuple[float, List[GeocodeResult]]] = {}

    def _get_headers(self) -> dict:
        return {
            "Accept": "application/json",
            "User-Agent": self.settings.user_agent,
        }

    def _cache_get(self, key: str) -> Optional[List[GeocodeResult]]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if time.time() - entry[0] >= self.settings.cache_ttl_seconds:
            del self._cache[key]
            return None
        return entry[1]

    def _cache_put(self, key: str, results: List[GeocodeResult]) -> None:
        now = time.time()
        ttl = self.settings.cache_ttl_seconds
        for stale in [k for k, (stored, _) in self._cache.items() if now - stored >= ttl]:
            del self._cache[stale]
        # oldest first, dicts keep insertion order
        while len(self._cache) >= _MAX_CACHE_ENTRIES:
            del self._cache[next(iter(self._cache))]
        self._cache[key] = (now, results)

    async def _get(self, url: str, params: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, params=params, headers=self._get_headers())
        async with httpx.AsyncClient(
            headers=self._get_headers(),
            timeout=self.settings.timeout_seconds,
        ) as client:
            return await client.get(url, params=params)

    async def search(self, query: str, max_results: Optional[int] = None) -> List[GeocodeResult]:
        """
        Search for places by name.

        Args:
            query: Free-text place name (at least ``min_query_length`` characters)
            max_results: Maximum number of results (defaults to settings)

        Returns:
            Normalized results, possibly empty
        """
        q = (query or "").strip()
        if len(q) < self.settings.min_query_length:
            return []
        limit = max_results or self.settings.max_results

        cache_key = f"{q.lower()}:{limit}"
        cached = self._cache_get(cache_key)
        if cached is not None:
            logger.debug(f"Geocode cache hit for '{q}'")
            return list(cached)

        params = {"q": q, "format": "json", "limit": limit, "addressdetails": 1}
        try:
            response = await self._get(self.settings.search_url, params)
            if response.status_code != 200:
                logger.warning(
                    f"Geocoding search returned {response.status_code} for '{q}'",
                    extra={"status_code": response.status_code},
                )
                return []
            payload = response.json()
        except httpx.TimeoutException:
            logger.warning(f"Timeout geocoding '{q}'")
            return []
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error geocoding '{q}': {e}")
            return []

        results = []
        for item in payload if isinstance(payload, list) else []:
            try:
                results.append(
                    GeocodeResult.model_validate({
                        "name": _place_name(item),
                        "country": (item.get("address") or {}).get("country"),
                        "lat": item.get("lat"),
                        "lon": item.get("lon"),
                    })
                )
            except ValidationError as e:
                logger.debug(f"Skipping unusable geocoding result: {e.error_count()} errors")
            if len(results) >= limit:
                break

        self._cache_put(cache_key, results)
        logger.info(f"Found {len(results)} places for '{q}'")
        return list(results)

    async def reverse_geocode(self, latitude: float, longitude: float) -> Optional[ReverseGeocodeResult]:
        """
        Resolve the region-level place name for a coordinate.

        Prefers city/town/village over street-level names, falling back to
        the first part of the display name.
        """
        if latitude is None or longitude is None:
            return None
        params = {
            "lat": str(latitude),
            "lon": str(longitude),
            "format": "json",
            "addressdetails": 1,
        }
        try:
            response = await self._get(self.settings.reverse_url, params)
            if response.status_code != 200:
                logger.warning(f"Reverse geocoding returned {response.status_code}")
                return None
            data = response.json()
        except httpx.TimeoutException:
            logger.warning(f"Timeout reverse geocoding ({latitude}, {longitude})")
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error reverse geocoding ({latitude}, {longitude}): {e}")
            return None

        if not isinstance(data, dict) or data.get("error"):
            return None
        country = (data.get("address") or {}).get("country") or None
        return ReverseGeocodeResult(name=_place_name(data) or "Unknown place", country=country)
