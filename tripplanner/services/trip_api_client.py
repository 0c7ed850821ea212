"""
Trip API client - persistence of trips and their cities over the travel REST API
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from tripplanner.config.settings import TripApiSettings, get_settings
from tripplanner.core.exceptions import TripApiError
from tripplanner.schemas.trip import TripCityCreate, TripCityRead, TripCreate, TripRead

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class TripRepository(ABC):
    """The persistence calls the trip wizard needs."""

    @abstractmethod
    async def create_trip(self, payload: TripCreate) -> TripRead:
        ...

    @abstractmethod
    async def get_trip(self, trip_id: str) -> Optional[TripRead]:
        ...

    @abstractmethod
    async def create_city(self, trip_id: str, payload: TripCityCreate) -> TripCityRead:
        ...

    @abstractmethod
    async def list_cities(self, trip_id: str) -> List[TripCityRead]:
        ...


class TripApiClient(TripRepository):
    """Trip repository backed by the ``/api/travel`` endpoints"""

    def __init__(
        self,
        settings: Optional[TripApiSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings().trip_api
        self._client = client
        self._owns_client = client is None

    def _get_headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.settings.token:
            headers["Authorization"] = f"Bearer {self.settings.token}"
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.base_url,
                timeout=self.settings.timeout_seconds,
            )
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TripApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, url: str, json: Optional[dict] = None) -> httpx.Response:
        try:
            response = await self._get_client().request(method, url, json=json, headers=self._get_headers())
        except httpx.TimeoutException as e:
            raise TripApiError(f"Trip API timed out on {method} {url}") from e
        except httpx.HTTPError as e:
            raise TripApiError(f"Trip API unreachable on {method} {url}: {e}") from e
        return response

    @staticmethod
    def _parse(response: httpx.Response, model: Type[ModelT]) -> ModelT:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TripApiError(
                f"Unexpected response from trip API: {e}",
                upstream_status=response.status_code,
            ) from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        logger.warning(
            f"Trip API {action} failed with {response.status_code}",
            extra={"status_code": response.status_code, "action": action},
        )
        raise TripApiError(
            f"Trip API {action} failed ({response.status_code})",
            upstream_status=response.status_code,
            details={"body": response.text[:200]},
        )

    async def create_trip(self, payload: TripCreate) -> TripRead:
        """
        Create a new trip

        Args:
            payload: Trip creation data

        Returns:
            Created trip as stored upstream

        Raises:
            TripApiError: If the API rejects the request or is unreachable
        """
        response = await self._request(
            "POST", "/api/travel/trips", json=payload.model_dump(mode="json", by_alias=True)
        )
        self._raise_for_status(response, "create trip")
        trip = self._parse(response, TripRead)
        logger.info("Trip created", extra={"trip_id": trip.id, "destination": trip.destination})
        return trip

    async def get_trip(self, trip_id: str) -> Optional[TripRead]:
        """
        Get a trip by ID

        Returns:
            Trip or None when it does not exist
        """
        response = await self._request("GET", f"/api/travel/trips/{trip_id}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response, "get trip")
        return self._parse(response, TripRead)

    async def create_city(self, trip_id: str, payload: TripCityCreate) -> TripCityRead:
        """
        Create one city of a trip

        Args:
            trip_id: Owning trip ID
            payload: City data including its position in the route

        Returns:
            Created city
        """
        response = await self._request(
            "POST",
            f"/api/travel/trips/{trip_id}/cities",
            json=payload.model_dump(mode="json", by_alias=True),
        )
        self._raise_for_status(response, "create city")
        city = self._parse(response, TripCityRead)
        logger.debug("Trip city created", extra={"trip_id": trip_id, "order_index": city.order_index})
        return city

    async def list_cities(self, trip_id: str) -> List[TripCityRead]:
        """List a trip's cities in route order"""
        response = await self._request("GET", f"/api/travel/trips/{trip_id}/cities")
        self._raise_for_status(response, "list cities")
        try:
            items = response.json()
            cities = [TripCityRead.model_validate(item) for item in items]
        except (ValueError, TypeError, ValidationError) as e:
            raise TripApiError(
                f"Unexpected response from trip API: {e}",
                upstream_status=response.status_code,
            ) from e
        return sorted(cities, key=lambda c: c.order_index)
