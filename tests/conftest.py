"""
Shared fixtures and in-memory collaborators for the trip planner tests.
"""
import asyncio
from typing import List, Optional

import pytest

from tripplanner.config.settings import TransportSettings, WizardSettings, GeocodingSettings
from tripplanner.models import City, Coordinates
from tripplanner.schemas.geocoding import GeocodeResult, ReverseGeocodeResult
from tripplanner.schemas.trip import TripCityCreate, TripCityRead, TripCreate, TripRead
from tripplanner.services.geocoding_service import GeocodingService
from tripplanner.services.location_provider import LocationProvider
from tripplanner.services.overlay import CountingOverlayRegistry
from tripplanner.services.transport_suggestion import TransportSuggestionEngine
from tripplanner.services.trip_api_client import TripRepository
from tripplanner.services.wizard import MultiCityTripWizard


PARIS = (48.8566, 2.3522)
LYON = (45.7640, 4.8357)
ROME = (41.9028, 12.4964)
BERLIN = (52.5200, 13.4050)


class FakeTripRepository(TripRepository):
    """Records every call; ``fail_city_at`` makes the n-th create_city call fail once."""

    def __init__(self, fail_trip: bool = False, fail_city_at: Optional[int] = None, trip_id: Optional[str] = "trip-1"):
        self.calls: List[tuple] = []
        self.fail_trip = fail_trip
        self.fail_city_at = fail_city_at
        self.trip_id = trip_id
        self.trips = {}
        self.cities = {}

    async def create_trip(self, payload: TripCreate) -> TripRead:
        self.calls.append(("create_trip", payload))
        await asyncio.sleep(0)
        if self.fail_trip:
            raise RuntimeError("trip API down")
        trip = TripRead(
            id=self.trip_id,
            name=payload.name,
            destination=payload.destination,
            budget=payload.budget,
            budget_currency=payload.budget_currency,
            trip_type=payload.trip_type,
        )
        if trip.id:
            self.trips[trip.id] = trip
            self.cities[trip.id] = []
        return trip

    async def get_trip(self, trip_id: str) -> Optional[TripRead]:
        self.calls.append(("get_trip", trip_id))
        trip = self.trips.get(trip_id)
        if trip is None:
            return None
        return trip.model_copy(update={"cities": list(self.cities[trip_id])})

    async def create_city(self, trip_id: str, payload: TripCityCreate) -> TripCityRead:
        self.calls.append(("create_city", payload))
        await asyncio.sleep(0)
        attempt = len([c for c in self.calls if c[0] == "create_city"]) - 1
        if self.fail_city_at is not None and attempt == self.fail_city_at:
            self.fail_city_at = None
            raise RuntimeError("city API down")
        city = TripCityRead(
            id=f"city-{attempt}",
            trip_id=trip_id,
            name=payload.name,
            country=payload.country,
            latitude=payload.latitude,
            longitude=payload.longitude,
            order_index=payload.order_index,
            transport_mode=payload.transport_mode,
        )
        self.cities[trip_id].append(city)
        return city

    async def list_cities(self, trip_id: str) -> List[TripCityRead]:
        return sorted(self.cities.get(trip_id, []), key=lambda c: c.order_index)

    def calls_named(self, name: str) -> list:
        return [payload for call, payload in self.calls if call == name]


class FakeGeocoder(GeocodingService):
    def __init__(self, results=None, reverse=None, fail: bool = False):
        self.results = results or []
        self.reverse = reverse
        self.fail = fail
        self.queries = []

    async def search(self, query: str, max_results: int) -> List[GeocodeResult]:
        self.queries.append(query)
        if self.fail:
            raise RuntimeError("geocoder down")
        return self.results[:max_results]

    async def reverse_geocode(self, latitude: float, longitude: float) -> Optional[ReverseGeocodeResult]:
        if self.fail:
            raise RuntimeError("geocoder down")
        return self.reverse


class FakeLocationProvider(LocationProvider):
    """Grants or denies permission; ``gate`` lets a test hold the position fix open."""

    def __init__(self, coordinates: Optional[Coordinates] = None, granted: bool = True, error: Exception = None):
        self.coordinates = coordinates or Coordinates(*BERLIN)
        self.granted = granted
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.permission_requests = 0

    async def request_permission(self) -> bool:
        self.permission_requests += 1
        return self.granted

    async def current_position(self) -> Coordinates:
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.coordinates


def make_city(city_id: str, name: str, coords=None, order_index: int = 0, **kwargs) -> City:
    lat, lon = coords if coords else (None, None)
    return City(id=city_id, name=name, latitude=lat, longitude=lon, order_index=order_index, **kwargs)


@pytest.fixture
def engine():
    return TransportSuggestionEngine(TransportSettings())


@pytest.fixture
def trip_repository():
    return FakeTripRepository()


@pytest.fixture
def location_provider():
    return FakeLocationProvider()


@pytest.fixture
def overlay_registry():
    return CountingOverlayRegistry()


@pytest.fixture
def geocoder():
    return FakeGeocoder(
        results=[
            GeocodeResult(name="Paris", country="France", latitude=PARIS[0], longitude=PARIS[1]),
            GeocodeResult(name="Paris", country="United States", latitude=33.6609, longitude=-95.5555),
        ],
        reverse=ReverseGeocodeResult(name="Lyon", country="France"),
    )


@pytest.fixture
def saved_trips():
    return []


@pytest.fixture
def close_calls():
    return []


@pytest.fixture
def make_wizard(trip_repository, location_provider, overlay_registry, geocoder, engine, saved_trips, close_calls):
    """Factory building a wizard wired to the in-memory collaborators."""

    def _make(**overrides) -> MultiCityTripWizard:
        kwargs = dict(
            trip_repository=trip_repository,
            location_provider=location_provider,
            overlay_registry=overlay_registry,
            on_save=saved_trips.append,
            on_close=lambda: close_calls.append(True),
            geocoder=geocoder,
            engine=engine,
            settings=WizardSettings(),
            geocoding_settings=GeocodingSettings(),
        )
        kwargs.update(overrides)
        return MultiCityTripWizard(**kwargs)

    return _make
