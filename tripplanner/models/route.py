"""
In-memory route data structures used by the planner and the trip wizard.

These are plain dataclasses; the wire representations live in
``tripplanner.schemas``.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Union


class TransportMode(str, Enum):
    """Closed set of travel methods for a leg, shared by engine, API and UI."""
    WALK = "walk"
    BIKE = "bike"
    CAR = "car"
    BUS = "bus"
    TRAIN = "train"
    FERRY = "ferry"
    FLIGHT = "flight"


class LegKey(str, Enum):
    """Sentinel keys for the two legs that are not tied to a City record."""
    HOME_TO_FIRST = "homeToFirst"
    RETURN_HOME = "returnHome"


@dataclass(frozen=True)
class Coordinates:
    """Normalized latitude/longitude pair."""
    latitude: float
    longitude: float


@dataclass
class City:
    """A destination in the route. ``transport_mode`` is the user's choice for the incoming leg."""
    id: str
    name: str
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    order_index: int = 0
    transport_mode: Optional[TransportMode] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(self.latitude, self.longitude)


@dataclass
class CityCandidate:
    """A destination picked from search results or the map, not yet part of a route."""
    name: str
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    id: Optional[str] = None
    transport_mode: Optional[TransportMode] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class HomePoint:
    """Synthetic endpoint standing for the traveller's current location."""
    coordinates: Coordinates
    name: str = "Home"

    @property
    def latitude(self) -> float:
        return self.coordinates.latitude

    @property
    def longitude(self) -> float:
        return self.coordinates.longitude


RoutePoint = Union[City, HomePoint]


@dataclass
class Leg:
    """A directed hop between two consecutive points of the route."""
    key: Union[int, LegKey]
    from_point: RoutePoint
    to_point: RoutePoint
    distance_km: Optional[float]
    transport_mode: TransportMode
    is_home_leg: bool = False
    is_override: bool = False
    suggestions: List[TransportMode] = field(default_factory=list)


@dataclass
class TripDraft:
    """Trip-level fields edited by the wizard; the cities live in the RouteModel."""
    name: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[float] = None


# Legacy spellings found in stored trips.
_MODE_ALIASES = {
    "walking": TransportMode.WALK,
    "cycling": TransportMode.BIKE,
    "bicycle": TransportMode.BIKE,
    "driving": TransportMode.CAR,
    "coach": TransportMode.BUS,
    "rail": TransportMode.TRAIN,
    "boat": TransportMode.FERRY,
    "plane": TransportMode.FLIGHT,
}


def parse_transport_mode(value) -> Optional[TransportMode]:
    """Lenient mode parsing for stored data: unknown or empty values become None."""
    if value is None or isinstance(value, TransportMode):
        return value
    text = str(value).strip().lower()
    if not text:
        return None
    if text in _MODE_ALIASES:
        return _MODE_ALIASES[text]
    try:
        return TransportMode(text)
    except ValueError:
        return None
