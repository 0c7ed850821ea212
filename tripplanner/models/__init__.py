from .route import (
    TransportMode,
    LegKey,
    Coordinates,
    City,
    CityCandidate,
    HomePoint,
    RoutePoint,
    Leg,
    parse_transport_mode,
    TripDraft,
)

__all__ = [
    "TransportMode",
    "LegKey",
    "Coordinates",
    "City",
    "CityCandidate",
    "HomePoint",
    "RoutePoint",
    "Leg",
    "parse_transport_mode",
    "TripDraft",
]
