"""
Transport suggestion engine.

Ranks every transport mode for a leg from its straight-line distance and the
names of its endpoints. The ranking is advisory: each call returns the whole
mode set, most recommended first, and the first entry is the leg's default.
"""
from typing import List, Optional, Sequence, Tuple

from tripplanner.config.settings import TransportSettings
from tripplanner.models import TransportMode as M

UNKNOWN_DISTANCE_ORDER = (M.CAR, M.TRAIN, M.BUS, M.FLIGHT, M.FERRY, M.BIKE, M.WALK)
WALK_ORDER = (M.WALK, M.BIKE, M.BUS, M.CAR, M.TRAIN, M.FERRY, M.FLIGHT)
LOCAL_ORDER = (M.CAR, M.BUS, M.BIKE, M.TRAIN, M.WALK, M.FERRY, M.FLIGHT)
REGIONAL_ORDER = (M.TRAIN, M.BUS, M.CAR, M.FLIGHT, M.FERRY, M.BIKE, M.WALK)
LONG_HAUL_ORDER = (M.FLIGHT, M.TRAIN, M.BUS, M.CAR, M.FERRY, M.BIKE, M.WALK)
ISLAND_NEAR_ORDER = (M.FERRY, M.FLIGHT, M.CAR, M.BUS, M.TRAIN, M.BIKE, M.WALK)
ISLAND_FAR_ORDER = (M.FLIGHT, M.FERRY, M.TRAIN, M.BUS, M.CAR, M.BIKE, M.WALK)


def _endpoint_name(point) -> str:
    if point is None:
        return ""
    if isinstance(point, str):
        return point
    if isinstance(point, dict):
        return str(point.get("name") or "")
    return str(getattr(point, "name", "") or "")


class TransportSuggestionEngine:
    """Distance-bucketed ranking of transport modes."""

    def __init__(self, settings: Optional[TransportSettings] = None):
        settings = settings or TransportSettings()
        thresholds = (settings.walk_max_km, settings.local_max_km, settings.regional_max_km)
        if not (thresholds[0] < thresholds[1] < thresholds[2]):
            raise ValueError(f"Distance thresholds must be strictly increasing, got {thresholds}")
        # (upper bound, ordering); the last bucket is open ended
        self._buckets: Tuple[Tuple[float, Sequence[M]], ...] = (
            (settings.walk_max_km, WALK_ORDER),
            (settings.local_max_km, LOCAL_ORDER),
            (settings.regional_max_km, REGIONAL_ORDER),
        )
        self._island_ferry_max_km = settings.island_ferry_max_km
        self._island_keywords = tuple(k.lower() for k in settings.island_keywords)

    def is_island(self, point) -> bool:
        name = _endpoint_name(point).lower()
        return bool(name) and any(k in name for k in self._island_keywords)

    def suggest(self, distance_km: Optional[float], from_point=None, to_point=None) -> List[M]:
        """
        Rank all transport modes for a leg.

        Args:
            distance_km: Straight-line distance, or None when unknown
            from_point: Departure point (anything with a ``name``), optional
            to_point: Arrival point, optional

        Returns:
            Every mode exactly once, most recommended first
        """
        if distance_km is None:
            return list(UNKNOWN_DISTANCE_ORDER)

        if self.is_island(from_point) or self.is_island(to_point):
            if distance_km <= self._island_ferry_max_km:
                return list(ISLAND_NEAR_ORDER)
            return list(ISLAND_FAR_ORDER)

        for upper, order in self._buckets:
            if distance_km < upper:
                return list(order)
        return list(LONG_HAUL_ORDER)

    def default_mode(self, distance_km: Optional[float], from_point=None, to_point=None) -> M:
        return self.suggest(distance_km, from_point, to_point)[0]


_default_engine: Optional[TransportSuggestionEngine] = None


def get_suggestion_engine() -> TransportSuggestionEngine:
    """Engine built from the application settings (created lazily)."""
    global _default_engine
    if _default_engine is None:
        from tripplanner.config.settings import get_settings
        _default_engine = TransportSuggestionEngine(get_settings().transport)
    return _default_engine


def get_transport_suggestions(distance_km: Optional[float], from_point=None, to_point=None) -> List[M]:
    return get_suggestion_engine().suggest(distance_km, from_point, to_point)
