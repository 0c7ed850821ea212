"""
Route model - ordered destinations and the legs derived from them.

Cities are kept with contiguous ``order_index`` values ``0..N-1``. Legs are
never stored; they are derived from the ordered cities every time they are
requested, so distances and default transport modes always reflect the
current route. User-chosen modes are stored as overrides: on the target city
for inter-city legs, and under ``LegKey`` sentinels for the two home legs.
"""
import logging
import uuid
from typing import Dict, Iterable, List, Optional, Union

from tripplanner.core.exceptions import DuplicateCityError
from tripplanner.core.validation import (
    is_blank,
    validate_date_range,
    validate_latitude,
    validate_longitude,
)
from tripplanner.models import (
    City,
    CityCandidate,
    Coordinates,
    HomePoint,
    Leg,
    LegKey,
    TransportMode,
)
from tripplanner.services.geo import distance_between
from tripplanner.services.transport_suggestion import (
    TransportSuggestionEngine,
    get_suggestion_engine,
)

logger = logging.getLogger(__name__)

_UNSET = object()


def _as_leg_key(leg_key) -> Optional[LegKey]:
    if isinstance(leg_key, LegKey):
        return leg_key
    if isinstance(leg_key, str):
        try:
            return LegKey(leg_key)
        except ValueError:
            return None
    return None


def _is_index(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class RouteModel:
    """Ordered collection of cities plus derived legs and transport overrides."""

    def __init__(self, engine: Optional[TransportSuggestionEngine] = None):
        self._engine = engine or get_suggestion_engine()
        self._cities: List[City] = []
        self._home_overrides: Dict[LegKey, TransportMode] = {}
        self.revision = 0

    @classmethod
    def from_cities(
        cls,
        cities: Iterable[City],
        engine: Optional[TransportSuggestionEngine] = None,
    ) -> "RouteModel":
        """Build a route from existing cities (edit mode), renumbering their order indexes."""
        route = cls(engine)
        seen = set()
        for city in sorted(cities, key=lambda c: c.order_index):
            if city.id in seen:
                raise DuplicateCityError(city.id)
            seen.add(city.id)
            route._cities.append(city)
        route._reindex(route._cities)
        return route

    def __len__(self) -> int:
        return len(self._cities)

    # ------------------------------------------------------------------
    # City mutations
    # ------------------------------------------------------------------

    def add_city(self, candidate: CityCandidate) -> City:
        """Append a city to the end of the route."""
        city_id = candidate.id or self._new_id()
        if any(c.id == city_id for c in self._cities):
            raise DuplicateCityError(city_id)
        if candidate.latitude is not None:
            validate_latitude(candidate.latitude)
        if candidate.longitude is not None:
            validate_longitude(candidate.longitude)
        validate_date_range(candidate.start_date, candidate.end_date)

        city = City(
            id=city_id,
            name=candidate.name.strip() or "City",
            country=candidate.country or None,
            latitude=candidate.latitude,
            longitude=candidate.longitude,
            order_index=len(self._cities),
            transport_mode=candidate.transport_mode,
            start_date=candidate.start_date,
            end_date=candidate.end_date,
        )
        self._cities.append(city)
        self._touch()
        logger.debug("City added to route", extra={"city_id": city.id, "order_index": city.order_index})
        return city

    def remove_city(self, index: int) -> Optional[City]:
        """Remove the city at ``index``; out-of-range indexes are ignored."""
        ordered = self.ordered_cities()
        if not _is_index(index) or not 0 <= index < len(ordered):
            return None
        removed = ordered.pop(index)
        self._reindex(ordered)
        self._touch()
        logger.debug("City removed from route", extra={"city_id": removed.id, "index": index})
        return removed

    def move_city(self, from_index: int, to_index: int) -> bool:
        """Move a city to a new position, shifting the cities in between."""
        ordered = self.ordered_cities()
        n = len(ordered)
        if not (_is_index(from_index) and _is_index(to_index)):
            return False
        if not (0 <= from_index < n and 0 <= to_index < n) or from_index == to_index:
            return False
        city = ordered.pop(from_index)
        ordered.insert(to_index, city)
        self._reindex(ordered)
        self._touch()
        return True

    def update_city(
        self,
        index: int,
        *,
        name: Optional[str] = None,
        country: Optional[str] = None,
        start_date=_UNSET,
        end_date=_UNSET,
    ) -> Optional[City]:
        """
        Edit a city's details. Blank ``name``/``country`` keep the current value;
        dates are only changed when passed (``None`` clears them).
        """
        ordered = self.ordered_cities()
        if not _is_index(index) or not 0 <= index < len(ordered):
            return None
        city = ordered[index]
        new_start = city.start_date if start_date is _UNSET else start_date
        new_end = city.end_date if end_date is _UNSET else end_date
        validate_date_range(new_start, new_end)

        if not is_blank(name):
            city.name = name.strip()
        if not is_blank(country):
            city.country = country.strip()
        city.start_date = new_start
        city.end_date = new_end
        self._touch()
        return city

    # ------------------------------------------------------------------
    # Ordering and legs
    # ------------------------------------------------------------------

    def ordered_cities(self) -> List[City]:
        """Cities sorted by ``order_index``; the only ordering legs are derived from."""
        return sorted(self._cities, key=lambda c: c.order_index)

    def legs_between_cities(self) -> List[Leg]:
        ordered = self.ordered_cities()
        legs = []
        for i in range(len(ordered) - 1):
            origin, target = ordered[i], ordered[i + 1]
            legs.append(
                self._build_leg(
                    key=i + 1,
                    from_point=origin,
                    to_point=target,
                    distance=distance_between(origin.coordinates, target.coordinates),
                    override=target.transport_mode,
                )
            )
        return legs

    def home_legs(self, home_location: Optional[Coordinates]) -> List[Leg]:
        """Home -> first city and last city -> Home, or nothing without a home or cities."""
        ordered = self.ordered_cities()
        if home_location is None or not ordered:
            return []
        home = HomePoint(home_location)
        first, last = ordered[0], ordered[-1]
        return [
            self._build_leg(
                key=LegKey.HOME_TO_FIRST,
                from_point=home,
                to_point=first,
                distance=distance_between(home_location, first.coordinates),
                override=self._home_overrides.get(LegKey.HOME_TO_FIRST),
                is_home_leg=True,
            ),
            self._build_leg(
                key=LegKey.RETURN_HOME,
                from_point=last,
                to_point=home,
                distance=distance_between(last.coordinates, home_location),
                override=self._home_overrides.get(LegKey.RETURN_HOME),
                is_home_leg=True,
            ),
        ]

    def all_legs(self, home_location: Optional[Coordinates] = None) -> List[Leg]:
        """Every leg in travel order: departure from home, city legs, return home."""
        home_legs = self.home_legs(home_location)
        legs = self.legs_between_cities()
        if home_legs:
            return [home_legs[0], *legs, home_legs[1]]
        return legs

    def total_distance_km(self, home_location: Optional[Coordinates] = None) -> float:
        """Sum of the known leg distances; legs with unknown distance count as zero."""
        return sum(leg.distance_km or 0.0 for leg in self.all_legs(home_location))

    # ------------------------------------------------------------------
    # Transport overrides
    # ------------------------------------------------------------------

    def set_transport_mode(
        self,
        leg_key: Union[int, LegKey, str],
        mode: Optional[Union[TransportMode, str]],
    ) -> bool:
        """
        Record the user's transport choice for a leg.

        Args:
            leg_key: Ordered city index (its incoming leg) or a LegKey sentinel
            mode: Transport mode, or None to go back to the suggested default

        Returns:
            True if a leg was updated, False for an unknown key or index

        Raises:
            ValueError: If ``mode`` is not a known transport mode
        """
        resolved = TransportMode(mode) if mode is not None else None

        sentinel = _as_leg_key(leg_key)
        if sentinel is not None:
            if resolved is None:
                self._home_overrides.pop(sentinel, None)
            else:
                self._home_overrides[sentinel] = resolved
            self._touch()
            return True

        ordered = self.ordered_cities()
        if not _is_index(leg_key) or not 0 <= leg_key < len(ordered):
            return False
        ordered[leg_key].transport_mode = resolved
        self._touch()
        return True

    def transport_override(self, leg_key: Union[int, LegKey, str]) -> Optional[TransportMode]:
        sentinel = _as_leg_key(leg_key)
        if sentinel is not None:
            return self._home_overrides.get(sentinel)
        ordered = self.ordered_cities()
        if _is_index(leg_key) and 0 <= leg_key < len(ordered):
            return ordered[leg_key].transport_mode
        return None

    def resolved_transport_mode(self, index: int) -> Optional[TransportMode]:
        """
        Mode for the incoming leg of the city at ``index``: the override if one
        was chosen, otherwise the suggested default. The first city has no
        incoming city leg, so it only has a mode when one was set explicitly.
        """
        ordered = self.ordered_cities()
        if not _is_index(index) or not 0 <= index < len(ordered):
            return None
        city = ordered[index]
        if city.transport_mode is not None or index == 0:
            return city.transport_mode
        origin = ordered[index - 1]
        distance = distance_between(origin.coordinates, city.coordinates)
        return self._engine.default_mode(distance, origin, city)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_leg(self, key, from_point, to_point, distance, override, is_home_leg=False) -> Leg:
        suggestions = self._engine.suggest(distance, from_point, to_point)
        return Leg(
            key=key,
            from_point=from_point,
            to_point=to_point,
            distance_km=distance,
            transport_mode=override or suggestions[0],
            is_home_leg=is_home_leg,
            is_override=override is not None,
            suggestions=suggestions,
        )

    def _reindex(self, ordered: List[City]) -> None:
        for i, city in enumerate(ordered):
            city.order_index = i
        self._cities = ordered

    def _touch(self) -> None:
        self.revision += 1

    @staticmethod
    def _new_id() -> str:
        return f"new-{uuid.uuid4().hex[:12]}"
