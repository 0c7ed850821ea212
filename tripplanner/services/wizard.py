"""
Multi-city trip wizard.

Drives the four-step flow used to create a multi-city trip:

    DETAILS -> CITIES -> REVIEW -> BUDGET -> (save)

The wizard owns one TripDraft and one RouteModel for its whole session.
Forward navigation is gated by ``can_advance``; entering REVIEW starts a
background lookup of the traveller's home location so the review step can
show "getting there" and "return home" legs once it resolves. Saving creates
the trip first and then each city, one at a time and in route order.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Union

from tripplanner.config.settings import GeocodingSettings, WizardSettings, get_settings
from tripplanner.core.exceptions import (
    CityCreationError,
    TripCreationError,
    TripPlannerException,
)
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
    Leg,
    LegKey,
    TransportMode,
    TripDraft,
)
from tripplanner.schemas.geocoding import GeocodeResult
from tripplanner.schemas.trip import TripCityCreate, TripCityRead, TripCreate, TripRead
from tripplanner.services.geocoding_service import GeocodingService
from tripplanner.services.location_provider import LocationProvider
from tripplanner.services.overlay import OverlayRegistry
from tripplanner.services.route_model import RouteModel
from tripplanner.services.transport_suggestion import TransportSuggestionEngine
from tripplanner.services.trip_api_client import TripRepository

logger = logging.getLogger(__name__)

OnSave = Callable[[TripRead], Union[None, Awaitable[None]]]
OnClose = Callable[[], None]


class WizardStep(str, Enum):
    DETAILS = "details"
    CITIES = "cities"
    REVIEW = "review"
    BUDGET = "budget"


STEPS = (WizardStep.DETAILS, WizardStep.CITIES, WizardStep.REVIEW, WizardStep.BUDGET)


class HomeLocationStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    RESOLVED = "resolved"
    DENIED = "denied"
    FAILED = "failed"


@dataclass
class _PartialSave:
    """A save that created the trip but not all of its cities."""
    trip: TripRead
    created_count: int
    revision: int


def _to_date(value: Optional[Union[date, datetime]]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value


def _city_from_record(record: TripCityRead) -> City:
    return City(
        id=record.id,
        name=record.name,
        country=record.country,
        latitude=record.latitude,
        longitude=record.longitude,
        order_index=record.order_index,
        transport_mode=record.transport_mode,
        start_date=_to_date(record.start_date),
        end_date=_to_date(record.end_date),
    )


class MultiCityTripWizard:
    """
    Step wizard for creating a multi-city trip.

    Args:
        trip_repository: Persistence for the trip and its cities
        location_provider: Source of the traveller's home position
        overlay_registry: Host overlay registry; a slot is held while the wizard is open
        on_save: Called with the finalized trip after a successful save
        on_close: Called once when the wizard closes, whatever the reason
        trip: Existing trip to pre-populate the draft with (edit mode)
        geocoder: Place search used by the city step
        engine: Transport suggestion engine, defaults to the configured one
    """

    def __init__(
        self,
        trip_repository: TripRepository,
        location_provider: LocationProvider,
        overlay_registry: OverlayRegistry,
        on_save: OnSave,
        on_close: OnClose,
        trip: Optional[TripRead] = None,
        geocoder: Optional[GeocodingService] = None,
        engine: Optional[TransportSuggestionEngine] = None,
        settings: Optional[WizardSettings] = None,
        geocoding_settings: Optional[GeocodingSettings] = None,
    ):
        self.trip_repository = trip_repository
        self.location_provider = location_provider
        self.geocoder = geocoder
        self.on_save = on_save
        self.on_close = on_close
        self.settings = settings or get_settings().wizard
        self.geocoding_settings = geocoding_settings or get_settings().geocoding

        if trip is not None:
            self.draft = TripDraft(
                name=trip.name or "",
                start_date=_to_date(trip.start_date),
                end_date=_to_date(trip.end_date),
                budget=trip.budget,
            )
            self.route = RouteModel.from_cities(
                (_city_from_record(c) for c in trip.cities), engine
            )
        else:
            self.draft = TripDraft()
            self.route = RouteModel(engine)

        self.step = WizardStep.DETAILS
        self.error: Optional[str] = None
        self.saving = False
        self.closed = False

        self.home_location: Optional[Coordinates] = None
        self.home_status = HomeLocationStatus.IDLE
        self._home_task: Optional[asyncio.Task] = None

        self._adding_from_map = False
        self._draft_revision = 0
        self._partial_save: Optional[_PartialSave] = None

        self._overlay = overlay_registry.acquire()
        logger.info("Trip wizard opened", extra={"edit_mode": trip is not None})

    async def __aenter__(self) -> "MultiCityTripWizard":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def step_index(self) -> int:
        return STEPS.index(self.step)

    @property
    def is_first(self) -> bool:
        return self.step is STEPS[0]

    @property
    def is_last(self) -> bool:
        return self.step is STEPS[-1]

    @property
    def revision(self) -> int:
        """Changes whenever the draft or the route is edited."""
        return self._draft_revision + self.route.revision

    def can_advance(self, step: Optional[WizardStep] = None) -> bool:
        step = step or self.step
        if step is WizardStep.DETAILS:
            return not is_blank(self.draft.name)
        if step is WizardStep.CITIES:
            return len(self.route) >= 1
        return True

    async def next(self) -> bool:
        """
        Move to the next step, or save when on the last one.

        Returns:
            True if the wizard moved forward (or saved), False if a guard blocked it
        """
        if self.closed or self.saving:
            return False
        self.error = None
        if not self.can_advance():
            return False
        if self.is_last:
            return await self.save() is not None

        previous = self.step
        self.step = STEPS[self.step_index + 1]
        logger.debug("Wizard step changed", extra={"from_step": previous.value, "to_step": self.step.value})
        if self.step is WizardStep.REVIEW:
            self.start_home_location_lookup()
        return True

    def back(self) -> None:
        """Previous step; on the first step this cancels the wizard."""
        if self.closed or self._edits_locked("back"):
            return
        self.error = None
        if self.is_first:
            self.cancel()
            return
        self.step = STEPS[self.step_index - 1]

    def cancel(self) -> None:
        logger.info("Trip wizard cancelled", extra={"step": self.step.value})
        self.close()

    def close(self) -> None:
        """Abandon background work, release the overlay and notify the host. Idempotent."""
        if self.closed:
            return
        self.closed = True
        if self._home_task is not None and not self._home_task.done():
            self._home_task.cancel()
        if self.home_status is HomeLocationStatus.PENDING:
            self.home_status = HomeLocationStatus.IDLE
        try:
            self._overlay.release()
        finally:
            self.on_close()

    # ------------------------------------------------------------------
    # Home location
    # ------------------------------------------------------------------

    def start_home_location_lookup(self) -> Optional[asyncio.Task]:
        """
        Resolve the home location in the background.

        Does nothing while a lookup is pending, once one has succeeded, or
        while the route is empty. Returns the running task so callers may
        await or cancel it.
        """
        if self.closed or len(self.route) == 0:
            return None
        if self.home_status is HomeLocationStatus.RESOLVED:
            return None
        if self.home_status is HomeLocationStatus.PENDING:
            return self._home_task
        self.home_status = HomeLocationStatus.PENDING
        self._home_task = asyncio.create_task(self._resolve_home_location())
        return self._home_task

    async def _resolve_home_location(self) -> None:
        try:
            granted = await self.location_provider.request_permission()
            if not granted:
                self.home_status = HomeLocationStatus.DENIED
                logger.info("Home location permission denied")
                return
            position = await self.location_provider.current_position()
            validate_latitude(position.latitude)
            validate_longitude(position.longitude)
        except asyncio.CancelledError:
            self.home_status = HomeLocationStatus.IDLE
            raise
        except Exception as e:
            self.home_status = HomeLocationStatus.FAILED
            logger.warning(f"Home location error: {e}")
            return
        self.home_location = Coordinates(position.latitude, position.longitude)
        self.home_status = HomeLocationStatus.RESOLVED
        logger.debug("Home location resolved")

    # ------------------------------------------------------------------
    # Route surface
    # ------------------------------------------------------------------

    def ordered_cities(self) -> List[City]:
        return self.route.ordered_cities()

    def legs(self) -> List[Leg]:
        """All legs for display, including home legs once the home location is known."""
        return self.route.all_legs(self.home_location)

    def total_distance_km(self) -> float:
        return self.route.total_distance_km(self.home_location)

    # ------------------------------------------------------------------
    # Draft edits
    # ------------------------------------------------------------------

    def _edits_locked(self, action: str) -> bool:
        """True while a save is in flight; the draft it is persisting must not change."""
        if self.saving:
            logger.warning("Draft edit refused during save", extra={"action": action})
            return True
        return False

    def set_name(self, name: str) -> None:
        if self._edits_locked("set_name"):
            return
        self.draft.name = name or ""
        self._draft_revision += 1

    def set_dates(self, start_date: Optional[date], end_date: Optional[date]) -> None:
        if self._edits_locked("set_dates"):
            return
        validate_date_range(start_date, end_date)
        self.draft.start_date = start_date
        self.draft.end_date = end_date
        self._draft_revision += 1

    def set_budget(self, budget: Optional[Union[float, str]]) -> None:
        """Set the optional budget; blank text clears it."""
        if self._edits_locked("set_budget"):
            return
        if isinstance(budget, str):
            budget = float(budget) if budget.strip() else None
        if budget is not None and budget < 0:
            raise ValueError("Budget cannot be negative")
        self.draft.budget = budget
        self._draft_revision += 1

    def add_city(self, candidate: Union[CityCandidate, GeocodeResult]) -> Optional[City]:
        if self._edits_locked("add_city"):
            return None
        if isinstance(candidate, GeocodeResult):
            candidate = candidate.to_candidate()
        return self.route.add_city(candidate)

    def remove_city(self, index: int) -> Optional[City]:
        if self._edits_locked("remove_city"):
            return None
        return self.route.remove_city(index)

    def move_city(self, from_index: int, to_index: int) -> bool:
        if self._edits_locked("move_city"):
            return False
        return self.route.move_city(from_index, to_index)

    def update_city(self, index: int, **changes) -> Optional[City]:
        if self._edits_locked("update_city"):
            return None
        return self.route.update_city(index, **changes)

    def set_transport_mode(
        self,
        leg_key: Union[int, LegKey, str],
        mode: Optional[Union[TransportMode, str]],
    ) -> bool:
        if self._edits_locked("set_transport_mode"):
            return False
        return self.route.set_transport_mode(leg_key, mode)

    async def search_cities(self, query: str) -> List[GeocodeResult]:
        """Destination search for the city step; never raises."""
        q = (query or "").strip()
        if self.geocoder is None or len(q) < self.geocoding_settings.min_query_length:
            return []
        try:
            return await self.geocoder.search(q, self.geocoding_settings.max_results)
        except Exception as e:
            logger.warning(f"Geocode search error: {e}")
            return []

    async def add_city_from_map(self, latitude: float, longitude: float) -> Optional[City]:
        """
        Add the place at a tapped map coordinate.

        The tap is ignored while a previous tap is still being resolved, and
        when reverse geocoding fails.
        """
        if self._adding_from_map or self.geocoder is None:
            return None
        self._adding_from_map = True
        try:
            validate_latitude(latitude)
            validate_longitude(longitude)
            place = await self.geocoder.reverse_geocode(latitude, longitude)
        except Exception as e:
            logger.warning(f"Map tap add failed: {e}")
            return None
        finally:
            self._adding_from_map = False
        if place is None:
            logger.info("Map tap ignored: no place found", extra={"latitude": latitude, "longitude": longitude})
            return None
        if self.closed or self._edits_locked("add_city_from_map"):
            return None
        return self.route.add_city(
            CityCandidate(name=place.name, country=place.country, latitude=latitude, longitude=longitude)
        )

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def build_trip_payload(self) -> TripCreate:
        name = self.draft.name.strip()
        ordered = self.route.ordered_cities()
        return TripCreate(
            name=name,
            destination=ordered[0].name if ordered else name,
            start_date=f"{self.draft.start_date.isoformat()}T00:00:00.000Z" if self.draft.start_date else None,
            end_date=f"{self.draft.end_date.isoformat()}T23:59:59.999Z" if self.draft.end_date else None,
            budget=self.draft.budget or 0,
            budget_currency=self.settings.budget_currency,
            trip_type=self.settings.trip_type,
        )

    def build_city_payload(self, index: int) -> TripCityCreate:
        city = self.route.ordered_cities()[index]
        return TripCityCreate(
            name=city.name,
            country=city.country or None,
            latitude=city.latitude,
            longitude=city.longitude,
            order_index=index,
            transport_mode=self.route.resolved_transport_mode(index),
            start_date=city.start_date,
            end_date=city.end_date,
        )

    async def save(self) -> Optional[TripRead]:
        """
        Persist the draft and close the wizard.

        The trip is created first; its cities are then created one at a time
        in route order. Any failure leaves the wizard open on the budget step
        with ``error`` set. A failure while creating cities is not rolled back:
        retrying without editing the draft resumes with the first city that
        was not saved, on the same trip.

        Returns:
            The finalized trip, or None if the save failed or was not possible
        """
        if self.closed or self.saving:
            return None
        if not self.is_last:
            logger.warning("Save requested before the budget step", extra={"step": self.step.value})
            return None

        self.error = None
        self.saving = True
        try:
            trip = await self._persist()
        except TripPlannerException as e:
            self.error = e.message
            logger.error(
                f"Trip save failed: {e.message}",
                extra={"error_code": e.error_code.value, **e.details},
            )
            return None
        finally:
            self.saving = False

        result = self.on_save(trip)
        if inspect.isawaitable(result):
            await result
        self.close()
        return trip

    async def _persist(self) -> TripRead:
        revision = self.revision
        partial = self._partial_save
        if partial is not None and partial.revision != revision:
            logger.info(
                "Draft changed since the partial save, starting a new trip",
                extra={"abandoned_trip_id": partial.trip.id},
            )
            partial = None
        self._partial_save = None

        # Payloads are fixed before the first await; the route is not read again.
        try:
            trip_payload = self.build_trip_payload()
            city_payloads = [self.build_city_payload(i) for i in range(len(self.route))]
        except ValueError as e:
            raise TripCreationError(f"Trip could not be created: {e}") from e

        if partial is None:
            try:
                created = await self.trip_repository.create_trip(trip_payload)
            except Exception as e:
                raise TripCreationError(f"Trip could not be created: {e}") from e
            if not created.id:
                raise TripCreationError("Trip created but no ID returned")
            partial = _PartialSave(trip=created, created_count=0, revision=revision)

        trip_id = partial.trip.id
        total = len(city_payloads)
        for index in range(partial.created_count, total):
            try:
                await self.trip_repository.create_city(trip_id, city_payloads[index])
            except Exception as e:
                self._partial_save = partial
                raise CityCreationError(trip_id, partial.created_count, total, index, str(e)) from e
            partial.created_count += 1

        logger.info("Trip saved", extra={"trip_id": trip_id, "city_count": total})
        try:
            full_trip = await self.trip_repository.get_trip(trip_id)
        except Exception as e:
            logger.warning(f"Could not reload saved trip {trip_id}: {e}")
            full_trip = None
        return full_trip or partial.trip
