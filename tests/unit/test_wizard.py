"""
Unit tests for the multi-city trip wizard with in-memory collaborators
"""
import asyncio
from datetime import date, datetime

import pytest

from tripplanner.core.exceptions import InvalidDateRangeError
from tripplanner.models import CityCandidate, Coordinates, LegKey, TransportMode
from tripplanner.schemas.trip import TripCityRead, TripRead
from tripplanner.services.wizard import HomeLocationStatus, WizardStep

from tests.conftest import (
    BERLIN,
    LYON,
    PARIS,
    ROME,
    FakeGeocoder,
    FakeLocationProvider,
    FakeTripRepository,
)


def add(wizard, name, coords):
    return wizard.add_city(CityCandidate(name=name, country="France", latitude=coords[0], longitude=coords[1]))


async def walk_to_budget(wizard, *cities):
    wizard.set_name("Summer 2025")
    for name, coords in cities:
        add(wizard, name, coords)
    assert await wizard.next()  # -> cities
    assert await wizard.next()  # -> review
    assert await wizard.next()  # -> budget
    assert wizard.step is WizardStep.BUDGET


# ----------------------------------------------------------------------
# Guards and navigation
# ----------------------------------------------------------------------

@pytest.mark.parametrize("name,expected", [("", False), ("   ", False), ("Paris 2025", True)])
def test_details_guard_requires_name(make_wizard, name, expected):
    wizard = make_wizard()
    wizard.set_name(name)
    assert wizard.can_advance(WizardStep.DETAILS) is expected


def test_cities_guard_requires_a_city(make_wizard):
    wizard = make_wizard()
    assert not wizard.can_advance(WizardStep.CITIES)
    add(wizard, "Paris", PARIS)
    assert wizard.can_advance(WizardStep.CITIES)


@pytest.mark.asyncio
async def test_next_blocked_by_guards(make_wizard):
    wizard = make_wizard()
    assert await wizard.next() is False
    assert wizard.step is WizardStep.DETAILS

    wizard.set_name("Trip")
    assert await wizard.next()
    assert wizard.step is WizardStep.CITIES
    assert await wizard.next() is False
    assert wizard.step is WizardStep.CITIES


@pytest.mark.asyncio
async def test_back_steps_and_keeps_draft(make_wizard):
    wizard = make_wizard()
    wizard.set_name("Trip")
    add(wizard, "Paris", PARIS)
    await wizard.next()
    await wizard.next()
    assert wizard.step is WizardStep.REVIEW
    wizard.back()
    assert wizard.step is WizardStep.CITIES
    wizard.back()
    assert wizard.step is WizardStep.DETAILS
    assert wizard.draft.name == "Trip"
    assert len(wizard.ordered_cities()) == 1


def test_back_on_first_step_cancels(make_wizard, overlay_registry, close_calls):
    wizard = make_wizard()
    assert overlay_registry.open_count == 1
    wizard.back()
    assert wizard.closed
    assert overlay_registry.open_count == 0
    assert close_calls == [True]


def test_close_is_idempotent(make_wizard, overlay_registry, close_calls):
    wizard = make_wizard()
    wizard.close()
    wizard.cancel()
    wizard.close()
    assert close_calls == [True]
    assert overlay_registry.open_count == 0


@pytest.mark.asyncio
async def test_context_manager_releases_overlay_on_error(make_wizard, overlay_registry, close_calls):
    with pytest.raises(RuntimeError):
        async with make_wizard() as wizard:
            assert overlay_registry.any_open
            raise RuntimeError("host crashed")
    assert wizard.closed
    assert not overlay_registry.any_open
    assert close_calls == [True]


@pytest.mark.asyncio
async def test_navigation_ignored_after_close(make_wizard):
    wizard = make_wizard()
    wizard.set_name("Trip")
    wizard.close()
    assert await wizard.next() is False
    assert wizard.step is WizardStep.DETAILS


# ----------------------------------------------------------------------
# Draft edits
# ----------------------------------------------------------------------

def test_set_budget_parses_text(make_wizard):
    wizard = make_wizard()
    wizard.set_budget("150.5")
    assert wizard.draft.budget == 150.5
    wizard.set_budget("  ")
    assert wizard.draft.budget is None
    with pytest.raises(ValueError):
        wizard.set_budget(-1)


def test_set_dates_validates_range(make_wizard):
    wizard = make_wizard()
    wizard.set_dates(date(2025, 7, 1), date(2025, 7, 10))
    with pytest.raises(InvalidDateRangeError):
        wizard.set_dates(date(2025, 7, 10), date(2025, 7, 1))
    assert wizard.draft.end_date == date(2025, 7, 10)


def test_edits_change_revision(make_wizard):
    wizard = make_wizard()
    start = wizard.revision
    wizard.set_name("Trip")
    add(wizard, "Paris", PARIS)
    wizard.set_transport_mode(LegKey.HOME_TO_FIRST, TransportMode.TRAIN)
    assert wizard.revision == start + 3


def test_edit_mode_prefills_draft(make_wizard):
    trip = TripRead(
        id="t-9",
        name="Italy",
        start_date=datetime(2025, 9, 1),
        end_date=datetime(2025, 9, 8, 23, 59, 59),
        budget=900,
        cities=[
            TripCityRead(id="c2", name="Rome", latitude=ROME[0], longitude=ROME[1], order_index=1, transport_mode="train"),
            TripCityRead(id="c1", name="Lyon", latitude=LYON[0], longitude=LYON[1], order_index=0),
        ],
    )
    wizard = make_wizard(trip=trip)
    assert wizard.draft.name == "Italy"
    assert wizard.draft.start_date == date(2025, 9, 1)
    assert wizard.draft.end_date == date(2025, 9, 8)
    assert [c.name for c in wizard.ordered_cities()] == ["Lyon", "Rome"]
    assert wizard.legs()[0].transport_mode == TransportMode.TRAIN


# ----------------------------------------------------------------------
# Search and map taps
# ----------------------------------------------------------------------

@pytest.mark.asyncio
async def test_search_requires_three_characters(make_wizard, geocoder):
    wizard = make_wizard()
    assert await wizard.search_cities(" Pa ") == []
    assert geocoder.queries == []
    results = await wizard.search_cities("Paris")
    assert [r.country for r in results] == ["France", "United States"]


@pytest.mark.asyncio
async def test_search_failure_returns_empty(make_wizard):
    wizard = make_wizard(geocoder=FakeGeocoder(fail=True))
    assert await wizard.search_cities("Paris") == []


@pytest.mark.asyncio
async def test_search_result_can_be_added(make_wizard):
    wizard = make_wizard()
    results = await wizard.search_cities("Paris")
    city = wizard.add_city(results[0])
    assert city.name == "Paris"
    assert city.latitude == PARIS[0]


@pytest.mark.asyncio
async def test_map_tap_adds_reverse_geocoded_city(make_wizard):
    wizard = make_wizard()
    city = await wizard.add_city_from_map(*LYON)
    assert city.name == "Lyon"
    assert city.country == "France"
    assert (city.latitude, city.longitude) == LYON


@pytest.mark.asyncio
async def test_map_tap_ignored_when_lookup_fails(make_wizard):
    wizard = make_wizard(geocoder=FakeGeocoder(reverse=None))
    assert await wizard.add_city_from_map(*LYON) is None
    wizard = make_wizard(geocoder=FakeGeocoder(fail=True))
    assert await wizard.add_city_from_map(*LYON) is None
    assert await wizard.add_city_from_map(120.0, 0.0) is None
    assert wizard.ordered_cities() == []


# ----------------------------------------------------------------------
# Home location
# ----------------------------------------------------------------------

@pytest.mark.asyncio
async def test_entering_review_resolves_home(make_wizard):
    wizard = make_wizard()
    wizard.set_name("Trip")
    add(wizard, "Paris", PARIS)
    add(wizard, "Lyon", LYON)
    await wizard.next()
    assert wizard.home_status is HomeLocationStatus.IDLE
    await wizard.next()
    assert wizard.home_status is HomeLocationStatus.PENDING
    assert wizard.legs()[0].key == 1

    await wizard.start_home_location_lookup()
    assert wizard.home_status is HomeLocationStatus.RESOLVED
    assert wizard.home_location == Coordinates(*BERLIN)
    keys = [leg.key for leg in wizard.legs()]
    assert keys == [LegKey.HOME_TO_FIRST, 1, LegKey.RETURN_HOME]
    assert wizard.total_distance_km() > 392


@pytest.mark.asyncio
async def test_denied_permission_leaves_no_home_legs(make_wizard):
    provider = FakeLocationProvider(granted=False)
    wizard = make_wizard(location_provider=provider)
    wizard.set_name("Trip")
    add(wizard, "Paris", PARIS)
    await wizard.next()
    await wizard.next()
    await wizard._home_task
    assert wizard.home_status is HomeLocationStatus.DENIED
    assert all(not leg.is_home_leg for leg in wizard.legs())

    # re-entering the review step asks again
    wizard.back()
    provider.granted = True
    await wizard.next()
    await wizard._home_task
    assert provider.permission_requests == 2
    assert wizard.home_status is HomeLocationStatus.RESOLVED


@pytest.mark.asyncio
async def test_location_failure_is_not_fatal(make_wizard):
    wizard = make_wizard(location_provider=FakeLocationProvider(error=RuntimeError("no fix")))
    wizard.set_name("Trip")
    add(wizard, "Paris", PARIS)
    await wizard.next()
    await wizard.next()
    await wizard._home_task
    assert wizard.home_status is HomeLocationStatus.FAILED
    assert wizard.home_location is None
    assert wizard.step is WizardStep.REVIEW


@pytest.mark.asyncio
async def test_close_cancels_pending_lookup(make_wizard):
    provider = FakeLocationProvider()
    provider.gate = asyncio.Event()
    wizard = make_wizard(location_provider=provider)
    wizard.set_name("Trip")
    add(wizard, "Paris", PARIS)
    await wizard.next()
    await wizard.next()
    task = wizard._home_task
    await asyncio.sleep(0)

    wizard.close()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert task.cancelled()
    assert wizard.home_location is None
    assert wizard.home_status is HomeLocationStatus.IDLE


# ----------------------------------------------------------------------
# Save
# ----------------------------------------------------------------------

@pytest.mark.asyncio
async def test_save_creates_trip_then_cities_in_order(make_wizard, trip_repository, saved_trips, overlay_registry, close_calls):
    wizard = make_wizard()
    wizard.set_dates(date(2025, 7, 1), date(2025, 7, 10))
    await walk_to_budget(wizard, ("Paris", PARIS), ("Lyon", LYON))

    assert await wizard.next() is True

    assert [call for call, _ in trip_repository.calls] == [
        "create_trip", "create_city", "create_city", "get_trip",
    ]
    trip_payload = trip_repository.calls_named("create_trip")[0]
    assert trip_payload.name == "Summer 2025"
    assert trip_payload.destination == "Paris"
    assert trip_payload.start_date == "2025-07-01T00:00:00.000Z"
    assert trip_payload.end_date == "2025-07-10T23:59:59.999Z"
    assert trip_payload.budget == 0
    assert trip_payload.budget_currency == "EUR"
    assert trip_payload.trip_type == "multi-city"

    cities = trip_repository.calls_named("create_city")
    assert [c.order_index for c in cities] == [0, 1]
    assert cities[0].transport_mode is None
    assert cities[1].transport_mode == TransportMode.FLIGHT

    assert len(saved_trips) == 1
    assert [c.name for c in saved_trips[0].cities] == ["Paris", "Lyon"]
    assert wizard.closed
    assert overlay_registry.open_count == 0
    assert close_calls == [True]


@pytest.mark.asyncio
async def test_save_sends_chosen_modes(make_wizard, trip_repository):
    wizard = make_wizard()
    await walk_to_budget(wizard, ("Paris", PARIS), ("Lyon", LYON))
    wizard.set_transport_mode(1, TransportMode.TRAIN)
    wizard.set_budget("1200")
    await wizard.save()
    assert trip_repository.calls_named("create_city")[1].transport_mode == TransportMode.TRAIN
    assert trip_repository.calls_named("create_trip")[0].budget == 1200


@pytest.mark.asyncio
async def test_save_accepts_async_callback(make_wizard):
    received = []

    async def on_save(trip):
        await asyncio.sleep(0)
        received.append(trip.id)

    wizard = make_wizard(on_save=on_save)
    await walk_to_budget(wizard, ("Paris", PARIS))
    trip = await wizard.save()
    assert trip.id == "trip-1"
    assert received == ["trip-1"]


@pytest.mark.asyncio
async def test_trip_failure_keeps_wizard_open(make_wizard, saved_trips, overlay_registry):
    repo = FakeTripRepository(fail_trip=True)
    wizard = make_wizard(trip_repository=repo)
    await walk_to_budget(wizard, ("Paris", PARIS), ("Lyon", LYON))

    assert await wizard.next() is False
    assert wizard.error
    assert wizard.step is WizardStep.BUDGET
    assert not wizard.closed
    assert not wizard.saving
    assert repo.calls_named("create_city") == []
    assert saved_trips == []
    assert overlay_registry.open_count == 1
    assert wizard.draft.name == "Summer 2025"


@pytest.mark.asyncio
async def test_trip_without_id_is_an_error(make_wizard):
    repo = FakeTripRepository(trip_id=None)
    wizard = make_wizard(trip_repository=repo)
    await walk_to_budget(wizard, ("Paris", PARIS))
    assert await wizard.save() is None
    assert wizard.error == "Trip created but no ID returned"
    assert repo.calls_named("create_city") == []


@pytest.mark.asyncio
async def test_city_failure_reports_partial_save_and_resumes(make_wizard, saved_trips):
    repo = FakeTripRepository(fail_city_at=1)
    wizard = make_wizard(trip_repository=repo)
    await walk_to_budget(wizard, ("Paris", PARIS), ("Lyon", LYON), ("Rome", ROME))

    assert await wizard.save() is None
    assert "1 of 3" in wizard.error
    assert not wizard.closed

    trip = await wizard.save()
    assert trip is not None
    assert wizard.error is None
    assert len(repo.calls_named("create_trip")) == 1
    assert [c.order_index for c in repo.calls_named("create_city")] == [0, 1, 1, 2]
    assert [c.name for c in saved_trips[0].cities] == ["Paris", "Lyon", "Rome"]


@pytest.mark.asyncio
async def test_retry_after_edit_starts_a_new_trip(make_wizard):
    repo = FakeTripRepository(fail_city_at=1)
    wizard = make_wizard(trip_repository=repo)
    await walk_to_budget(wizard, ("Paris", PARIS), ("Lyon", LYON))
    await wizard.save()
    wizard.set_name("Summer 2025 (v2)")
    assert await wizard.save() is not None
    assert len(repo.calls_named("create_trip")) == 2
    assert repo.calls_named("create_trip")[1].name == "Summer 2025 (v2)"


@pytest.mark.asyncio
async def test_save_before_budget_step_is_refused(make_wizard, trip_repository):
    wizard = make_wizard()
    wizard.set_name("Trip")
    add(wizard, "Paris", PARIS)
    assert await wizard.save() is None
    assert trip_repository.calls == []


class GatedTripRepository(FakeTripRepository):
    """Holds the first create_city call open until ``release`` is set."""

    def __init__(self):
        super().__init__()
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def create_city(self, trip_id, payload):
        if not self.entered.is_set():
            self.entered.set()
            await self.release.wait()
        return await super().create_city(trip_id, payload)


@pytest.mark.asyncio
async def test_edits_during_save_are_refused(make_wizard, saved_trips):
    repo = GatedTripRepository()
    wizard = make_wizard(trip_repository=repo)
    await walk_to_budget(wizard, ("Paris", PARIS), ("Lyon", LYON), ("Rome", ROME))

    save_task = asyncio.create_task(wizard.save())
    await repo.entered.wait()
    assert wizard.saving

    assert wizard.move_city(0, 2) is False
    assert wizard.remove_city(1) is None
    assert wizard.add_city(CityCandidate(name="Berlin", latitude=BERLIN[0], longitude=BERLIN[1])) is None
    assert wizard.update_city(0, name="Paname") is None
    assert wizard.set_transport_mode(1, TransportMode.BUS) is False
    wizard.set_name("Renamed")
    wizard.back()
    assert wizard.step is WizardStep.BUDGET
    assert wizard.draft.name == "Summer 2025"

    repo.release.set()
    trip = await save_task

    assert trip is not None
    assert wizard.error is None
    cities = repo.calls_named("create_city")
    assert [(c.name, c.order_index) for c in cities] == [("Paris", 0), ("Lyon", 1), ("Rome", 2)]
    assert [c.name for c in saved_trips[0].cities] == ["Paris", "Lyon", "Rome"]


@pytest.mark.asyncio
async def test_saved_cities_match_route_when_save_started(make_wizard):
    repo = GatedTripRepository()
    wizard = make_wizard(trip_repository=repo)
    await walk_to_budget(wizard, ("Paris", PARIS), ("Lyon", LYON))
    wizard.set_transport_mode(1, TransportMode.TRAIN)

    save_task = asyncio.create_task(wizard.save())
    await repo.entered.wait()
    # bypass the wizard guard to change the route directly
    wizard.route.move_city(0, 1)
    repo.release.set()
    await save_task

    cities = repo.calls_named("create_city")
    assert [c.name for c in cities] == ["Paris", "Lyon"]
    assert cities[1].transport_mode == TransportMode.TRAIN
