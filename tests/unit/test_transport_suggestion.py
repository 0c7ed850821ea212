"""
Unit tests for transport mode suggestions
"""
import pytest

from tripplanner.config.settings import TransportSettings
from tripplanner.models import City, TransportMode
from tripplanner.services.transport_suggestion import TransportSuggestionEngine


@pytest.fixture
def engine():
    return TransportSuggestionEngine(TransportSettings())


@pytest.mark.parametrize("distance,first", [
    (0.0, TransportMode.WALK),
    (1.0, TransportMode.WALK),
    (2.0, TransportMode.CAR),
    (30.0, TransportMode.CAR),
    (50.0, TransportMode.TRAIN),
    (299.9, TransportMode.TRAIN),
    (300.0, TransportMode.FLIGHT),
    (5000.0, TransportMode.FLIGHT),
])
def test_default_mode_by_distance(engine, distance, first):
    assert engine.default_mode(distance) == first


def test_unknown_distance_prefers_car(engine):
    assert engine.suggest(None)[0] == TransportMode.CAR


@pytest.mark.parametrize("distance", [None, 0.5, 10, 120, 800, 5000])
def test_every_mode_returned_once(engine, distance):
    suggestions = engine.suggest(distance)
    assert len(suggestions) == len(TransportMode)
    assert set(suggestions) == set(TransportMode)


def test_short_leg_never_suggests_flight_first(engine):
    assert engine.suggest(1)[0] != TransportMode.FLIGHT


def test_island_destination_prefers_ferry_when_near(engine):
    origin = City(id="a", name="Athens")
    island = City(id="b", name="Mykonos")
    assert engine.suggest(150, origin, island)[0] == TransportMode.FERRY


def test_island_destination_prefers_flight_when_far(engine):
    assert engine.suggest(1200, "Berlin", "Santorini")[0] == TransportMode.FLIGHT


def test_island_keywords_match_case_insensitively(engine):
    assert engine.is_island({"name": "Isle of Skye"})
    assert not engine.is_island("Lyon")
    assert not engine.is_island(None)


def test_thresholds_come_from_settings():
    engine = TransportSuggestionEngine(
        TransportSettings(walk_max_km=5, local_max_km=100, regional_max_km=600)
    )
    assert engine.default_mode(4) == TransportMode.WALK
    assert engine.default_mode(400) == TransportMode.TRAIN


def test_non_increasing_thresholds_rejected():
    with pytest.raises(ValueError):
        TransportSettings(walk_max_km=60, local_max_km=50, regional_max_km=300)
