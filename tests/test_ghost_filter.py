from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from pygps51.models.position import Coordinate
from pygps51.models.search import SearchTrip
from pygps51.models.trip import TripCandidate
from pygps51.trips.ghost import GhostTripFilter

BASE = datetime(2026, 1, 5, 10, 0, tzinfo=UTC)


def _candidate(distance_km: float, duration_s: float) -> TripCandidate:
    return TripCandidate(
        device_id="dev-1",
        start_time=BASE,
        end_time=BASE + timedelta(seconds=duration_s),
        start_coord=Coordinate(latitude=6.5, longitude=3.3),
        end_coord=Coordinate(latitude=6.5, longitude=3.3),
        distance_km=distance_km,
    )


@pytest.mark.parametrize(
    ("distance_km", "duration_s", "ghost"),
    [
        (0.0, 5, True),
        (0.009, 14.9, True),
        (0.0, 15, False),
        (0.0, 600, False),
        (0.01, 5, False),
        (2.5, 900, False),
    ],
)
def test_default_thresholds(distance_km: float, duration_s: float, ghost: bool) -> None:
    gf = GhostTripFilter()
    trip = _candidate(distance_km, duration_s)
    assert gf.is_ghost(trip) is ghost
    assert gf.accept(trip) is not ghost
    assert gf(trip) is ghost


def test_missing_values_count_as_zero() -> None:
    gf = GhostTripFilter()
    assert gf.is_ghost(SearchTrip()) is True
    assert gf.is_ghost(SearchTrip(duration_seconds=120)) is False


def test_implausible_speed_is_ghost_when_enabled() -> None:
    jump = _candidate(50.0, 60)
    assert GhostTripFilter().is_ghost(jump) is False
    assert GhostTripFilter(max_plausible_speed_kmh=300).is_ghost(jump) is True
    assert GhostTripFilter(max_plausible_speed_kmh=300).is_ghost(_candidate(2.0, 60)) is False


def test_custom_thresholds() -> None:
    gf = GhostTripFilter(min_duration_seconds=120, min_distance_km=0.5)
    assert gf.is_ghost(_candidate(0.2, 90)) is True
    assert gf.is_ghost(_candidate(0.2, 150)) is False
