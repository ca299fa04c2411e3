from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pygps51.models.search import SearchTrip
from pygps51.trips.search import UNKNOWN_LOCATION, filter_by_location, map_vendor_trip_to_search_trip


class FakeGeocoder:
    def __init__(
        self,
        names: dict[tuple[float, float], str | None],
        fail: set[tuple[float, float]] | None = None,
    ) -> None:
        self.names = names
        self.fail = fail or set()
        self.calls: list[tuple[float, float]] = []

    async def __call__(self, lat: float, lon: float) -> str | None:
        self.calls.append((lat, lon))
        if (lat, lon) in self.fail:
            raise RuntimeError("geocoder unavailable")
        return self.names.get((lat, lon))


def _trip(trip_id: str, lat: float | None, lon: float | None, *, km: float = 5.0, seconds: float = 600) -> SearchTrip:
    return SearchTrip(
        id=trip_id,
        end_latitude=lat,
        end_longitude=lon,
        distance_km=km,
        duration_seconds=seconds,
    )


# ---------------------------------------------------------------------------
# Mapping
# ---------------------------------------------------------------------------


def test_map_vendor_trip_converts_metres() -> None:
    trip = map_vendor_trip_to_search_trip(
        {
            "id": "t-1",
            "device_id": "860000000000001",
            "distance_meters": 12345,
            "duration_seconds": 1800,
            "max_speed_kmh": 88,
        }
    )
    assert trip.distance_km == pytest.approx(12.345)
    assert trip.duration_seconds == 1800
    assert trip.max_speed == 88
    assert trip.avg_speed is None
    assert trip.id == "t-1"


def test_map_vendor_trip_parses_times_and_derives_duration() -> None:
    trip = map_vendor_trip_to_search_trip(
        {
            "start_time": "2026-01-05 18:00:00",
            "end_time": "2026-01-05 18:25:00",
            "start_lat": "6.5",
            "end_lon": 3.4,
        }
    )
    assert trip.start_time == datetime(2026, 1, 5, 10, 0, tzinfo=UTC)
    assert trip.duration_seconds == 1500
    assert trip.start_latitude == 6.5
    assert trip.end_longitude == 3.4
    assert trip.distance_km is None


def test_map_vendor_trip_keeps_kilometres_when_no_metres() -> None:
    assert map_vendor_trip_to_search_trip({"distance_km": 3.2}).distance_km == 3.2


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_filter_matches_case_insensitively() -> None:
    geocoder = FakeGeocoder({(6.6, 3.35): "Ikeja, Lagos", (9.07, 7.4): "Wuse, Abuja"})
    trips = [_trip("a", 6.6, 3.35), _trip("b", 9.07, 7.4)]

    matches = await filter_by_location(trips, "LAGOS", geocoder)

    assert [t.id for t in matches] == ["a"]
    assert matches[0].end_location_name == "Ikeja, Lagos"


@pytest.mark.asyncio
async def test_filter_excludes_ghost_trips() -> None:
    geocoder = FakeGeocoder({(6.6, 3.35): "Ikeja, Lagos"})
    trips = [_trip("ghost", 6.6, 3.35, km=0.001, seconds=5), _trip("real", 6.6, 3.35)]

    matches = await filter_by_location(trips, "lagos", geocoder)

    assert [t.id for t in matches] == ["real"]


@pytest.mark.asyncio
async def test_custom_ghost_validator() -> None:
    geocoder = FakeGeocoder({(6.6, 3.35): "Ikeja, Lagos"})
    trips = [_trip("a", 6.6, 3.35), _trip("b", 6.6, 3.35)]

    matches = await filter_by_location(trips, "lagos", geocoder, ghost_validator=lambda t: t.id == "a")

    assert [t.id for t in matches] == ["b"]


@pytest.mark.asyncio
async def test_unresolvable_locations_become_unknown() -> None:
    geocoder = FakeGeocoder({(9.07, 7.4): None}, fail={(6.6, 3.35)})
    trips = [_trip("failing", 6.6, 3.35), _trip("blank", 9.07, 7.4), _trip("no-coords", None, None)]

    assert await filter_by_location(trips, "lagos", geocoder) == []
    matches = await filter_by_location(trips, UNKNOWN_LOCATION, geocoder)
    assert {t.end_location_name for t in matches} == {UNKNOWN_LOCATION}
    assert len(matches) == 3


@pytest.mark.asyncio
async def test_resolution_is_cached_per_call() -> None:
    geocoder = FakeGeocoder({(6.6, 3.35): "Ikeja, Lagos"})
    trips = [_trip(str(i), 6.6, 3.35) for i in range(4)]

    matches = await filter_by_location(trips, "ikeja", geocoder)

    assert len(matches) == 4
    assert geocoder.calls == [(6.6, 3.35)]


@pytest.mark.asyncio
async def test_limit_stops_early() -> None:
    geocoder = FakeGeocoder({(6.6, 3.35 + i / 100): "Lagos" for i in range(5)})
    trips = [_trip(str(i), 6.6, 3.35 + i / 100) for i in range(5)]

    matches = await filter_by_location(trips, "lagos", geocoder, limit=2)

    assert [t.id for t in matches] == ["0", "1"]
    assert len(geocoder.calls) == 2


@pytest.mark.asyncio
async def test_empty_query_matches_nothing() -> None:
    geocoder = FakeGeocoder({(6.6, 3.35): "Lagos"})
    assert await filter_by_location([_trip("a", 6.6, 3.35)], "  ", geocoder) == []
    assert geocoder.calls == []
