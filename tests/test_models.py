from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from pygps51.exceptions import Gps51DataIntegrityError
from pygps51.models import (
    AccRecord,
    AccState,
    CommandStatus,
    Coordinate,
    PositionSample,
    TripCandidate,
    VendorTrackPoint,
    VendorTripRecord,
)
from pygps51.models._base import format_vendor_datetime, parse_vendor_timestamp

START = datetime(2026, 1, 5, 10, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


class TestVendorTimestamps:
    def test_epoch_seconds_and_milliseconds(self) -> None:
        seconds = START.timestamp()
        assert parse_vendor_timestamp(seconds) == START
        assert parse_vendor_timestamp(int(seconds * 1000)) == START
        assert parse_vendor_timestamp(str(int(seconds * 1000))) == START

    def test_wall_clock_string_is_gmt_plus_8(self) -> None:
        assert parse_vendor_timestamp("2026-01-05 18:00:00") == START
        assert parse_vendor_timestamp("2026-01-05 11:00:00", offset_hours=1) == START

    @pytest.mark.parametrize("value", [None, "", "--", "not a date", 0, -5, math.nan, True])
    def test_unusable_values(self, value: object) -> None:
        assert parse_vendor_timestamp(value) is None

    def test_format_round_trips_wall_clock(self) -> None:
        assert format_vendor_datetime(START) == "2026-01-05 18:00:00"
        assert format_vendor_datetime(START.replace(tzinfo=None)) == "2026-01-05 18:00:00"


# ---------------------------------------------------------------------------
# Vendor rows
# ---------------------------------------------------------------------------


def test_vendor_trip_record_units() -> None:
    record = VendorTripRecord.model_validate(
        {
            "deviceid": 860000000000001,
            "starttime": "2026-01-05 18:00:00",
            "endtime": int((START + timedelta(minutes=30)).timestamp() * 1000),
            "startlat": "6.5244",
            "startlon": 3.3792,
            "endlat": 6.6018,
            "endlon": 3.3515,
            "distance": 12345,
            "maxspeed": 88000,
            "avgspeed": "--",
        }
    )
    assert record.device_id == "860000000000001"
    assert record.start_time == START
    assert record.end_time == START + timedelta(minutes=30)
    assert record.start_lat == 6.5244
    assert record.distance_km == pytest.approx(12.345)
    assert record.max_speed_kmh == 88.0
    assert record.avg_speed_kmh is None
    assert record.raw["avgspeed"] == "--"


def test_vendor_trip_record_alternate_keys() -> None:
    record = VendorTripRecord.model_validate({"begintime": "2026-01-05 18:00:00", "slat": 1.5, "totaldistance": 500})
    assert record.start_time == START
    assert record.start_lat == 1.5
    assert record.distance_km == 0.5


class TestVendorTrackPoint:
    def test_ignition_from_status_bit(self) -> None:
        assert VendorTrackPoint.model_validate({"status": 3}).ignition_on is True
        assert VendorTrackPoint.model_validate({"status": "2"}).ignition_on is False

    def test_ignition_from_status_text(self) -> None:
        assert VendorTrackPoint.model_validate({"strstatus": "Static, ACC ON"}).ignition_on is True
        assert VendorTrackPoint.model_validate({"strstatusen": "acc off"}).ignition_on is False
        assert VendorTrackPoint.model_validate({"strstatus": "Moving"}).ignition_on is None

    def test_fields(self) -> None:
        point = VendorTrackPoint.model_validate(
            {"callat": 6.5, "callon": 3.3, "gpstime": START.timestamp() * 1000, "speed": 42500, "course": 90}
        )
        assert point.latitude == 6.5
        assert point.longitude == 3.3
        assert point.timestamp == START
        assert point.speed == 42.5
        assert point.heading == 90.0


class TestAccRecord:
    def test_states(self) -> None:
        assert AccRecord.model_validate({"accstate": 3}).acc_state == AccState.ON
        assert AccRecord.model_validate({"accstate": "2"}).acc_state == AccState.OFF
        assert AccRecord.model_validate({"accstate": 9}).acc_state == AccState.UNKNOWN
        assert AccRecord.model_validate({}).acc_state == AccState.UNKNOWN

    def test_covers_is_end_inclusive(self) -> None:
        record = AccRecord.model_validate(
            {"accstate": 3, "begintime": "2026-01-05 18:00:00", "endtime": "2026-01-05 18:10:00"}
        )
        assert record.covers(START)
        assert record.covers(START + timedelta(minutes=10))
        assert not record.covers(START + timedelta(minutes=10, seconds=1))
        assert not AccRecord.model_validate({"accstate": 3}).covers(START)


def test_command_status_aliases() -> None:
    status = CommandStatus.model_validate({"commandid": 77, "commandstatus": "1", "responsestr": "OK!"})
    assert status.command_id == "77"
    assert status.command_status == 1
    assert status.response == "OK!"


# ---------------------------------------------------------------------------
# Trip candidates
# ---------------------------------------------------------------------------


def _candidate(**overrides: object) -> TripCandidate:
    fields: dict[str, object] = {
        "device_id": "dev-1",
        "start_time": START,
        "end_time": START + timedelta(minutes=10),
        "start_coord": Coordinate(latitude=6.5, longitude=3.3),
        "end_coord": Coordinate(latitude=6.6, longitude=3.4),
        "distance_km": 12.0,
    }
    fields.update(overrides)
    return TripCandidate(**fields)  # type: ignore[arg-type]


class TestTripCandidate:
    def test_valid(self) -> None:
        trip = _candidate()
        assert trip.duration_seconds == 600
        assert trip.key == ("dev-1", START)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"end_time": START},
            {"end_time": START - timedelta(seconds=1)},
            {"distance_km": -0.1},
            {"distance_km": math.inf},
            {"start_coord": Coordinate(latitude=math.nan, longitude=3.3)},
            {"end_coord": Coordinate(latitude=6.5, longitude=math.inf)},
        ],
    )
    def test_integrity_violations(self, overrides: dict[str, object]) -> None:
        with pytest.raises(Gps51DataIntegrityError):
            _candidate(**overrides)

    def test_frozen(self) -> None:
        trip = _candidate()
        with pytest.raises(ValidationError):
            trip.distance_km = 1.0  # type: ignore[misc]


def test_position_sample_requires_aware_timestamp() -> None:
    with pytest.raises(ValidationError):
        PositionSample(device_id="dev-1", latitude=6.5, longitude=3.3, timestamp=datetime(2026, 1, 5, 10, 0))
