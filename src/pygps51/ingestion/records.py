"""Vendor record parsing at the ingestion boundary.

Vendor report rows are loosely typed. Each row is validated on its own:
rows that fail validation or lack required fields are skipped and
counted, never allowed to abort the batch.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from pygps51.exceptions import Gps51DataIntegrityError
from pygps51 import geo
from pygps51.geo import is_valid_coordinate
from pygps51.models._base import VendorBaseModel
from pygps51.models.position import Coordinate, PositionSample
from pygps51.models.track import VendorTrackPoint
from pygps51.models.trip import TripCandidate, VendorTripRecord

_logger = logging.getLogger(__name__)

TRecord = TypeVar("TRecord", bound=VendorBaseModel)
T = TypeVar("T")


@dataclass
class ParseResult(Generic[T]):
    items: list[T] = field(default_factory=list)
    skipped: int = 0


def parse_records(rows: Iterable[Any], model: type[TRecord]) -> ParseResult[TRecord]:
    """Validate each row against *model*, skipping rows that do not fit."""
    result: ParseResult[TRecord] = ParseResult()
    for row in rows:
        if not isinstance(row, dict):
            result.skipped += 1
            continue
        try:
            result.items.append(model.model_validate(row))
        except ValidationError:
            _logger.warning("Skipping malformed %s row", model.__name__)
            _logger.debug("Malformed %s row", model.__name__, exc_info=True)
            result.skipped += 1
    return result


def track_points_to_samples(device_id: str, rows: Iterable[Any]) -> ParseResult[PositionSample]:
    """Convert ``querytrack`` rows to position samples.

    Rows without a timestamp or with an invalid coordinate are skipped.
    """
    parsed = parse_records(rows, VendorTrackPoint)
    result: ParseResult[PositionSample] = ParseResult(skipped=parsed.skipped)
    for point in parsed.items:
        if point.timestamp is None or not is_valid_coordinate(point.latitude, point.longitude):
            result.skipped += 1
            continue
        assert point.latitude is not None and point.longitude is not None  # noqa: S101
        result.items.append(
            PositionSample(
                device_id=point.device_id or device_id,
                latitude=point.latitude,
                longitude=point.longitude,
                timestamp=point.timestamp,
                speed=point.speed,
                ignition_on=point.ignition_on,
                heading=point.heading,
            )
        )
    if result.skipped:
        _logger.debug("Track rows skipped device=%s count=%d", device_id, result.skipped)
    return result


def _endpoint(latitude: float | None, longitude: float | None) -> Coordinate | None:
    if not is_valid_coordinate(latitude, longitude):
        return None
    assert latitude is not None and longitude is not None  # noqa: S101
    return Coordinate(latitude=latitude, longitude=longitude)


def vendor_trip_to_candidate(device_id: str, record: VendorTripRecord) -> TripCandidate:
    """Build a candidate from a pre-aggregated vendor trip row.

    Missing or placeholder endpoints are kept as ``None`` for a later
    backfill. When the row carries no distance, the great-circle distance
    between the reported endpoints is used.

    Raises
    ------
    Gps51DataIntegrityError
        If the row lacks timestamps or violates a trip invariant.
    """
    if record.start_time is None or record.end_time is None:
        raise Gps51DataIntegrityError(f"Vendor trip for device {device_id} is missing start or end time")

    start_coord = _endpoint(record.start_lat, record.start_lon)
    end_coord = _endpoint(record.end_lat, record.end_lon)
    distance_km = record.distance_km
    if distance_km is None:
        distance_km = 0.0
        if start_coord is not None and end_coord is not None:
            distance_km = geo.distance(start_coord, end_coord)

    return TripCandidate(
        device_id=record.device_id or device_id,
        start_time=record.start_time,
        end_time=record.end_time,
        start_coord=start_coord,
        end_coord=end_coord,
        distance_km=distance_km,
        avg_speed_kmh=round(record.avg_speed_kmh or 0.0, 1),
        max_speed_kmh=round(record.max_speed_kmh or 0.0, 1),
        source="vendor",
    )


def vendor_trips_to_candidates(device_id: str, rows: Iterable[Any]) -> ParseResult[TripCandidate]:
    """Convert ``querytrips`` rows to candidates, skipping unusable rows."""
    parsed = parse_records(rows, VendorTripRecord)
    result: ParseResult[TripCandidate] = ParseResult(skipped=parsed.skipped)
    for record in parsed.items:
        try:
            result.items.append(vendor_trip_to_candidate(device_id, record))
        except Gps51DataIntegrityError as exc:
            _logger.warning("Discarding vendor trip: %s", exc)
            result.skipped += 1
    return result
