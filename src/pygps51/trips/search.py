"""Map stored vendor trips to a search shape and filter them by place name."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from pygps51.geo import is_valid_coordinate
from pygps51.ingestion.normalize import first_present, safe_float, safe_str
from pygps51.models._base import parse_vendor_timestamp
from pygps51.models.search import SearchTrip
from pygps51.trips.ghost import GhostTripFilter

_logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "unknown"

AddressResolver = Callable[[float, float], Awaitable[str | None]]
GhostValidator = Callable[[SearchTrip], bool]


def map_vendor_trip_to_search_trip(row: Mapping[str, Any]) -> SearchTrip:
    """Normalize a stored trip row.

    Distances stored in metres become kilometres; durations and speeds pass
    through unchanged. Missing fields stay ``None``.

    Parameters
    ----------
    row : Mapping
        Stored trip row (``distance_meters``, ``duration_seconds``,
        ``max_speed_kmh``, ``avg_speed_kmh``, start/end coordinates...).

    Returns
    -------
    SearchTrip
        The normalized trip.
    """
    distance_m = safe_float(first_present(row, "distance_meters", "distance_m"))
    distance_km = safe_float(row.get("distance_km"))
    if distance_m is not None:
        distance_km = distance_m / 1000.0

    start_time = parse_vendor_timestamp(row.get("start_time"))
    end_time = parse_vendor_timestamp(row.get("end_time"))
    duration = safe_float(row.get("duration_seconds"))
    if duration is None and start_time is not None and end_time is not None:
        duration = (end_time - start_time).total_seconds()

    return SearchTrip(
        id=safe_str(row.get("id")),
        device_id=safe_str(row.get("device_id")),
        start_time=start_time,
        end_time=end_time,
        start_latitude=safe_float(first_present(row, "start_latitude", "start_lat")),
        start_longitude=safe_float(first_present(row, "start_longitude", "start_lon")),
        end_latitude=safe_float(first_present(row, "end_latitude", "end_lat")),
        end_longitude=safe_float(first_present(row, "end_longitude", "end_lon")),
        distance_km=distance_km,
        duration_seconds=duration,
        max_speed=safe_float(first_present(row, "max_speed_kmh", "max_speed")),
        avg_speed=safe_float(first_present(row, "avg_speed_kmh", "avg_speed")),
    )


async def _resolve(
    trip: SearchTrip,
    resolve_address: AddressResolver,
    cache: dict[tuple[float, float], str],
) -> str:
    lat, lon = trip.end_latitude, trip.end_longitude
    if not is_valid_coordinate(lat, lon):
        return UNKNOWN_LOCATION
    assert lat is not None and lon is not None  # noqa: S101
    key = (round(lat, 5), round(lon, 5))
    cached = cache.get(key)
    if cached is not None:
        return cached
    try:
        name = await resolve_address(lat, lon)
    except Exception:
        _logger.debug("Address resolution failed lat=%s lon=%s", lat, lon, exc_info=True)
        name = None
    resolved = name.strip() if isinstance(name, str) and name.strip() else UNKNOWN_LOCATION
    cache[key] = resolved
    return resolved


async def filter_by_location(
    trips: Iterable[SearchTrip],
    query: str,
    resolve_address: AddressResolver,
    ghost_validator: GhostValidator | None = None,
    limit: int | None = None,
) -> list[SearchTrip]:
    """Return trips whose resolved end location contains *query*.

    Matching is case-insensitive. Ghost trips are excluded whatever their
    location; unresolvable locations become ``"unknown"``. Each returned
    trip carries its resolved ``end_location_name``.

    Parameters
    ----------
    trips : Iterable[SearchTrip]
        Candidate trips, typically most recent first.
    query : str
        Place-name fragment. An empty query matches nothing.
    resolve_address : callable
        ``async (lat, lon) -> str | None`` reverse geocoder.
    ghost_validator : callable or None
        ``trip -> bool`` returning ``True`` for ghosts. Defaults to
        :class:`GhostTripFilter` with its standard thresholds.
    limit : int or None
        Stop after this many matches.
    """
    needle = query.strip().lower()
    if not needle:
        return []
    is_ghost = ghost_validator if ghost_validator is not None else GhostTripFilter().is_ghost

    cache: dict[tuple[float, float], str] = {}
    matches: list[SearchTrip] = []
    for trip in trips:
        if is_ghost(trip):
            continue
        name = await _resolve(trip, resolve_address, cache)
        if needle in name.lower():
            matches.append(trip.model_copy(update={"end_location_name": name}))
            if limit is not None and len(matches) >= limit:
                break
    return matches
