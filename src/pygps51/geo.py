"""Great-circle distance between coordinates."""

from __future__ import annotations

import math
from typing import Protocol

from pygps51._constants import EARTH_RADIUS_KM


class HasLatLon(Protocol):
    @property
    def latitude(self) -> float: ...

    @property
    def longitude(self) -> float: ...


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the haversine distance in kilometres between two points.

    Any non-finite input yields ``0.0`` rather than raising, so a single
    corrupt sample cannot poison an accumulated distance.
    """
    if not all(math.isfinite(v) for v in (lat1, lon1, lat2, lon2)):
        return 0.0
    if lat1 == lat2 and lon1 == lon2:
        return 0.0

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance(a: HasLatLon, b: HasLatLon) -> float:
    """Distance in km between two objects exposing ``latitude``/``longitude``."""
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def is_valid_coordinate(latitude: float | None, longitude: float | None) -> bool:
    """Whether a coordinate is finite, in range and not the ``(0, 0)`` placeholder."""
    if latitude is None or longitude is None:
        return False
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return False
    if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
        return False
    return not (latitude == 0.0 and longitude == 0.0)
