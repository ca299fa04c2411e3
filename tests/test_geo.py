from __future__ import annotations

import math

import pytest

from pygps51.geo import distance, haversine_km, is_valid_coordinate
from pygps51.models.position import Coordinate

# One degree of latitude on a 6371 km sphere.
_ONE_DEGREE_KM = 6371.0 * math.pi / 180.0


def test_identical_points_are_zero() -> None:
    assert haversine_km(6.5244, 3.3792, 6.5244, 3.3792) == 0.0


def test_one_degree_of_latitude() -> None:
    assert haversine_km(0.0, 10.0, 1.0, 10.0) == pytest.approx(_ONE_DEGREE_KM, rel=1e-9)


def test_known_city_distance() -> None:
    # Lagos to Abuja, roughly 524 km great-circle.
    assert haversine_km(6.5244, 3.3792, 9.0765, 7.3986) == pytest.approx(526, abs=5)


def test_symmetric() -> None:
    a = haversine_km(51.5, -0.12, 48.85, 2.35)
    b = haversine_km(48.85, 2.35, 51.5, -0.12)
    assert a == pytest.approx(b)


def test_antipodal_points_do_not_raise() -> None:
    assert haversine_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * 6371.0, rel=1e-9)


@pytest.mark.parametrize(
    "values",
    [
        (math.nan, 0.0, 1.0, 1.0),
        (1.0, math.inf, 1.0, 1.0),
        (1.0, 1.0, -math.inf, 1.0),
        (1.0, 1.0, 1.0, math.nan),
    ],
)
def test_non_finite_input_is_zero(values: tuple[float, float, float, float]) -> None:
    assert haversine_km(*values) == 0.0


def test_distance_uses_latitude_longitude_attributes() -> None:
    a = Coordinate(latitude=0.0, longitude=10.0)
    b = Coordinate(latitude=1.0, longitude=10.0)
    assert distance(a, b) == pytest.approx(_ONE_DEGREE_KM)


@pytest.mark.parametrize(
    ("lat", "lon", "expected"),
    [
        (6.5, 3.3, True),
        (-90.0, 180.0, True),
        (0.0, 0.0, False),
        (None, 3.3, False),
        (6.5, None, False),
        (91.0, 3.3, False),
        (6.5, -181.0, False),
        (math.nan, 3.3, False),
    ],
)
def test_is_valid_coordinate(lat: float | None, lon: float | None, expected: bool) -> None:
    assert is_valid_coordinate(lat, lon) is expected
