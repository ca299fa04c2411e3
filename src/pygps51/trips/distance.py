"""Trip distance accumulation."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pygps51.geo import HasLatLon, distance
from pygps51.models.position import PositionSample


class DistanceAccumulator:
    """Running distance total for a coordinate stream.

    When *max_step_km* is given, single steps longer than it are GPS
    glitches and add nothing. The total never decreases.
    """

    def __init__(self, *, max_step_km: float | None = None) -> None:
        self._max_step_km = max_step_km
        self._last: HasLatLon | None = None
        self.total_km = 0.0
        self.count = 0

    def add(self, coord: HasLatLon) -> float:
        """Append *coord* and return the updated total."""
        if self._last is not None:
            step = distance(self._last, coord)
            if self._max_step_km is None or step <= self._max_step_km:
                self.total_km += step
        self._last = coord
        self.count += 1
        return self.total_km


def accumulate(coords: Iterable[HasLatLon], *, max_step_km: float | None = None) -> float:
    """Sum of great-circle distances between consecutive coordinates, in km.

    Returns ``0.0`` for fewer than two coordinates.
    """
    acc = DistanceAccumulator(max_step_km=max_step_km)
    for coord in coords:
        acc.add(coord)
    return acc.total_km


def accumulate_samples(samples: Sequence[PositionSample], *, max_step_km: float | None = None) -> float:
    """Like :func:`accumulate` but sorts *samples* by timestamp first."""
    return accumulate(sorted(samples, key=lambda s: s.timestamp), max_step_km=max_step_km)
