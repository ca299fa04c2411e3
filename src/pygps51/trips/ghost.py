"""Reject spurious "ghost" trips produced by GPS drift or ignition noise."""

from __future__ import annotations

from typing import Protocol


class _TripLike(Protocol):
    @property
    def distance_km(self) -> float | None: ...

    @property
    def duration_seconds(self) -> float | None: ...


class GhostTripFilter:
    """Stateless accept/reject predicate over trips.

    A trip is a ghost when it is both shorter than *min_distance_km* and
    briefer than *min_duration_seconds*. A long zero-distance trip (idling)
    and a short fast hop are both kept. When *max_plausible_speed_kmh* is
    set, trips whose implied average speed exceeds it are ghosts too
    (coordinate jumps rather than driving).

    Missing distance or duration counts as zero.
    """

    def __init__(
        self,
        *,
        min_duration_seconds: float = 15.0,
        min_distance_km: float = 0.01,
        max_plausible_speed_kmh: float | None = None,
    ) -> None:
        self.min_duration_seconds = min_duration_seconds
        self.min_distance_km = min_distance_km
        self.max_plausible_speed_kmh = max_plausible_speed_kmh

    def is_ghost(self, trip: _TripLike) -> bool:
        distance_km = trip.distance_km or 0.0
        duration_s = trip.duration_seconds or 0.0
        if distance_km < self.min_distance_km and duration_s < self.min_duration_seconds:
            return True
        if self.max_plausible_speed_kmh is not None and duration_s > 0:
            implied = distance_km / (duration_s / 3600.0)
            if implied > self.max_plausible_speed_kmh:
                return True
        return False

    def accept(self, trip: _TripLike) -> bool:
        return not self.is_ghost(trip)

    def __call__(self, trip: _TripLike) -> bool:
        """Alias for :meth:`is_ghost` so the filter can be passed as a validator."""
        return self.is_ghost(trip)
