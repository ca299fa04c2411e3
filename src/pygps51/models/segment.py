"""Route playback segments and trip summaries."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class SegmentKind(StrEnum):
    MOVEMENT = "movement"
    IDLE = "idle"


class RouteSegment(BaseModel):
    """A contiguous run of samples classified as movement or idle.

    ``start_index`` and ``end_index`` are inclusive indices into the
    sample list the segment was split from.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: SegmentKind
    start_index: int
    end_index: int
    distance_km: float = 0.0
    duration_seconds: float = 0.0
    avg_speed_kmh: float = 0.0
    max_speed_kmh: float = 0.0

    @property
    def sample_count(self) -> int:
        return self.end_index - self.start_index + 1


class TripSummary(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    total_distance_km: float = 0.0
    total_duration_seconds: float = 0.0
    avg_speed_kmh: float = 0.0
    longest_idle_minutes: float = 0.0
    stop_count: int = 1
