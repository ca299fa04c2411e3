"""Split a trip's samples into movement and idle segments for playback."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pygps51.models.position import PositionSample
from pygps51.models.segment import RouteSegment, SegmentKind, TripSummary
from pygps51.trips.distance import accumulate
from pygps51.trips.segmenter import derived_speed_kmh

_logger = logging.getLogger(__name__)


def sample_speeds(samples: Sequence[PositionSample]) -> list[float]:
    """Reported speeds, or speeds derived from the neighbouring fix when missing.

    A sample's derived speed uses the previous fix; the first sample uses
    the next one.
    """
    speeds: list[float] = []
    for index, sample in enumerate(samples):
        if sample.speed is not None:
            speeds.append(max(sample.speed, 0.0))
        elif index > 0:
            speeds.append(derived_speed_kmh(samples[index - 1], sample))
        elif len(samples) > 1:
            speeds.append(derived_speed_kmh(sample, samples[1]))
        else:
            speeds.append(0.0)
    return speeds


class RouteSegmentSplitter:
    """Partition ordered trip samples into :class:`RouteSegment` runs.

    Each sample owns the interval up to the next sample. A run of samples
    slower than *idle_speed_kmh* is idle when that interval adds up to at
    least *idle_min_seconds*; shorter slow runs stay part of the movement
    around them. Segment durations and distances therefore add up to the
    whole trip.

    Parameters
    ----------
    idle_speed_kmh : float
        Speeds below this count as stationary.
    idle_min_seconds : float
        Minimum stationary time for an idle segment.
    """

    def __init__(self, *, idle_speed_kmh: float = 0.5, idle_min_seconds: float = 60.0) -> None:
        self.idle_speed_kmh = idle_speed_kmh
        self.idle_min_seconds = idle_min_seconds

    def split(self, samples: Sequence[PositionSample]) -> list[RouteSegment]:
        """Split *samples* (already in time order) into tiling segments.

        Empty input yields one empty idle segment and a single sample is
        one idle segment, so playback always has something to render.
        """
        count = len(samples)
        if count == 0:
            return [RouteSegment(kind=SegmentKind.IDLE, start_index=0, end_index=-1)]
        if count == 1:
            return [RouteSegment(kind=SegmentKind.IDLE, start_index=0, end_index=0)]

        speeds = sample_speeds(samples)
        kinds = self._classify(samples, speeds)

        segments: list[RouteSegment] = []
        start = 0
        for index in range(1, count + 1):
            if index == count or kinds[index] != kinds[start]:
                segments.append(self._build_segment(samples, speeds, kinds[start], start, index - 1))
                start = index
        return segments

    def _classify(self, samples: Sequence[PositionSample], speeds: Sequence[float]) -> list[SegmentKind]:
        count = len(samples)
        kinds = [SegmentKind.MOVEMENT] * count
        index = 0
        while index < count:
            if speeds[index] >= self.idle_speed_kmh:
                index += 1
                continue
            run_end = index
            while run_end + 1 < count and speeds[run_end + 1] < self.idle_speed_kmh:
                run_end += 1
            boundary = min(run_end + 1, count - 1)
            stationary = (samples[boundary].timestamp - samples[index].timestamp).total_seconds()
            if stationary >= self.idle_min_seconds:
                for position in range(index, run_end + 1):
                    kinds[position] = SegmentKind.IDLE
            index = run_end + 1
        return kinds

    @staticmethod
    def _build_segment(
        samples: Sequence[PositionSample],
        speeds: Sequence[float],
        kind: SegmentKind,
        start: int,
        end: int,
    ) -> RouteSegment:
        boundary = min(end + 1, len(samples) - 1)
        duration = (samples[boundary].timestamp - samples[start].timestamp).total_seconds()
        distance_km = accumulate(samples[start : boundary + 1])
        avg_speed = distance_km / (duration / 3600.0) if duration > 0 else 0.0
        return RouteSegment(
            kind=kind,
            start_index=start,
            end_index=end,
            distance_km=distance_km,
            duration_seconds=max(duration, 0.0),
            avg_speed_kmh=avg_speed,
            max_speed_kmh=max(speeds[start : end + 1], default=0.0),
        )

    def summarize(self, segments: Sequence[RouteSegment]) -> TripSummary:
        """Reduce *segments* to a :class:`TripSummary`.

        ``stop_count`` is at least 1: a vehicle that never moved still
        reports one stop.
        """
        total_distance = sum(s.distance_km for s in segments)
        total_duration = sum(s.duration_seconds for s in segments)
        idle = [s for s in segments if s.kind == SegmentKind.IDLE]
        longest_idle = max((s.duration_seconds for s in idle), default=0.0)
        return TripSummary(
            total_distance_km=total_distance,
            total_duration_seconds=total_duration,
            avg_speed_kmh=total_distance / (total_duration / 3600.0) if total_duration > 0 else 0.0,
            longest_idle_minutes=longest_idle / 60.0,
            stop_count=max(1, len(idle)),
        )

    def split_and_summarize(self, samples: Sequence[PositionSample]) -> tuple[list[RouteSegment], TripSummary]:
        segments = self.split(samples)
        summary = self.summarize(segments)
        _logger.debug(
            "Split %d samples into %d segments stops=%d",
            len(samples),
            len(segments),
            summary.stop_count,
        )
        return segments, summary
