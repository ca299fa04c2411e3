"""Split an ordered position stream into discrete trips.

Two detection modes are supported:

* **ignition**: a sample is active while the vehicle reports ignition on.
* **gap**: a sample is active while the vehicle shows motion (reported
  speed, or speed derived from the previous fix, above a threshold).

A trip runs from its first active sample to its last active sample.
Inactive samples inside a trip are kept as long as the next active sample
arrives within ``gap_threshold_seconds`` of the previous one, which
absorbs brief ignition flicker and traffic-light stops. Inactivity or
device silence longer than the threshold closes the trip.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from pygps51.config import SegmentationConfig
from pygps51.exceptions import Gps51DataIntegrityError
from pygps51.geo import distance
from pygps51.models.position import Coordinate, PositionSample
from pygps51.models.trip import TripCandidate
from pygps51.trips.distance import accumulate

_logger = logging.getLogger(__name__)


def derived_speed_kmh(previous: PositionSample, current: PositionSample) -> float:
    """Speed implied by two fixes, ``0.0`` when they share a timestamp."""
    seconds = (current.timestamp - previous.timestamp).total_seconds()
    if seconds <= 0:
        return 0.0
    return distance(previous, current) / (seconds / 3600.0)


def prepare_samples(samples: Iterable[PositionSample]) -> list[PositionSample]:
    """Sort by timestamp and drop exact duplicates (same time and position)."""
    ordered = sorted(samples, key=lambda s: s.timestamp)
    unique: list[PositionSample] = []
    for sample in ordered:
        if unique:
            last = unique[-1]
            if (
                last.timestamp == sample.timestamp
                and last.latitude == sample.latitude
                and last.longitude == sample.longitude
            ):
                continue
        unique.append(sample)
    return unique


class TripSegmenter:
    """Derive :class:`~pygps51.models.trip.TripCandidate` objects from samples.

    Parameters
    ----------
    config : SegmentationConfig or None
        Thresholds and detection mode. Defaults to a 3 minute gap, 1 km/h
        motion threshold and automatic mode selection.
    """

    def __init__(self, config: SegmentationConfig | None = None) -> None:
        self._config = config or SegmentationConfig()

    @property
    def config(self) -> SegmentationConfig:
        return self._config

    def _use_ignition(self, samples: Sequence[PositionSample]) -> bool:
        mode = self._config.mode
        if mode == "ignition":
            return True
        if mode == "gap":
            return False
        return any(s.ignition_on is not None for s in samples)

    def _activity(self, samples: Sequence[PositionSample], use_ignition: bool) -> list[bool]:
        """Per-sample active flags.

        In ignition mode a sample without an ignition reading keeps the last
        known state; ACC does not change between reports.
        """
        flags: list[bool] = []
        known: bool | None = None
        for index, sample in enumerate(samples):
            if use_ignition:
                if sample.ignition_on is not None:
                    known = sample.ignition_on
                flags.append(bool(known))
            elif sample.speed is not None:
                flags.append(sample.speed > self._config.motion_speed_kmh)
            elif index == 0:
                flags.append(False)
            else:
                flags.append(derived_speed_kmh(samples[index - 1], sample) > self._config.motion_speed_kmh)
        return flags

    def segment(self, samples: Iterable[PositionSample]) -> list[TripCandidate]:
        """Segment *samples* (any order) into trip candidates.

        Returns an empty list for fewer than two samples. Intervals that
        cannot form a valid trip are logged and dropped.
        """
        ordered = prepare_samples(samples)
        if len(ordered) < 2:
            return []

        use_ignition = self._use_ignition(ordered)
        gap = self._config.gap_threshold_seconds

        candidates: list[TripCandidate] = []
        current: list[PositionSample] = []
        pending: list[PositionSample] = []

        def close() -> None:
            if current:
                candidate = self._build_candidate(current)
                if candidate is not None:
                    candidates.append(candidate)
            current.clear()
            pending.clear()

        flags = self._activity(ordered, use_ignition)
        for sample, active in zip(ordered, flags, strict=True):
            if not current:
                if active:
                    current.append(sample)
                continue

            since_active = (sample.timestamp - current[-1].timestamp).total_seconds()
            if active:
                if since_active > gap:
                    close()
                    current.append(sample)
                else:
                    current.extend(pending)
                    pending.clear()
                    current.append(sample)
            elif since_active > gap:
                close()
            else:
                pending.append(sample)

        close()
        _logger.debug(
            "Segmented %d samples into %d trips mode=%s",
            len(ordered),
            len(candidates),
            "ignition" if use_ignition else "gap",
        )
        return candidates

    def _build_candidate(self, trip: Sequence[PositionSample]) -> TripCandidate | None:
        first, last = trip[0], trip[-1]
        if len(trip) < 2:
            _logger.debug("Dropping single-sample interval device=%s at %s", first.device_id, first.timestamp)
            return None

        speeds: list[float] = []
        readings: list[float] = []
        for index, sample in enumerate(trip):
            if sample.speed is not None:
                readings.append(sample.speed)
                speeds.append(sample.speed)
            elif index > 0:
                speeds.append(derived_speed_kmh(trip[index - 1], sample))

        distance_km = accumulate(trip, max_step_km=self._config.max_step_km)
        duration_h = (last.timestamp - first.timestamp).total_seconds() / 3600.0
        if readings:
            avg_speed = sum(readings) / len(readings)
        else:
            avg_speed = distance_km / duration_h if duration_h > 0 else 0.0

        try:
            return TripCandidate(
                device_id=first.device_id,
                start_time=first.timestamp,
                end_time=last.timestamp,
                start_coord=Coordinate(latitude=first.latitude, longitude=first.longitude),
                end_coord=Coordinate(latitude=last.latitude, longitude=last.longitude),
                distance_km=distance_km,
                avg_speed_kmh=round(avg_speed, 1),
                max_speed_kmh=round(max(speeds, default=0.0), 1),
                source="segmenter",
            )
        except Gps51DataIntegrityError as exc:
            _logger.warning("Discarding trip candidate: %s", exc)
            return None
