"""Backfill ignition state on position samples from ACC reports."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from pygps51.models.position import PositionSample
from pygps51.models.track import AccRecord, AccState

_logger = logging.getLogger(__name__)


def apply_acc_intervals(
    samples: Sequence[PositionSample],
    records: Iterable[AccRecord],
    *,
    overwrite: bool = False,
) -> list[PositionSample]:
    """Return *samples* with ``ignition_on`` filled from ACC intervals.

    Only samples without an ignition reading are changed unless
    *overwrite* is set. Samples outside every interval are left as they
    are. When intervals overlap the later-starting one wins.
    """
    intervals = sorted(
        (r for r in records if r.acc_state != AccState.UNKNOWN and r.begin_time is not None),
        key=lambda r: r.begin_time,  # type: ignore[arg-type,return-value]
    )
    if not intervals:
        return list(samples)

    filled = 0
    result: list[PositionSample] = []
    for sample in samples:
        if sample.ignition_on is not None and not overwrite:
            result.append(sample)
            continue
        state: bool | None = None
        for interval in intervals:
            if interval.covers(sample.timestamp):
                state = interval.acc_state == AccState.ON
        if state is None:
            result.append(sample)
            continue
        result.append(sample.model_copy(update={"ignition_on": state}))
        filled += 1

    _logger.debug("ACC backfill updated %d of %d samples", filled, len(samples))
    return result
