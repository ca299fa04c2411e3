#!/usr/bin/env python3
"""Segment a recorded position log into trips and route segments offline.

The input is a JSON array of position samples, either in the library's
own shape (``latitude``, ``longitude``, ``timestamp``, ``speed``,
``ignition_on``) or as raw ``querytrack`` records (``callat``, ``callon``,
``gpstime``, ``status``...).

Usage
-----
::

    python scripts/segment_positions.py track.json --device 860000000000001
    python scripts/segment_positions.py track.json --gap 300 --mode gap
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pygps51 import (  # noqa: E402
    GhostTripFilter,
    PositionSample,
    RouteSegmentSplitter,
    SegmentationConfig,
    TripSegmenter,
)
from pygps51.ingestion.records import track_points_to_samples  # noqa: E402


def _load_samples(path: Path, device_id: str) -> list[PositionSample]:
    rows: list[dict[str, Any]] = json.loads(path.read_text(encoding="utf-8"))
    if rows and "timestamp" in rows[0]:
        return [PositionSample.model_validate({"device_id": device_id, **row}) for row in rows]
    parsed = track_points_to_samples(device_id, rows)
    if parsed.skipped:
        print(f"Skipped {parsed.skipped} unusable track rows", file=sys.stderr)
    return parsed.items


def main() -> int:
    parser = argparse.ArgumentParser(description="Split a position log into trips and playback segments.")
    parser.add_argument("path", type=Path, help="JSON file with position samples")
    parser.add_argument("--device", default="device", help="Device id to attach to samples")
    parser.add_argument("--gap", type=float, default=180.0, help="Gap threshold in seconds")
    parser.add_argument("--mode", choices=("auto", "ignition", "gap"), default="auto", help="Detection mode")
    parser.add_argument("--keep-ghosts", action="store_true", help="Do not drop ghost trips")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    samples = sorted(_load_samples(args.path, args.device), key=lambda s: s.timestamp)
    segmenter = TripSegmenter(SegmentationConfig(gap_threshold_seconds=args.gap, mode=args.mode))
    ghost_filter = GhostTripFilter()
    splitter = RouteSegmentSplitter()

    output: list[dict[str, Any]] = []
    for trip in segmenter.segment(samples):
        if not args.keep_ghosts and ghost_filter.is_ghost(trip):
            continue
        trip_samples = [s for s in samples if trip.start_time <= s.timestamp <= trip.end_time]
        segments, summary = splitter.split_and_summarize(trip_samples)
        output.append(
            {
                "trip": trip.model_dump(mode="json"),
                "summary": summary.model_dump(mode="json"),
                "segments": [s.model_dump(mode="json") for s in segments],
            }
        )

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
