"""Normalization helpers.

Centralizes defensive parsing and placeholder handling for vendor values.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

# Track speeds above this are reported in metres per hour.
_METRES_PER_HOUR_THRESHOLD = 1000.0


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def first_present(data: Mapping[str, Any], *keys: str) -> Any:
    """Return the value of the first key in *keys* that is present and not empty."""
    for key in keys:
        value = data.get(key)
        if value is not None and value != "" and value != "--":
            return value
    return None


def speed_from_metres_per_hour(value: Any) -> float | None:
    """Convert a vendor trip speed (metres per hour) to km/h."""
    parsed = safe_float(value)
    if parsed is None or parsed < 0:
        return None
    return parsed / 1000.0


def normalize_speed_kmh(value: Any) -> float | None:
    """Normalize a track-point speed to km/h.

    Track points report km/h, except some firmware that reports metres per
    hour; values above 1000 are treated as the latter.
    """
    parsed = safe_float(value)
    if parsed is None or parsed < 0:
        return None
    if parsed > _METRES_PER_HOUR_THRESHOLD:
        return parsed / 1000.0
    return parsed
