"""Deterministic sync scheduling policy.

This module contains *no* I/O. It decides which devices a run visits,
which time window each device is fetched for, and how backoff windows
combine.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from pygps51.models.sync import DeviceStatus, DeviceSyncStatus

_NEVER = datetime.min.replace(tzinfo=UTC)


def device_priority(status: DeviceSyncStatus) -> tuple[int, datetime, str]:
    """Sort key: errored devices first, then least recently synced."""
    errored = 0 if status.status == DeviceStatus.ERROR else 1
    return (errored, status.last_synced_at or _NEVER, status.device_id)


def prioritize_devices(statuses: Iterable[DeviceSyncStatus], limit: int | None) -> list[str]:
    """Order devices for a run and cap the list at *limit*."""
    ordered = sorted(statuses, key=device_priority)
    ids = [s.device_id for s in ordered]
    if limit is not None and limit >= 0:
        return ids[:limit]
    return ids


def fetch_window(
    status: DeviceSyncStatus | None,
    now: datetime,
    *,
    initial_lookback: timedelta,
    overlap: timedelta,
) -> tuple[datetime, datetime]:
    """Time window to request for a device.

    Devices synced before resume from their last sync minus *overlap*
    (never earlier than the initial lookback); others start
    *initial_lookback* ago.
    """
    earliest = now - initial_lookback
    if status is None or status.last_synced_at is None:
        return earliest, now
    start = max(status.last_synced_at - overlap, earliest)
    return min(start, now), now


def later_of(current: datetime | None, candidate: datetime) -> datetime:
    """Backoff windows only ever extend."""
    if current is None or candidate > current:
        return candidate
    return current
