"""Storage collaborator interface and a deterministic in-memory store.

The sync engine never talks to a database directly. Everything it persists
goes through :class:`TripStore`: the singleton :class:`SyncState`, per-device
bookkeeping and trips.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Protocol

from pygps51.models.sync import DeviceSyncStatus, SyncState
from pygps51.models.trip import TripCandidate
from pygps51.state.policy import later_of


class TripStore(Protocol):
    """Structural storage interface used by the sync engine.

    Implementations must make :meth:`compare_and_set_sync_state` and
    :meth:`extend_backoff` atomic with respect to concurrent runs, and
    :meth:`upsert_trips` idempotent on ``(device_id, start_time)``.
    """

    async def get_sync_state(self) -> SyncState: ...

    async def compare_and_set_sync_state(self, expected_version: int, state: SyncState) -> bool: ...

    async def extend_backoff(self, until: datetime) -> SyncState: ...

    async def upsert_trips(self, trips: Sequence[TripCandidate]) -> int: ...

    async def list_device_statuses(self) -> list[DeviceSyncStatus]: ...

    async def get_device_status(self, device_id: str) -> DeviceSyncStatus | None: ...

    async def save_device_status(self, status: DeviceSyncStatus) -> None: ...


class InMemoryTripStore:
    """In-memory :class:`TripStore` for tests, scripts and single-process use."""

    def __init__(
        self,
        *,
        device_ids: Iterable[str] = (),
        state: SyncState | None = None,
    ) -> None:
        self._lock = asyncio.Lock()
        self._state = state or SyncState()
        self._trips: dict[tuple[str, datetime], TripCandidate] = {}
        self._devices: dict[str, DeviceSyncStatus] = {d: DeviceSyncStatus(device_id=d) for d in device_ids}

    async def get_sync_state(self) -> SyncState:
        return self._state

    async def compare_and_set_sync_state(self, expected_version: int, state: SyncState) -> bool:
        """Write *state* only if nobody else wrote since *expected_version* was read."""
        async with self._lock:
            if self._state.version != expected_version:
                return False
            self._state = state.model_copy(update={"version": expected_version + 1})
            return True

    async def extend_backoff(self, until: datetime) -> SyncState:
        async with self._lock:
            current = self._state
            self._state = current.model_copy(
                update={
                    "rate_limit_backoff_until": later_of(current.rate_limit_backoff_until, until),
                    "version": current.version + 1,
                }
            )
            return self._state

    async def upsert_trips(self, trips: Sequence[TripCandidate]) -> int:
        async with self._lock:
            for trip in trips:
                self._trips[trip.key] = trip
        return len(trips)

    async def list_device_statuses(self) -> list[DeviceSyncStatus]:
        return list(self._devices.values())

    async def get_device_status(self, device_id: str) -> DeviceSyncStatus | None:
        return self._devices.get(device_id)

    async def save_device_status(self, status: DeviceSyncStatus) -> None:
        async with self._lock:
            self._devices[status.device_id] = status

    def trips(self, device_id: str | None = None) -> list[TripCandidate]:
        """Stored trips ordered by start time."""
        items = [t for t in self._trips.values() if device_id is None or t.device_id == device_id]
        return sorted(items, key=lambda t: (t.start_time, t.device_id))
