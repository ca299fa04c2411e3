"""Rate-limit-aware trip synchronization from the GPS51 vendor.

One :meth:`VendorSyncClient.run` walks this state machine::

    CheckBackoff --(backoff active)--> skipped
         |
    Authorize (cached token, or login + persist)
         |
    FetchPerDevice --(IP limit)--> RateLimited: backoff, abort
         |  (transport errors retried, then device failed)
    Persist trips + device status --> done

All vendor-session state (token, backoff window) lives in the storage
collaborator so separate processes running the same sync cooperate.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import TypeVar

from pygps51.client import Gps51Client
from pygps51.config import SyncConfig
from pygps51.exceptions import Gps51Error, Gps51RateLimitError, Gps51TransportError
from pygps51.ingestion.acc import apply_acc_intervals
from pygps51.models.command import CommandOutcome, CommandResult
from pygps51.models.sync import DeviceStatus, DeviceSyncOutcome, DeviceSyncStatus, SyncRunResult, SyncState
from pygps51.models.trip import TripCandidate
from pygps51.polling import Sleep
from pygps51.session import Session
from pygps51.state.policy import fetch_window, prioritize_devices
from pygps51.state.store import TripStore
from pygps51.trips.ghost import GhostTripFilter
from pygps51.trips.segmenter import TripSegmenter

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_SESSION_WRITE_ATTEMPTS = 3


def _utcnow() -> datetime:
    return datetime.now(UTC)


class VendorSyncClient:
    """Pull trips from the vendor into a :class:`~pygps51.state.store.TripStore`.

    Parameters
    ----------
    client : Gps51Client
        An entered vendor client.
    store : TripStore
        Storage collaborator holding sync state, device status and trips.
    config : SyncConfig or None
        Run limits, delays and fetch mode.
    ghost_filter : GhostTripFilter or None
        Filter applied to every candidate before it is stored.
    clock : callable
        Returns the current aware datetime.
    sleep : callable
        Sleep coroutine for inter-device and retry delays.
    """

    def __init__(
        self,
        client: Gps51Client,
        store: TripStore,
        config: SyncConfig | None = None,
        *,
        ghost_filter: GhostTripFilter | None = None,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._store = store
        self._config = config or SyncConfig()
        self._ghost_filter = ghost_filter or GhostTripFilter()
        self._segmenter = TripSegmenter(self._config.segmentation)
        self._clock = clock
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, device_ids: Sequence[str] | None = None) -> SyncRunResult:
        """Run one sync pass.

        Parameters
        ----------
        device_ids : Sequence[str] or None
            Devices to sync. When omitted, devices come from the store,
            errored first then least recently synced, capped at
            ``max_devices_per_run``.

        Returns
        -------
        SyncRunResult
            Aggregated outcome. Vendor errors are reported here, never raised.
        """
        started_at = self._clock()
        state = await self._store.get_sync_state()
        if state.in_backoff(started_at):
            _logger.info(
                "Sync skipped: vendor backoff active until %s",
                state.rate_limit_backoff_until.isoformat() if state.rate_limit_backoff_until else None,
            )
            return SyncRunResult(skipped=True, started_at=started_at, finished_at=self._clock())

        devices = await self._select_devices(device_ids)
        if not devices:
            _logger.info("Sync run skipped: no devices to sync")
            return SyncRunResult(started_at=started_at, finished_at=self._clock())
        _logger.info("Sync run started devices=%d mode=%s", len(devices), self._config.fetch_mode)

        try:
            await self._authorize(state)
        except Gps51RateLimitError as exc:
            await self._enter_backoff()
            return SyncRunResult(
                ip_limit_hit=True,
                partial=True,
                error=str(exc),
                started_at=started_at,
                finished_at=self._clock(),
            )
        except Gps51Error as exc:
            _logger.warning("Sync run aborted: authorization failed: %s", exc)
            return SyncRunResult(
                partial=bool(devices),
                error=str(exc),
                started_at=started_at,
                finished_at=self._clock(),
            )

        outcomes: list[DeviceSyncOutcome] = []
        ip_limit_hit = False
        partial = False
        run_error: str | None = None

        for index, device_id in enumerate(devices):
            if index > 0 and self._config.inter_device_delay > 0:
                await self._sleep(self._config.inter_device_delay)

            current = await self._store.get_sync_state()
            if current.in_backoff(self._clock()):
                _logger.warning("Sync run stopped: backoff set by another run")
                partial = True
                break

            try:
                outcomes.append(await self._sync_device(device_id))
            except Gps51RateLimitError as exc:
                outcomes.append(DeviceSyncOutcome(device_id=device_id, ok=False, error=str(exc)))
                await self._enter_backoff()
                ip_limit_hit = True
                partial = True
                run_error = str(exc)
                break

        await self._persist_refreshed_session()

        result = SyncRunResult(
            devices_attempted=len(outcomes),
            devices_succeeded=sum(1 for o in outcomes if o.ok),
            ip_limit_hit=ip_limit_hit,
            partial=partial,
            trips_upserted=sum(o.trips for o in outcomes),
            ghosts_rejected=sum(o.ghosts_rejected for o in outcomes),
            records_skipped=sum(o.records_skipped for o in outcomes),
            device_outcomes=outcomes,
            error=run_error,
            started_at=started_at,
            finished_at=self._clock(),
        )
        _logger.info(
            "Sync run finished attempted=%d succeeded=%d trips=%d ip_limit_hit=%s",
            result.devices_attempted,
            result.devices_succeeded,
            result.trips_upserted,
            result.ip_limit_hit,
        )
        return result

    async def _select_devices(self, device_ids: Sequence[str] | None) -> list[str]:
        if device_ids is not None:
            return list(dict.fromkeys(device_ids))
        statuses = await self._store.list_device_statuses()
        return prioritize_devices(statuses, self._config.max_devices_per_run)

    # ------------------------------------------------------------------
    # Authorization and shared state
    # ------------------------------------------------------------------

    async def _authorize(self, state: SyncState) -> Session:
        if state.auth_token is not None and state.token_valid(self._clock()):
            _logger.debug("Reusing cached vendor token server_id=%s", state.server_id)
            return self._client.use_token(state.auth_token, state.server_id or "1", state.token_expires_at)
        session = await self._client.login()
        await self._persist_session(session)
        return session

    async def _persist_session(self, session: Session) -> None:
        """Write the token into the shared state without touching the backoff window."""
        for _ in range(_SESSION_WRITE_ATTEMPTS):
            latest = await self._store.get_sync_state()
            updated = latest.model_copy(
                update={
                    "auth_token": session.token,
                    "server_id": session.server_id,
                    "token_expires_at": session.expires_at,
                }
            )
            if await self._store.compare_and_set_sync_state(latest.version, updated):
                return
        _logger.warning("Could not persist vendor token: sync state kept changing")

    async def _persist_refreshed_session(self) -> None:
        session = self._client.session
        if session is None:
            return
        state = await self._store.get_sync_state()
        if state.auth_token != session.token:
            await self._persist_session(session)

    async def _enter_backoff(self) -> None:
        until = self._clock() + timedelta(seconds=self._config.backoff_duration)
        state = await self._store.extend_backoff(until)
        _logger.warning(
            "Vendor IP limit hit; no vendor calls until %s",
            state.rate_limit_backoff_until.isoformat() if state.rate_limit_backoff_until else until.isoformat(),
        )

    # ------------------------------------------------------------------
    # Per device
    # ------------------------------------------------------------------

    async def _with_transient_retry(self, label: str, fn: Callable[[], Awaitable[T]]) -> T:
        attempts = max(1, self._config.transient_attempts)
        attempt = 1
        while True:
            try:
                return await fn()
            except Gps51TransportError:
                if attempt >= attempts:
                    raise
                _logger.debug("%s transient failure attempt=%d/%d", label, attempt, attempts, exc_info=True)
            if self._config.transient_retry_delay > 0:
                await self._sleep(self._config.transient_retry_delay)
            attempt += 1

    async def _fetch_candidates(
        self, device_id: str, start: datetime, end: datetime
    ) -> tuple[list[TripCandidate], int]:
        client = self._client
        if self._config.fetch_mode == "trips":
            parsed = await self._with_transient_retry(
                f"querytrips {device_id}", lambda: client.fetch_trips(device_id, start, end)
            )
            return parsed.items, parsed.skipped

        positions = await self._with_transient_retry(
            f"querytrack {device_id}", lambda: client.fetch_positions(device_id, start, end)
        )
        samples = positions.items
        if self._config.use_acc_report and samples:
            acc_records = await self._with_transient_retry(
                f"reportaccsbytime {device_id}", lambda: client.fetch_acc_records([device_id], start, end)
            )
            samples = apply_acc_intervals(samples, acc_records)
        return self._segmenter.segment(samples), positions.skipped

    async def _sync_device(self, device_id: str) -> DeviceSyncOutcome:
        try:
            previous = await self._store.get_device_status(device_id)
        except Exception as exc:
            _logger.exception("Device %s sync failed: could not read its status", device_id)
            return DeviceSyncOutcome(device_id=device_id, ok=False, error=f"storage error: {exc}")

        now = self._clock()
        start, end = fetch_window(
            previous,
            now,
            initial_lookback=timedelta(seconds=self._config.initial_lookback),
            overlap=timedelta(seconds=self._config.overlap),
        )
        _logger.debug("Syncing device=%s window=%s..%s", device_id, start.isoformat(), end.isoformat())

        try:
            candidates, skipped = await self._fetch_candidates(device_id, start, end)
        except Gps51RateLimitError as exc:
            await self._mark_failed(device_id, previous, str(exc))
            raise
        except Gps51Error as exc:
            _logger.warning("Device %s sync failed: %s", device_id, exc)
            await self._mark_failed(device_id, previous, str(exc))
            return DeviceSyncOutcome(device_id=device_id, ok=False, error=str(exc))

        accepted = [c for c in candidates if self._ghost_filter.accept(c)]
        ghosts = len(candidates) - len(accepted)
        try:
            stored = await self._store.upsert_trips(accepted) if accepted else 0
            await self._store.save_device_status(
                DeviceSyncStatus(
                    device_id=device_id,
                    status=DeviceStatus.OK,
                    last_synced_at=now,
                    trips_synced=(previous.trips_synced if previous else 0) + stored,
                )
            )
        except Exception as exc:
            _logger.exception("Device %s sync failed: could not store its trips", device_id)
            message = f"storage error: {exc}"
            await self._mark_failed(device_id, previous, message)
            return DeviceSyncOutcome(
                device_id=device_id,
                ok=False,
                ghosts_rejected=ghosts,
                records_skipped=skipped,
                error=message,
            )
        _logger.debug("Device %s synced trips=%d ghosts=%d skipped=%d", device_id, stored, ghosts, skipped)
        return DeviceSyncOutcome(
            device_id=device_id,
            ok=True,
            trips=stored,
            ghosts_rejected=ghosts,
            records_skipped=skipped,
        )

    async def _mark_failed(self, device_id: str, previous: DeviceSyncStatus | None, message: str) -> None:
        try:
            await self._store.save_device_status(
                DeviceSyncStatus(
                    device_id=device_id,
                    status=DeviceStatus.ERROR,
                    last_synced_at=previous.last_synced_at if previous else None,
                    last_error=message,
                    trips_synced=previous.trips_synced if previous else 0,
                )
            )
        except Exception:
            _logger.exception("Could not record failure for device %s", device_id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def send_command(self, device_id: str, command: str) -> CommandResult:
        """Send a vehicle command under the same backoff discipline as sync runs.

        Returns a ``failed`` result without calling the vendor while a
        backoff window is active; an IP limit during send or polling opens
        a new window.
        """
        state = await self._store.get_sync_state()
        if state.in_backoff(self._clock()):
            return CommandResult(
                device_id=device_id,
                command=command,
                outcome=CommandOutcome.FAILED,
                error="vendor backoff active",
            )
        try:
            await self._authorize(state)
            result = await self._client.execute_command(
                device_id,
                command,
                poll_attempts=self._config.command_poll_attempts,
                poll_interval=self._config.command_poll_interval,
            )
        except Gps51RateLimitError as exc:
            await self._enter_backoff()
            return CommandResult(device_id=device_id, command=command, outcome=CommandOutcome.FAILED, error=str(exc))
        except Gps51Error as exc:
            return CommandResult(device_id=device_id, command=command, outcome=CommandOutcome.FAILED, error=str(exc))
        await self._persist_refreshed_session()
        return result
