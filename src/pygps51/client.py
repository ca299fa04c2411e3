"""High-level async client for the GPS51 vendor API."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar

import aiohttp

from pygps51._api import commands as _commands_api
from pygps51._api import reports as _reports_api
from pygps51._api.login import login as _login
from pygps51._constants import COMMAND_STATUS_EXECUTED
from pygps51._transport import ProxyTransport
from pygps51.config import Gps51Config
from pygps51.exceptions import (
    Gps51ApiError,
    Gps51Error,
    Gps51MalformedResponseError,
    Gps51RateLimitError,
    Gps51TokenExpiredError,
    Gps51TransportError,
)
from pygps51.ingestion.records import (
    ParseResult,
    parse_records,
    track_points_to_samples,
    vendor_trips_to_candidates,
)
from pygps51.models.command import CommandOutcome, CommandResult, CommandStatus
from pygps51.models.position import PositionSample
from pygps51.models.track import AccRecord
from pygps51.models.trip import TripCandidate
from pygps51.polling import Sleep, poll_until
from pygps51.session import Session

_logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Gps51Client:
    """Async client for the GPS51 OpenAPI, relayed through a proxy.

    Usage::

        async with Gps51Client(config) as client:
            await client.login()
            trips = await client.fetch_trips("860000000000001", start, end)

    Parameters
    ----------
    config : Gps51Config
        Credentials, proxy and timing configuration.
    session : aiohttp.ClientSession or None
        Externally owned HTTP session. Created and closed by the client
        when omitted.
    clock : callable
        Returns the current aware datetime; used for token expiry.
    sleep : callable
        Sleep coroutine used for call spacing and command polling.
    """

    def __init__(
        self,
        config: Gps51Config,
        *,
        session: aiohttp.ClientSession | None = None,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: ProxyTransport | None = None
        self._session: Session | None = None
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> Gps51Client:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = ProxyTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session | None:
        return self._session

    async def login(self) -> Session:
        """Authenticate against the vendor and store the new session."""
        transport = self._require_transport()
        await self._throttle()
        token = await _login(self._config, transport)

        expires_at = None
        if self._config.token_ttl > 0:
            expires_at = self._clock() + timedelta(seconds=self._config.token_ttl)
        self._session = Session(token=token.token, server_id=token.server_id, expires_at=expires_at)
        _logger.info("Logged in to GPS51 server_id=%s", token.server_id)
        return self._session

    def use_token(self, token: str, server_id: str, expires_at: datetime | None = None) -> Session:
        """Adopt a token obtained earlier (e.g. from persisted sync state)."""
        self._session = Session(token=token, server_id=server_id or "1", expires_at=expires_at)
        return self._session

    async def ensure_session(self) -> Session:
        """Return an active session, logging in if missing or expired."""
        if self._session is not None and not self._session.is_expired(self._clock()):
            return self._session
        return await self.login()

    def invalidate_session(self) -> None:
        """Force session invalidation (next call will re-authenticate)."""
        self._session = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> ProxyTransport:
        if self._transport is None:
            raise Gps51Error("Client not initialized. Use 'async with Gps51Client(...) as client:'")
        return self._transport

    async def _throttle(self) -> None:
        """Keep consecutive vendor calls at least ``min_call_interval`` apart."""
        interval = self._config.min_call_interval
        now = time.monotonic()
        if interval > 0 and self._last_call is not None:
            wait = self._last_call + interval - now
            if wait > 0:
                await self._sleep(wait)
                now = time.monotonic()
        self._last_call = now

    async def _call_with_reauth(self, fn: Callable[[Session], Awaitable[T]]) -> T:
        """Run an API call, retrying once on token expiry."""
        session = await self.ensure_session()
        await self._throttle()
        try:
            return await fn(session)
        except Gps51TokenExpiredError:
            _logger.info("GPS51 token rejected, logging in again")
            self.invalidate_session()
            session = await self.ensure_session()
            await self._throttle()
            return await fn(session)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def fetch_trips(self, device_id: str, start: datetime, end: datetime) -> ParseResult[TripCandidate]:
        """Fetch vendor-aggregated trips as candidates.

        Unusable rows are skipped and counted in ``skipped``.
        """
        transport = self._require_transport()
        rows = await self._call_with_reauth(
            lambda s: _reports_api.fetch_trip_rows(self._config, s, transport, device_id, start, end)
        )
        return vendor_trips_to_candidates(device_id, rows)

    async def fetch_positions(
        self, device_id: str, start: datetime, end: datetime
    ) -> ParseResult[PositionSample]:
        """Fetch raw track fixes as position samples."""
        transport = self._require_transport()
        rows = await self._call_with_reauth(
            lambda s: _reports_api.fetch_track_rows(self._config, s, transport, device_id, start, end)
        )
        return track_points_to_samples(device_id, rows)

    async def fetch_acc_records(
        self, device_ids: Sequence[str], start: datetime, end: datetime
    ) -> list[AccRecord]:
        """Fetch ignition (ACC) intervals for *device_ids*."""
        transport = self._require_transport()
        rows = await self._call_with_reauth(
            lambda s: _reports_api.fetch_acc_rows(self._config, s, transport, device_ids, start, end)
        )
        return parse_records(rows, AccRecord).items

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def send_command(self, device_id: str, command: str) -> str:
        """Send a command and return the vendor command id without waiting."""
        transport = self._require_transport()
        return await self._call_with_reauth(
            lambda s: _commands_api.send_command(self._config, s, transport, device_id, command)
        )

    async def query_command(self, command_id: str) -> CommandStatus:
        transport = self._require_transport()
        return await self._call_with_reauth(
            lambda s: _commands_api.query_command(self._config, s, transport, command_id)
        )

    async def execute_command(
        self,
        device_id: str,
        command: str,
        *,
        poll_attempts: int = 10,
        poll_interval: float = 1.0,
    ) -> CommandResult:
        """Send a command and poll until the device confirms it.

        Parameters
        ----------
        device_id : str
            Target device.
        command : str
            Friendly name (``"lock"``, ``"immobilize"``...) or raw vendor command.
        poll_attempts : int
            Maximum ``querycommand`` calls.
        poll_interval : float
            Seconds between polls.

        Returns
        -------
        CommandResult
            ``confirmed``, ``sent_unconfirmed`` (the device may still
            execute it) or ``failed``.

        Raises
        ------
        Gps51RateLimitError
            If the vendor rate-limits the send or a poll.
        """
        try:
            command_id = await self.send_command(device_id, command)
        except Gps51RateLimitError:
            raise
        except (Gps51ApiError, Gps51MalformedResponseError, Gps51TransportError) as exc:
            _logger.warning("Command %s to device %s failed: %s", command, device_id, exc)
            return CommandResult(device_id=device_id, command=command, outcome=CommandOutcome.FAILED, error=str(exc))

        last_status: CommandStatus | None = None

        async def _check() -> bool:
            nonlocal last_status
            last_status = await self.query_command(command_id)
            return last_status.command_status == COMMAND_STATUS_EXECUTED

        result = await poll_until(
            _check,
            attempts=poll_attempts,
            delay=poll_interval,
            sleep=self._sleep,
            label=f"command {command_id}",
        )
        return CommandResult(
            device_id=device_id,
            command=command,
            outcome=result.outcome,
            command_id=command_id,
            attempts=result.attempts,
            response=last_status.response if last_status is not None else None,
            error=result.error,
        )
