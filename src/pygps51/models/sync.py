"""Externalized sync state and run results."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SyncState(BaseModel):
    """Singleton vendor-session state shared by every sync run.

    ``version`` increases on every write; stores use it for
    compare-and-set so concurrent runs cannot clobber each other.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    auth_token: str | None = None
    server_id: str | None = None
    token_expires_at: datetime | None = None
    rate_limit_backoff_until: datetime | None = None
    version: int = 0

    def token_valid(self, now: datetime) -> bool:
        return (
            self.auth_token is not None
            and self.token_expires_at is not None
            and now < self.token_expires_at
        )

    def in_backoff(self, now: datetime) -> bool:
        return self.rate_limit_backoff_until is not None and now < self.rate_limit_backoff_until


class DeviceStatus(StrEnum):
    NEVER = "never"
    OK = "ok"
    ERROR = "error"


class DeviceSyncStatus(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    device_id: str
    status: DeviceStatus = DeviceStatus.NEVER
    last_synced_at: datetime | None = None
    last_error: str | None = None
    trips_synced: int = 0


class DeviceSyncOutcome(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    device_id: str
    ok: bool
    trips: int = 0
    ghosts_rejected: int = 0
    records_skipped: int = 0
    error: str | None = None


class SyncRunResult(BaseModel):
    """Aggregated outcome of one :meth:`~pygps51.sync.VendorSyncClient.run`.

    Parameters
    ----------
    devices_attempted : int
        Devices for which at least one vendor call was started.
    devices_succeeded : int
        Devices whose trips were fetched and stored.
    ip_limit_hit : bool
        The vendor answered with its IP rate limit during this run.
    skipped : bool
        The run made no vendor call because a backoff window was active.
    partial : bool
        The run stopped before every selected device was processed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    devices_attempted: int = 0
    devices_succeeded: int = 0
    ip_limit_hit: bool = False
    skipped: bool = False
    partial: bool = False
    trips_upserted: int = 0
    ghosts_rejected: int = 0
    records_skipped: int = 0
    device_outcomes: list[DeviceSyncOutcome] = Field(default_factory=list)
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
