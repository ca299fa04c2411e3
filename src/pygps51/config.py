"""Client and sync configuration for pygps51."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any, Literal

from pygps51._constants import BASE_URL, VENDOR_UTC_OFFSET_HOURS
from pygps51.exceptions import Gps51ConfigError
from pygps51.session import DEFAULT_TOKEN_TTL

FetchMode = Literal["trips", "positions"]
SegmentationMode = Literal["auto", "ignition", "gap"]


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _apply_numeric_env(
    env: Mapping[str, str],
    mapping: dict[str, tuple[str, type]],
    target: dict[str, Any],
    overrides: dict[str, Any],
) -> None:
    for env_key, (field_name, caster) in mapping.items():
        raw = env.get(env_key)
        if raw is not None and field_name not in overrides:
            target[field_name] = caster(raw)


@dataclasses.dataclass(frozen=True)
class Gps51Config:
    """Vendor client configuration.

    Parameters
    ----------
    username : str
        GPS51 account name.
    password : str
        GPS51 account password. Hashed with MD5 before sending.
    proxy_url : str
        URL of the forwarding relay that performs vendor calls.
    proxy_api_key : str or None
        Optional bearer key sent to the relay as ``Authorization``.
    base_url : str
        Vendor OpenAPI endpoint.
    login_type : str
        Account type sent with login (``"USER"`` or ``"DEVICE"``).
    login_from : str
        Client platform sent with login.
    browser : str
        Browser identification sent with login.
    vendor_utc_offset_hours : int
        Timezone the vendor uses for ``yyyy-MM-dd HH:mm:ss`` strings.
    request_timeout : float
        Total timeout in seconds for one proxied call.
    token_ttl : float
        Seconds a login token is trusted before a new login is made.
    min_call_interval : float
        Minimum spacing in seconds between consecutive vendor calls.
    """

    username: str
    password: str
    proxy_url: str
    proxy_api_key: str | None = None
    base_url: str = BASE_URL
    login_type: str = "USER"
    login_from: str = "web"
    browser: str = "Chrome/120.0.0.0"
    vendor_utc_offset_hours: int = VENDOR_UTC_OFFSET_HOURS
    request_timeout: float = 60.0
    token_ttl: float = DEFAULT_TOKEN_TTL
    min_call_interval: float = 0.2

    @classmethod
    def from_env(cls, **overrides: Any) -> Gps51Config:
        """Create configuration from environment variables.

        Reads ``GPS51_USERNAME``, ``GPS51_PASSWORD``, ``GPS51_PROXY_URL``
        and optional ``GPS51_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        Gps51Config
            Populated configuration.

        Raises
        ------
        Gps51ConfigError
            If a required field is missing from both env and overrides.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "GPS51_USERNAME": "username",
            "GPS51_PASSWORD": "password",
            "GPS51_PROXY_URL": "proxy_url",
            "GPS51_PROXY_API_KEY": "proxy_api_key",
            "GPS51_BASE_URL": "base_url",
            "GPS51_LOGIN_TYPE": "login_type",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _apply_numeric_env(
            env,
            {
                "GPS51_UTC_OFFSET_HOURS": ("vendor_utc_offset_hours", int),
                "GPS51_REQUEST_TIMEOUT": ("request_timeout", float),
                "GPS51_TOKEN_TTL": ("token_ttl", float),
                "GPS51_MIN_CALL_INTERVAL": ("min_call_interval", float),
            },
            config_kwargs,
            overrides,
        )

        config_kwargs.update(overrides)

        missing = [name for name in ("username", "password", "proxy_url") if not config_kwargs.get(name)]
        if missing:
            raise Gps51ConfigError(f"Missing required configuration: {', '.join(missing)}")

        return cls(**config_kwargs)


@dataclasses.dataclass(frozen=True)
class SegmentationConfig:
    """Thresholds used by :class:`~pygps51.trips.segmenter.TripSegmenter`.

    Parameters
    ----------
    gap_threshold_seconds : float
        Ignition-off or silence longer than this ends a trip.
    motion_speed_kmh : float
        Speed above which a sample counts as moving in gap mode.
    max_step_km : float or None
        Consecutive-sample jumps longer than this are treated as GPS
        glitches and add no distance. ``None`` disables the cap.
    mode : str
        ``"ignition"``, ``"gap"`` or ``"auto"`` (ignition when any sample
        reports it).
    """

    gap_threshold_seconds: float = 180.0
    motion_speed_kmh: float = 1.0
    max_step_km: float | None = 10.0
    mode: SegmentationMode = "auto"


@dataclasses.dataclass(frozen=True)
class SyncConfig:
    """Configuration for :class:`~pygps51.sync.VendorSyncClient` runs.

    Parameters
    ----------
    max_devices_per_run : int
        Cap on devices fetched in one run when no explicit list is given.
    inter_device_delay : float
        Seconds slept between consecutive devices.
    backoff_duration : float
        Seconds no vendor call may be made after an IP-limit response.
    transient_attempts : int
        Total attempts for a call failing with a transport error.
    transient_retry_delay : float
        Seconds between transient retries.
    initial_lookback : float
        Fetch window in seconds for a device that was never synced.
    overlap : float
        Seconds re-fetched before a device's last sync to catch late rows.
    fetch_mode : str
        ``"trips"`` uses vendor trip rows; ``"positions"`` segments raw
        track points.
    use_acc_report : bool
        Backfill missing ignition flags from the vendor ACC report
        (``positions`` mode only).
    command_poll_attempts : int
        Confirmation polls after sending a vehicle command.
    command_poll_interval : float
        Seconds between confirmation polls.
    segmentation : SegmentationConfig
        Segmenter thresholds for ``positions`` mode.
    """

    max_devices_per_run: int = 5
    inter_device_delay: float = 5.0
    backoff_duration: float = 300.0
    transient_attempts: int = 3
    transient_retry_delay: float = 2.0
    initial_lookback: float = 7 * 24 * 3600
    overlap: float = 5 * 60
    fetch_mode: FetchMode = "trips"
    use_acc_report: bool = False
    command_poll_attempts: int = 10
    command_poll_interval: float = 1.0
    segmentation: SegmentationConfig = dataclasses.field(default_factory=SegmentationConfig)

    @classmethod
    def from_env(cls, **overrides: Any) -> SyncConfig:
        """Create sync configuration from ``GPS51_SYNC_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        _apply_numeric_env(
            env,
            {
                "GPS51_SYNC_MAX_DEVICES": ("max_devices_per_run", int),
                "GPS51_SYNC_INTER_DEVICE_DELAY": ("inter_device_delay", float),
                "GPS51_SYNC_BACKOFF": ("backoff_duration", float),
                "GPS51_SYNC_TRANSIENT_ATTEMPTS": ("transient_attempts", int),
                "GPS51_SYNC_TRANSIENT_RETRY_DELAY": ("transient_retry_delay", float),
                "GPS51_SYNC_INITIAL_LOOKBACK": ("initial_lookback", float),
                "GPS51_SYNC_OVERLAP": ("overlap", float),
            },
            config_kwargs,
            overrides,
        )

        mode = env.get("GPS51_SYNC_FETCH_MODE")
        if mode is not None and "fetch_mode" not in overrides:
            if mode not in ("trips", "positions"):
                raise Gps51ConfigError(f"GPS51_SYNC_FETCH_MODE must be 'trips' or 'positions', got {mode!r}")
            config_kwargs["fetch_mode"] = mode

        if "use_acc_report" not in overrides:
            config_kwargs["use_acc_report"] = _env_bool(env.get("GPS51_SYNC_USE_ACC_REPORT"), False)

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
