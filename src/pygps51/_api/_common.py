"""Shared helpers for GPS51 action modules.

This module centralizes the most repeated patterns:
- building the proxied target URL for an action
- posting an action through the transport
- mapping vendor status codes to exceptions

It is internal to pygps51 and may change at any time.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any
from urllib.parse import urlencode

from pygps51._constants import IP_LIMIT_STATUS, STATUS_OK, TOKEN_EXPIRED_STATUSES
from pygps51._transport import Transport
from pygps51.config import Gps51Config
from pygps51.exceptions import (
    Gps51ApiError,
    Gps51MalformedResponseError,
    Gps51RateLimitError,
    Gps51TokenExpiredError,
)
from pygps51.ingestion.normalize import safe_int
from pygps51.models._base import format_vendor_datetime
from pygps51.session import Session


def build_target_url(config: Gps51Config, action: str, session: Session | None = None) -> str:
    params = {"action": action}
    if session is not None:
        params["token"] = session.token
        params["serverid"] = session.server_id
    return f"{config.base_url}?{urlencode(params)}"


def vendor_time(config: Gps51Config, value: datetime) -> str:
    return format_vendor_datetime(value, config.vendor_utc_offset_hours)


def _raise_for_status(*, action: str, status: int | None, cause: str) -> None:
    if status is None:
        raise Gps51MalformedResponseError(f"{action} response has no status")
    if status == IP_LIMIT_STATUS:
        raise Gps51RateLimitError(
            f"{action} rate limited: status={status} cause={cause}",
            code=status,
            action=action,
        )
    if status in TOKEN_EXPIRED_STATUSES:
        raise Gps51TokenExpiredError(
            f"{action} token rejected: status={status} cause={cause}",
            code=status,
            action=action,
        )
    raise Gps51ApiError(f"{action} failed: status={status} cause={cause}", code=status, action=action)


def check_status(action: str, response: Mapping[str, Any]) -> None:
    """Raise the matching exception unless *response* reports success."""
    status = safe_int(response.get("status"))
    if status != STATUS_OK:
        _raise_for_status(action=action, status=status, cause=str(response.get("cause", "")))


async def post_action(
    *,
    action: str,
    config: Gps51Config,
    transport: Transport,
    session: Session | None,
    data: Mapping[str, Any],
) -> dict[str, Any]:
    """Relay *action* and return the vendor response after status checks."""
    response = await transport.relay(action, build_target_url(config, action, session), data)
    check_status(action, response)
    return response


def extract_rows(action: str, response: Mapping[str, Any], *keys: str) -> list[Any]:
    """Return the first list found under *keys*; an absent list means no rows."""
    for key in keys:
        value = response.get(key)
        if value is None:
            continue
        if not isinstance(value, list):
            raise Gps51MalformedResponseError(f"{action} field {key!r} is not a list")
        return value
    return []
