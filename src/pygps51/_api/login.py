"""Login action.

Action:
  - login

The password is sent as its lowercase MD5 hex digest.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any

from pygps51._api._common import build_target_url, check_status
from pygps51._redact import redact_for_log
from pygps51._transport import Transport
from pygps51.config import Gps51Config
from pygps51.exceptions import (
    Gps51ApiError,
    Gps51AuthenticationError,
    Gps51MalformedResponseError,
    Gps51RateLimitError,
)
from pygps51.ingestion.normalize import safe_str
from pygps51.models.token import AuthToken

_logger = logging.getLogger(__name__)

ACTION = "login"


def md5_hex(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()  # noqa: S324


def build_login_request(config: Gps51Config) -> dict[str, Any]:
    """Build the login payload.

    Parameters
    ----------
    config : Gps51Config
        Client configuration.

    Returns
    -------
    dict
        The vendor payload for the ``login`` action.
    """
    return {
        "type": config.login_type,
        "from": config.login_from,
        "username": config.username,
        "password": md5_hex(config.password),
        "browser": config.browser,
    }


def parse_login_response(response: dict[str, Any]) -> AuthToken:
    """Parse the login response and extract the token.

    Parameters
    ----------
    response : dict
        Vendor response to the ``login`` action.

    Returns
    -------
    AuthToken
        The parsed authentication token.

    Raises
    ------
    Gps51RateLimitError
        If the vendor answered with its IP rate limit.
    Gps51AuthenticationError
        If login failed or the response carries no token.
    """
    try:
        check_status(ACTION, response)
    except (Gps51RateLimitError, Gps51AuthenticationError):
        raise
    except Gps51ApiError as exc:
        raise Gps51AuthenticationError(f"Login failed: {exc}", code=exc.code, action=ACTION) from exc
    except Gps51MalformedResponseError as exc:
        raise Gps51AuthenticationError(f"Login failed: {exc}", action=ACTION) from exc

    _logger.debug("Login response parsed=%s", redact_for_log(response))
    token = safe_str(response.get("token"))
    if not token:
        raise Gps51AuthenticationError("Login response missing token", action=ACTION)

    return AuthToken(
        token=token,
        server_id=safe_str(response.get("serverid")) or "1",
        raw=response,
    )


async def login(config: Gps51Config, transport: Transport) -> AuthToken:
    response = await transport.relay(ACTION, build_target_url(config, ACTION), build_login_request(config))
    return parse_login_response(response)
