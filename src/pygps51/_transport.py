"""HTTP transport that relays vendor calls through the forwarding proxy."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp
from pydantic import BaseModel, ConfigDict, Field

from pygps51._constants import USER_AGENT
from pygps51._redact import redact_for_log, redact_url
from pygps51.config import Gps51Config
from pygps51.exceptions import Gps51MalformedResponseError, Gps51RateLimitError, Gps51TransportError

_logger = logging.getLogger(__name__)


class ProxyResponse(BaseModel):
    """Envelope some proxy deployments wrap around the vendor reply."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    status: int
    status_text: str = Field(default="", alias="statusText")
    headers: dict[str, Any] = Field(default_factory=dict)
    data: Any = None


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`ProxyTransport`) concrete.
    """

    async def relay(self, action: str, target_url: str, data: Mapping[str, Any]) -> dict[str, Any]: ...


def _is_envelope(body: Mapping[str, Any]) -> bool:
    status = body.get("status")
    return (
        "data" in body
        and ("statusText" in body or "headers" in body)
        and isinstance(status, int)
        and 100 <= status <= 599
    )


def _check_http_status(status: int, action: str, detail: str) -> None:
    if 200 <= status < 300:
        return
    if status == 429:
        raise Gps51RateLimitError(f"HTTP 429 from proxy for {action}", code=status, action=action)
    raise Gps51TransportError(f"HTTP {status} for {action}: {detail[:200]}", status_code=status, action=action)


def unwrap_proxy_body(action: str, body: Any) -> dict[str, Any]:
    """Return the vendor JSON object from a proxy reply.

    Accepts both the bare vendor object and the
    ``{status, statusText, headers, data}`` envelope.
    """
    if not isinstance(body, dict):
        raise Gps51MalformedResponseError(f"Proxy reply for {action} is not a JSON object")
    if not _is_envelope(body):
        return body

    envelope = ProxyResponse.model_validate(body)
    _check_http_status(envelope.status, action, envelope.status_text)
    data = envelope.data
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as exc:
            raise Gps51MalformedResponseError(f"Vendor reply for {action} is not JSON: {data[:64]}") from exc
    if not isinstance(data, dict):
        raise Gps51MalformedResponseError(f"Vendor reply for {action} is not a JSON object")
    return data


class ProxyTransport:
    """POSTs ``{targetUrl, method, data}`` to the proxy and returns the vendor JSON."""

    def __init__(self, config: Gps51Config, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    def _headers(self) -> dict[str, str]:
        headers = {
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }
        if self._config.proxy_api_key:
            headers["authorization"] = f"Bearer {self._config.proxy_api_key}"
        return headers

    async def relay(self, action: str, target_url: str, data: Mapping[str, Any]) -> dict[str, Any]:
        body = {
            "targetUrl": target_url,
            "method": "POST",
            "headers": {"Content-Type": "application/json"},
            "data": dict(data),
        }
        _logger.debug("Relay %s via %s payload=%s", action, self._config.proxy_url, redact_for_log(body))

        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)
        try:
            async with self._http.post(
                self._config.proxy_url,
                json=body,
                headers=self._headers(),
                timeout=timeout,
            ) as resp:
                text = await resp.text()
                _check_http_status(resp.status, action, text)
        except (Gps51TransportError, Gps51RateLimitError):
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise Gps51TransportError(
                f"Relay of {action} to {redact_url(target_url)} failed: {exc!r}",
                action=action,
            ) from exc

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise Gps51MalformedResponseError(f"Invalid JSON from proxy for {action}: {text[:200]}") from exc

        result = unwrap_proxy_body(action, payload)
        _logger.debug("Relay %s response=%s", action, redact_for_log(result))
        return result
