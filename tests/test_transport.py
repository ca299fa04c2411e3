from __future__ import annotations

import json
from typing import Any

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from pygps51._transport import ProxyTransport, unwrap_proxy_body
from pygps51.config import Gps51Config
from pygps51.exceptions import Gps51MalformedResponseError, Gps51RateLimitError, Gps51TransportError

TARGET = "https://api.gps51.com/openapi?action=querytrips&token=abc&serverid=7"


# ---------------------------------------------------------------------------
# Envelope handling
# ---------------------------------------------------------------------------


def test_bare_vendor_body_passes_through() -> None:
    body = {"status": 0, "totaltrips": []}
    assert unwrap_proxy_body("querytrips", body) is body


def test_envelope_is_unwrapped() -> None:
    body = {"status": 200, "statusText": "OK", "headers": {}, "data": {"status": 0, "token": "t"}}
    assert unwrap_proxy_body("login", body) == {"status": 0, "token": "t"}


def test_envelope_with_json_string_data() -> None:
    body = {"status": 200, "statusText": "OK", "data": json.dumps({"status": 9903})}
    assert unwrap_proxy_body("login", body) == {"status": 9903}


def test_vendor_status_is_not_mistaken_for_envelope() -> None:
    body = {"status": 8902, "cause": "ip limit", "data": None}
    assert unwrap_proxy_body("querytrips", body) is body


@pytest.mark.parametrize(
    ("status", "exc_type"),
    [(429, Gps51RateLimitError), (502, Gps51TransportError), (404, Gps51TransportError)],
)
def test_envelope_http_errors(status: int, exc_type: type[Exception]) -> None:
    body = {"status": status, "statusText": "upstream", "headers": {}, "data": ""}
    with pytest.raises(exc_type):
        unwrap_proxy_body("querytrips", body)


@pytest.mark.parametrize("body", [[1, 2], "text", {"status": 200, "statusText": "OK", "data": "not json"}])
def test_malformed_bodies(body: Any) -> None:
    with pytest.raises(Gps51MalformedResponseError):
        unwrap_proxy_body("querytrips", body)


# ---------------------------------------------------------------------------
# HTTP relay
# ---------------------------------------------------------------------------


class ProxyStub:
    def __init__(self, status: int = 200, body: Any = None, raw: str | None = None) -> None:
        self.status = status
        self.body = body if body is not None else {"status": 0}
        self.raw = raw
        self.requests: list[tuple[dict[str, Any], dict[str, str]]] = []

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append((await request.json(), dict(request.headers)))
        if self.raw is not None:
            return web.Response(status=self.status, text=self.raw)
        return web.json_response(self.body, status=self.status)


async def _relay(stub: ProxyStub, *, api_key: str | None = None) -> dict[str, Any]:
    app = web.Application()
    app.router.add_post("/relay", stub.handle)
    async with TestServer(app) as server:
        config = Gps51Config(
            username="u",
            password="p",
            proxy_url=str(server.make_url("/relay")),
            proxy_api_key=api_key,
        )
        async with aiohttp.ClientSession() as http:
            return await ProxyTransport(config, http).relay("querytrips", TARGET, {"deviceid": "dev-1"})


@pytest.mark.asyncio
async def test_relay_posts_proxy_body() -> None:
    stub = ProxyStub(body={"status": 0, "totaltrips": []})

    result = await _relay(stub, api_key="key-1")

    assert result == {"status": 0, "totaltrips": []}
    payload, headers = stub.requests[0]
    assert payload == {
        "targetUrl": TARGET,
        "method": "POST",
        "headers": {"Content-Type": "application/json"},
        "data": {"deviceid": "dev-1"},
    }
    assert headers["Authorization"] == "Bearer key-1"


@pytest.mark.asyncio
async def test_relay_without_api_key_sends_no_authorization() -> None:
    stub = ProxyStub()
    await _relay(stub)
    assert "Authorization" not in stub.requests[0][1]


@pytest.mark.asyncio
async def test_relay_maps_http_errors() -> None:
    with pytest.raises(Gps51TransportError) as excinfo:
        await _relay(ProxyStub(status=503, raw="unavailable"))
    assert excinfo.value.status_code == 503

    with pytest.raises(Gps51RateLimitError):
        await _relay(ProxyStub(status=429, raw="slow down"))


@pytest.mark.asyncio
async def test_relay_rejects_invalid_json() -> None:
    with pytest.raises(Gps51MalformedResponseError):
        await _relay(ProxyStub(raw="<html>oops</html>"))
