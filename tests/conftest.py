from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import parse_qs, urlparse

import pytest

from pygps51.config import Gps51Config
from pygps51.exceptions import Gps51TransportError

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=UTC)


def epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


class FakeClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingSleep:
    """Sleep double that records delays and advances a fake clock."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.delays: list[float] = []
        self._clock = clock

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self._clock is not None:
            self._clock.advance(seconds)


def trip_row(device_id: str, start: datetime, minutes: int = 30, distance_m: float = 12345) -> dict[str, Any]:
    return {
        "deviceid": device_id,
        "starttime": epoch_ms(start),
        "endtime": epoch_ms(start + timedelta(minutes=minutes)),
        "startlat": 6.5244,
        "startlon": 3.3792,
        "endlat": 6.6018,
        "endlon": 3.3515,
        "distance": distance_m,
        "maxspeed": 88000,
        "avgspeed": 41000,
    }


@dataclass
class FakeGps51Backend:
    """In-process stand-in for the proxy + GPS51 OpenAPI."""

    trips: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    tracks: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    accs: list[dict[str, Any]] = field(default_factory=list)
    login_status: int = 0
    rate_limit_devices: set[str] = field(default_factory=set)
    rate_limit_login: bool = False
    transient_failures: dict[str, int] = field(default_factory=dict)
    expire_once_actions: set[str] = field(default_factory=set)
    command_statuses: list[int] = field(default_factory=list)
    send_command_status: int = 0
    calls: list[tuple[str, dict[str, Any], dict[str, Any]]] = field(default_factory=list)
    tokens_issued: int = 0
    _expired_already: set[str] = field(default_factory=set)

    def count(self, action: str) -> int:
        return sum(1 for name, _, _ in self.calls if name == action)

    def devices_called(self, action: str) -> list[str]:
        return [data["deviceid"] for name, _, data in self.calls if name == action]

    def tokens_used(self) -> set[str]:
        return {query["token"] for name, query, _ in self.calls if name != "login" and "token" in query}

    async def relay(self, action: str, target_url: str, data: dict[str, Any]) -> dict[str, Any]:
        query = {k: v[0] for k, v in parse_qs(urlparse(target_url).query).items()}
        assert query["action"] == action
        self.calls.append((action, query, dict(data)))

        if action == "login":
            if self.rate_limit_login:
                return {"status": 8902, "cause": "ip limit"}
            if self.login_status != 0:
                return {"status": self.login_status, "cause": "bad password"}
            self.tokens_issued += 1
            return {"status": 0, "token": f"token-{self.tokens_issued}", "serverid": "7"}

        if action in self.expire_once_actions and action not in self._expired_already:
            self._expired_already.add(action)
            return {"status": 9903, "cause": "token expired"}

        device_id = data.get("deviceid")
        if device_id in self.rate_limit_devices:
            return {"status": 8902, "cause": "ip limit"}
        remaining = self.transient_failures.get(device_id, 0) if device_id else 0
        if remaining:
            self.transient_failures[device_id] = remaining - 1
            raise Gps51TransportError("proxy timeout", action=action)

        if action == "querytrips":
            return {"status": 0, "totaltrips": self.trips.get(device_id, [])}
        if action == "querytrack":
            return {"status": 0, "records": self.tracks.get(device_id, [])}
        if action == "reportaccsbytime":
            return {"status": 0, "records": self.accs}
        if action == "sendcommand":
            if self.send_command_status != 0:
                return {"status": self.send_command_status, "cause": "device offline"}
            return {"status": 0, "commandid": "CMD-1"}
        if action == "querycommand":
            status = self.command_statuses.pop(0) if self.command_statuses else 0
            return {"status": 0, "record": {"commandid": data["commandid"], "commandstatus": status}}
        return {"status": 9904, "cause": f"unexpected action {action}"}


@pytest.fixture
def config() -> Gps51Config:
    return Gps51Config(
        username="fleet-admin",
        password="secret",
        proxy_url="https://proxy.example.test/relay",
        min_call_interval=0,
    )


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch) -> FakeGps51Backend:
    fake_backend = FakeGps51Backend()

    async def fake_relay(_self: Any, action: str, target_url: str, data: dict[str, Any]) -> dict[str, Any]:
        return await fake_backend.relay(action, target_url, data)

    monkeypatch.setattr("pygps51._transport.ProxyTransport.relay", fake_relay)
    return fake_backend


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
