from __future__ import annotations

import pytest

from pygps51.config import Gps51Config, SegmentationConfig, SyncConfig
from pygps51.exceptions import Gps51ConfigError


def test_from_env_reads_required_and_optional(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GPS51_USERNAME", "fleet-admin")
    monkeypatch.setenv("GPS51_PASSWORD", "secret")
    monkeypatch.setenv("GPS51_PROXY_URL", "https://proxy.example.test/relay")
    monkeypatch.setenv("GPS51_PROXY_API_KEY", "k-1")
    monkeypatch.setenv("GPS51_REQUEST_TIMEOUT", "15")
    monkeypatch.setenv("GPS51_UTC_OFFSET_HOURS", "7")

    config = Gps51Config.from_env()

    assert config.username == "fleet-admin"
    assert config.proxy_api_key == "k-1"
    assert config.request_timeout == 15.0
    assert config.vendor_utc_offset_hours == 7
    assert config.min_call_interval == 0.2


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GPS51_USERNAME", "env-user")
    monkeypatch.setenv("GPS51_TOKEN_TTL", "60")
    config = Gps51Config.from_env(username="override", password="pw", proxy_url="https://p", token_ttl=120)
    assert config.username == "override"
    assert config.token_ttl == 120


def test_from_env_missing_required(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("GPS51_USERNAME", "GPS51_PASSWORD", "GPS51_PROXY_URL"):
        monkeypatch.delenv(key, raising=False)
    with pytest.raises(Gps51ConfigError, match="username, password, proxy_url"):
        Gps51Config.from_env()


def test_sync_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GPS51_SYNC_MAX_DEVICES", "3")
    monkeypatch.setenv("GPS51_SYNC_BACKOFF", "600")
    monkeypatch.setenv("GPS51_SYNC_FETCH_MODE", "positions")
    monkeypatch.setenv("GPS51_SYNC_USE_ACC_REPORT", "yes")

    config = SyncConfig.from_env(inter_device_delay=0)

    assert config.max_devices_per_run == 3
    assert config.backoff_duration == 600.0
    assert config.fetch_mode == "positions"
    assert config.use_acc_report is True
    assert config.inter_device_delay == 0
    assert config.segmentation == SegmentationConfig()


def test_sync_config_rejects_unknown_fetch_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GPS51_SYNC_FETCH_MODE", "everything")
    with pytest.raises(Gps51ConfigError):
        SyncConfig.from_env()


def test_defaults() -> None:
    config = SyncConfig()
    assert config.max_devices_per_run == 5
    assert config.backoff_duration == 300.0
    assert config.transient_attempts == 3
    assert config.segmentation.gap_threshold_seconds == 180.0
