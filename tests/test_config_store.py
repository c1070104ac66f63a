from __future__ import annotations

import json
from pathlib import Path

import pytest

from config import API_URL_ENV, DEFAULT_API_BASE_URL, JsonConfigStore
from models import RateLimitSettings


def test_config_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(API_URL_ENV, raising=False)
    store = JsonConfigStore(path=tmp_path / "config.json")

    assert store.get_api_base_url() == DEFAULT_API_BASE_URL
    assert store.get_request_timeout_s() == 30.0
    assert store.get_log_level() == "INFO"
    assert store.get_asset_dir().name == "sfx"
    assert store.get_rate_limit() == RateLimitSettings()


def test_config_read_write(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)

    store.set_api_base_url("https://calc.example.com")
    store.set_asset_dir(tmp_path / "sounds")
    store.set_rate_limit(RateLimitSettings(initial_tokens=3, max_tokens=5, cooldown_on_empty_s=1.5))

    reloaded = JsonConfigStore(path=path)
    assert reloaded.get_api_base_url() == "https://calc.example.com"
    assert reloaded.get_asset_dir() == tmp_path / "sounds"
    limits = reloaded.get_rate_limit()
    assert limits.initial_tokens == 3
    assert limits.max_tokens == 5
    assert limits.cooldown_on_empty_s == 1.5
    assert limits.busy_text == RateLimitSettings().busy_text


def test_env_url_used_when_config_empty(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(API_URL_ENV, "http://from-env:9000")
    store = JsonConfigStore(path=tmp_path / "config.json")
    assert store.get_api_base_url() == "http://from-env:9000"

    store.set_api_base_url("http://from-file")
    assert store.get_api_base_url() == "http://from-file"


def test_config_invalid_json_fallback(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(API_URL_ENV, raising=False)
    path = tmp_path / "config.json"
    path.write_text("{invalid", encoding="utf-8")

    store = JsonConfigStore(path=path)
    assert store.get_api_base_url() == DEFAULT_API_BASE_URL
    assert store.get_rate_limit() == RateLimitSettings()


def test_bad_rate_limit_values_fall_back(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "rate_limit": {
                    "max_tokens": "lots",
                    "refill_rate": True,
                    "cooldown_on_empty_s": 2,
                    "busy_text": "busy!",
                }
            }
        ),
        encoding="utf-8",
    )

    limits = JsonConfigStore(path=path).get_rate_limit()
    assert limits.max_tokens == 10
    assert limits.refill_rate == 2
    assert limits.cooldown_on_empty_s == 2.0
    assert limits.busy_text == "busy!"


def test_zero_refill_rate_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"rate_limit": {"refill_rate": 0}}), encoding="utf-8")

    assert JsonConfigStore(path=path).get_rate_limit() == RateLimitSettings()
