"""Simple JSON-based config store."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, fields
from pathlib import Path

from models import RateLimitSettings

DEFAULT_API_BASE_URL = "http://127.0.0.1:8788"
API_URL_ENV = "EXPERT_CALC_API_URL"


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "expert_calculator" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_base_url(self) -> str:
        data = self._read_all()
        url = str(data.get("api_base_url", "")).strip()
        return url or os.getenv(API_URL_ENV, "") or DEFAULT_API_BASE_URL

    def set_api_base_url(self, url: str) -> None:
        data = self._read_all()
        data["api_base_url"] = url
        self._write_all(data)

    def get_request_timeout_s(self) -> float:
        data = self._read_all()
        value = data.get("request_timeout_s", 30.0)
        return float(value) if isinstance(value, (int, float)) and value > 0 else 30.0

    def get_asset_dir(self) -> Path:
        data = self._read_all()
        value = data.get("asset_dir")
        if isinstance(value, str) and value:
            return Path(value).expanduser()
        return Path(__file__).resolve().parent / "sfx"

    def set_asset_dir(self, path: Path) -> None:
        data = self._read_all()
        data["asset_dir"] = str(path)
        self._write_all(data)

    def get_log_level(self) -> str:
        data = self._read_all()
        return str(data.get("log_level", "INFO")).upper()

    def get_rate_limit(self) -> RateLimitSettings:
        raw = self._read_all().get("rate_limit", {})
        defaults = RateLimitSettings()
        if not isinstance(raw, dict):
            return defaults
        values = {}
        for f in fields(RateLimitSettings):
            default = getattr(defaults, f.name)
            value = raw.get(f.name, default)
            # bool is an int subclass; don't let true/false through as numbers
            if isinstance(value, bool) or not isinstance(value, type(default)):
                if isinstance(default, float) and isinstance(value, int) and not isinstance(value, bool):
                    value = float(value)
                else:
                    value = default
            values[f.name] = value
        settings = RateLimitSettings(**values)
        if settings.refill_rate <= 0 or settings.consume_per_call < 1 or settings.max_tokens < 0:
            return defaults
        return settings

    def set_rate_limit(self, settings: RateLimitSettings) -> None:
        data = self._read_all()
        data["rate_limit"] = asdict(settings)
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
