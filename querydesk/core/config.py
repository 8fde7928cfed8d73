"""Utilities for loading application settings from YAML configuration files."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

MODES = ("mock", "real")


@dataclass(slots=True)
class APISettings:
    base_url: str = "http://localhost:8080"
    base_url_env: str | None = None
    timeout_s: float = 30.0
    retry_attempts: int = 3
    retry_delay_s: float = 1.0
    auth_enabled: bool = False
    auth_token_env: str = "QUERYDESK_AUTH_TOKEN"
    max_rows: int = 10000

    def resolve_base_url(self) -> str:
        """Return the backend URL, preferring the configured environment override."""

        if self.base_url_env:
            override = os.getenv(self.base_url_env)
            if override:
                return override.rstrip("/")
        return self.base_url.rstrip("/")

    def resolve_token(self) -> str | None:
        if not self.auth_enabled:
            return None
        return os.getenv(self.auth_token_env) or None


@dataclass(slots=True)
class MockSettings:
    latency_min_s: float = 0.2
    latency_max_s: float = 0.7
    seed: int | None = None


@dataclass(slots=True)
class PathsSettings:
    query_logs_dir: str | None = None
    exports_dir: str | None = None


@dataclass(slots=True)
class Settings:
    mode: str = "mock"
    database: str = "default"
    api: APISettings = field(default_factory=APISettings)
    mock: MockSettings = field(default_factory=MockSettings)
    paths: PathsSettings | None = None


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def load_settings(path: str | Path) -> Settings:
    """Read configuration from *path* and return structured settings."""

    config_path = Path(path)
    raw = _load_yaml(config_path)

    mode = str(raw.get("mode", "mock")).lower()
    if mode not in MODES:
        raise ValueError(f"Unsupported mode '{mode}'. Expected one of: {', '.join(MODES)}")

    api_raw = raw.get("api") or {}
    base_url_env = api_raw.get("base_url_env")
    api = APISettings(
        base_url=str(api_raw.get("base_url", "http://localhost:8080")),
        base_url_env=str(base_url_env) if base_url_env else None,
        timeout_s=float(api_raw.get("timeout_s", 30)),
        retry_attempts=max(int(api_raw.get("retry_attempts", 3)), 1),
        retry_delay_s=float(api_raw.get("retry_delay_s", 1)),
        auth_enabled=_as_bool(api_raw.get("auth_enabled", False)),
        auth_token_env=str(api_raw.get("auth_token_env", "QUERYDESK_AUTH_TOKEN")),
        max_rows=int(api_raw.get("max_rows", 10000)),
    )

    mock_raw = raw.get("mock") or {}
    seed = mock_raw.get("seed")
    mock = MockSettings(
        latency_min_s=float(mock_raw.get("latency_min_s", 0.2)),
        latency_max_s=float(mock_raw.get("latency_max_s", 0.7)),
        seed=int(seed) if seed is not None else None,
    )
    if mock.latency_min_s > mock.latency_max_s:
        raise ValueError("mock.latency_min_s must not exceed mock.latency_max_s")

    paths_raw: dict[str, Any] | None = raw.get("paths")
    paths = None
    if paths_raw:
        query_logs_dir = paths_raw.get("query_logs_dir")
        exports_dir = paths_raw.get("exports_dir")
        paths = PathsSettings(
            query_logs_dir=str(query_logs_dir) if query_logs_dir else None,
            exports_dir=str(exports_dir) if exports_dir else None,
        )

    return Settings(
        mode=mode,
        database=str(raw.get("database", "default")),
        api=api,
        mock=mock,
        paths=paths,
    )
