"""Configuration loading from environment variables and memopad.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_HOME = Path.home() / ".memopad"
_CONFIG_FILENAME = "memopad.toml"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class EngineConfig:
    """Configuration for the summarization engine."""

    name: str = "anthropic_api"
    fallback: str | None = None
    model: str | None = None
    max_tokens: int = 1024
    timeout: int = 120


@dataclass
class ServerConfig:
    """HTTP API configuration."""

    host: str = "127.0.0.1"
    port: int = 8420


@dataclass
class ThemeConfig:
    """Environment signals used when no theme has been stored yet."""

    prefers_dark: bool = False
    browser_capable: bool = True


@dataclass
class MaintenanceConfig:
    """Background housekeeping while serving."""

    interval: int = 3600  # seconds between engine health checks
    prune_hour: int = 3  # local hour for the daily backup prune
    keep_versions: int = 50


@dataclass
class MemopadConfig:
    """Top-level memopad configuration."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    theme: ThemeConfig = field(default_factory=ThemeConfig)
    maintenance: MaintenanceConfig = field(default_factory=MaintenanceConfig)
    memo_dir: Path = _DEFAULT_HOME / "data"
    preferences_file: Path = _DEFAULT_HOME / "preferences.json"
    pid_file: Path = _DEFAULT_HOME / "memopad.pid"
    log_level: str = "INFO"


def _as_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def load_config(config_path: Path | None = None) -> MemopadConfig:
    """Load configuration from environment variables and optional memopad.toml.

    Priority: environment variables > memopad.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.memopad/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _DEFAULT_HOME / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    engine_data = file_data.get("engine", {})
    server_data = file_data.get("server", {})
    theme_data = file_data.get("theme", {})
    maintenance_data = file_data.get("maintenance", {})

    config = MemopadConfig(
        engine=EngineConfig(
            name=os.getenv("MEMOPAD_ENGINE", engine_data.get("name", "anthropic_api")),
            fallback=os.getenv("MEMOPAD_FALLBACK", engine_data.get("fallback")),
            model=os.getenv("MEMOPAD_MODEL", engine_data.get("model")),
            max_tokens=int(os.getenv("MEMOPAD_MAX_TOKENS", engine_data.get("max_tokens", 1024))),
            timeout=int(os.getenv("MEMOPAD_TIMEOUT", engine_data.get("timeout", 120))),
        ),
        server=ServerConfig(
            host=os.getenv("MEMOPAD_HOST", server_data.get("host", "127.0.0.1")),
            port=int(os.getenv("MEMOPAD_PORT", server_data.get("port", 8420))),
        ),
        theme=ThemeConfig(
            prefers_dark=_as_bool(
                os.getenv("MEMOPAD_PREFERS_DARK", theme_data.get("prefers_dark", False))
            ),
            browser_capable=_as_bool(theme_data.get("browser_capable", True)),
        ),
        maintenance=MaintenanceConfig(
            interval=int(maintenance_data.get("interval", 3600)),
            prune_hour=int(maintenance_data.get("prune_hour", 3)),
            keep_versions=int(maintenance_data.get("keep_versions", 50)),
        ),
        memo_dir=Path(
            os.getenv("MEMOPAD_MEMO_DIR", file_data.get("memo_dir", str(_DEFAULT_HOME / "data")))
        ).expanduser(),
        preferences_file=Path(
            os.getenv(
                "MEMOPAD_PREFERENCES",
                file_data.get("preferences_file", str(_DEFAULT_HOME / "preferences.json")),
            )
        ).expanduser(),
        pid_file=Path(file_data.get("pid_file", str(_DEFAULT_HOME / "memopad.pid"))).expanduser(),
        log_level=os.getenv("MEMOPAD_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
