"""Tests for configuration loading."""

import pytest
from pathlib import Path

from memopad.config import load_config

_ENV_KEYS = [
    "MEMOPAD_ENGINE",
    "MEMOPAD_FALLBACK",
    "MEMOPAD_MODEL",
    "MEMOPAD_MAX_TOKENS",
    "MEMOPAD_TIMEOUT",
    "MEMOPAD_HOST",
    "MEMOPAD_PORT",
    "MEMOPAD_PREFERS_DARK",
    "MEMOPAD_MEMO_DIR",
    "MEMOPAD_PREFERENCES",
    "MEMOPAD_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestConfig:
    def test_defaults(self):
        config = load_config()
        assert config.engine.name == "anthropic_api"
        assert config.engine.fallback is None
        assert config.engine.timeout == 120
        assert config.server.port == 8420
        assert config.theme.prefers_dark is False
        assert config.theme.browser_capable is True
        assert config.memo_dir.name == "data"
        assert config.preferences_file.name == "preferences.json"
        assert config.log_level == "INFO"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MEMOPAD_ENGINE", "claude_cli")
        monkeypatch.setenv("MEMOPAD_TIMEOUT", "60")
        monkeypatch.setenv("MEMOPAD_PORT", "9001")
        monkeypatch.setenv("MEMOPAD_PREFERS_DARK", "yes")

        config = load_config()
        assert config.engine.name == "claude_cli"
        assert config.engine.timeout == 60
        assert config.server.port == 9001
        assert config.theme.prefers_dark is True

    def test_toml_file(self, tmp_path: Path):
        toml_path = tmp_path / "memopad.toml"
        toml_path.write_text("""
memo_dir = "/srv/memos"
log_level = "DEBUG"

[engine]
name = "claude_cli"
fallback = "anthropic_api"
timeout = 30

[server]
host = "0.0.0.0"
port = 8080

[theme]
prefers_dark = true
browser_capable = false
""")
        config = load_config(toml_path)
        assert config.engine.name == "claude_cli"
        assert config.engine.fallback == "anthropic_api"
        assert config.engine.timeout == 30
        assert config.server.host == "0.0.0.0"
        assert config.server.port == 8080
        assert config.theme.prefers_dark is True
        assert config.theme.browser_capable is False
        assert config.memo_dir == Path("/srv/memos")
        assert config.log_level == "DEBUG"

    def test_toml_in_cwd_is_discovered(self, tmp_path: Path):
        (tmp_path / "memopad.toml").write_text('[server]\nport = 7000\n')
        config = load_config()
        assert config.server.port == 7000

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("MEMOPAD_ENGINE", "anthropic_api")

        toml_path = tmp_path / "memopad.toml"
        toml_path.write_text("""
[engine]
name = "claude_cli"
""")
        config = load_config(toml_path)
        assert config.engine.name == "anthropic_api"  # env wins

    def test_maintenance_section(self, tmp_path: Path):
        toml_path = tmp_path / "memopad.toml"
        toml_path.write_text("""
pid_file = "/tmp/memopad-test.pid"

[maintenance]
interval = 60
prune_hour = 4
keep_versions = 5
""")
        config = load_config(toml_path)
        assert config.maintenance.interval == 60
        assert config.maintenance.prune_hour == 4
        assert config.maintenance.keep_versions == 5
        assert config.pid_file == Path("/tmp/memopad-test.pid")
