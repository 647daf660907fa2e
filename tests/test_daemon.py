"""Tests for daemon wiring and housekeeping (no server is started)."""

import asyncio
import os
import pytest
from datetime import datetime
from pathlib import Path

from memopad.config import EngineConfig, MaintenanceConfig, MemopadConfig
from memopad.core import Memopad
from memopad.daemon import MemopadDaemon
from memopad.engines.base import Completion
from memopad.engines.claude_cli import ClaudeCLIEngine
from memopad.maintenance import Housekeeper


class MockEngine:
    def __init__(self, name: str = "mock", healthy: bool = True):
        self._name = name
        self.healthy = healthy
        self.checks = 0

    @property
    def name(self) -> str:
        return self._name

    async def complete(self, prompt, *, system_prompt=None) -> Completion:
        return Completion(text="ok")

    async def health_check(self) -> bool:
        self.checks += 1
        if self.healthy is None:
            raise RuntimeError("probe crashed")
        return self.healthy


@pytest.fixture
def config(tmp_path: Path) -> MemopadConfig:
    return MemopadConfig(
        engine=EngineConfig(name="claude_cli", model="haiku", timeout=30),
        maintenance=MaintenanceConfig(interval=1, prune_hour=3, keep_versions=2),
        memo_dir=tmp_path / "data",
        preferences_file=tmp_path / "preferences.json",
        pid_file=tmp_path / "run" / "memopad.pid",
    )


class TestBuild:
    def test_claude_cli(self, config: MemopadConfig):
        engine = MemopadDaemon(config).build_engine()
        assert isinstance(engine, ClaudeCLIEngine)
        assert engine.model == "haiku"
        assert engine.timeout == 30

    def test_unknown(self, config: MemopadConfig):
        with pytest.raises(ValueError, match="Unknown engine"):
            MemopadDaemon(config).build_engine("nope")

    def test_bad_fallback_is_skipped(self, config: MemopadConfig):
        config.engine.fallback = "nope"
        memopad = MemopadDaemon(config).build_memopad()
        assert list(memopad.engines) == ["claude_cli"]


class TestPidFile:
    def test_claim_and_release(self, config: MemopadConfig):
        daemon = MemopadDaemon(config)
        daemon._claim_pid_file()
        assert config.pid_file.read_text() == str(os.getpid())
        daemon._release_pid_file()
        assert not config.pid_file.exists()

    def test_release_without_file(self, config: MemopadConfig):
        MemopadDaemon(config)._release_pid_file()

    def test_garbage_pid_file_replaced(self, config: MemopadConfig):
        config.pid_file.parent.mkdir(parents=True)
        config.pid_file.write_text("not-a-pid")
        MemopadDaemon(config)._claim_pid_file()
        assert config.pid_file.read_text() == str(os.getpid())

    def test_live_instance_exits(self, config: MemopadConfig):
        config.pid_file.parent.mkdir(parents=True)
        config.pid_file.write_text(str(os.getppid()))
        with pytest.raises(SystemExit):
            MemopadDaemon(config)._claim_pid_file()

    @pytest.mark.asyncio
    async def test_released_when_startup_fails(self, config: MemopadConfig, monkeypatch):
        config.engine.name = "nope"
        daemon = MemopadDaemon(config)
        monkeypatch.setattr(daemon, "_install_signal_handlers", lambda: None)
        with pytest.raises(ValueError, match="Unknown engine"):
            await daemon.run()
        assert not config.pid_file.exists()


class TestHousekeeper:
    @pytest.fixture
    def memopad(self, config: MemopadConfig) -> Memopad:
        return Memopad(config)

    @pytest.mark.asyncio
    async def test_check_engines(self, memopad: Memopad, config: MemopadConfig):
        memopad.add_engine(MockEngine("up"))
        memopad.add_engine(MockEngine("down", healthy=False))
        memopad.add_engine(MockEngine("broken", healthy=None))
        results = await Housekeeper(memopad, config.maintenance).check_engines()
        assert results == {"up": True, "down": False, "broken": False}

    def test_prune_versions(self, memopad: Memopad, config: MemopadConfig):
        for i in range(5):
            (memopad.store.versions_dir / f"m{i}-2026.md").write_text("x", encoding="utf-8")
        assert Housekeeper(memopad, config.maintenance).prune_versions() == 3

    @pytest.mark.asyncio
    async def test_prune_once_per_day_at_hour(self, memopad: Memopad, config: MemopadConfig):
        memopad.add_engine(MockEngine())
        keeper = Housekeeper(memopad, config.maintenance)
        for i in range(5):
            (memopad.store.versions_dir / f"m{i}-2026.md").write_text("x", encoding="utf-8")

        await keeper.tick(datetime(2026, 5, 1, 2, 0))
        assert len(list(memopad.store.versions_dir.glob("*"))) == 5

        await keeper.tick(datetime(2026, 5, 1, 3, 0))
        assert len(list(memopad.store.versions_dir.glob("*"))) == 2

        (memopad.store.versions_dir / "late-2026.md").write_text("x", encoding="utf-8")
        await keeper.tick(datetime(2026, 5, 1, 3, 30))
        assert len(list(memopad.store.versions_dir.glob("*"))) == 3

    @pytest.mark.asyncio
    async def test_run_stops_on_event(self, memopad: Memopad, config: MemopadConfig):
        stop = asyncio.Event()
        stop.set()
        await asyncio.wait_for(Housekeeper(memopad, config.maintenance).run(stop), timeout=1)
