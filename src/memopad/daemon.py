"""Daemon process that serves the memo API.

Usage: python -m memopad serve

Owns the process-level concerns around a Memopad instance: one live instance
per PID file, engine construction from config, the HTTP listener, background
housekeeping, and a clean stop on SIGTERM/SIGINT.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys

from memopad.config import MemopadConfig, load_config
from memopad.core import Memopad
from memopad.engines.base import Engine
from memopad.engines.claude_cli import ClaudeCLIEngine
from memopad.maintenance import Housekeeper
from memopad.server import start_server

logger = logging.getLogger(__name__)


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but belongs to another user.
        return True
    return True


class MemopadDaemon:
    """Long-running API process."""

    def __init__(self, config: MemopadConfig | None = None) -> None:
        self.config = config or load_config()
        self._stop = asyncio.Event()

    # ── Single instance ──────────────────────────────────────

    def _claim_pid_file(self) -> None:
        pid_file = self.config.pid_file
        if pid_file.exists():
            try:
                other = int(pid_file.read_text().strip())
            except ValueError:
                other = None
            if other is not None and other != os.getpid() and _pid_alive(other):
                print(f"memopad is already serving (pid={other}).", file=sys.stderr)
                sys.exit(1)
            logger.info("Removing stale PID file %s", pid_file)
            pid_file.unlink()

        pid_file.parent.mkdir(parents=True, exist_ok=True)
        pid_file.write_text(str(os.getpid()))
        logger.debug("Claimed %s (pid=%d)", pid_file, os.getpid())

    def _release_pid_file(self) -> None:
        self.config.pid_file.unlink(missing_ok=True)

    # ── Signals ──────────────────────────────────────────────

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self.request_stop, sig)

    def request_stop(self, sig: signal.Signals | None = None) -> None:
        if sig is not None:
            logger.info("Got %s, stopping", sig.name)
        self._stop.set()

    # ── Wiring ───────────────────────────────────────────────

    def build_engine(self, name: str | None = None) -> Engine:
        cfg = self.config.engine
        name = name or cfg.name
        if name == "claude_cli":
            return ClaudeCLIEngine(model=cfg.model, timeout=cfg.timeout)
        if name == "anthropic_api":
            from memopad.engines.anthropic_api import AnthropicAPIEngine

            return AnthropicAPIEngine(model=cfg.model, max_tokens=cfg.max_tokens, timeout=cfg.timeout)
        raise ValueError(f"Unknown engine: {name}")

    def build_memopad(self) -> Memopad:
        memopad = Memopad(self.config)
        memopad.add_engine(self.build_engine())

        fallback = self.config.engine.fallback
        if fallback and fallback != self.config.engine.name:
            try:
                memopad.add_engine(self.build_engine(fallback))
            except (ValueError, ImportError) as e:
                logger.warning("Fallback engine %s unavailable: %s", fallback, e)
        return memopad

    # ── Run ──────────────────────────────────────────────────

    async def run(self) -> None:
        self._claim_pid_file()
        memopad = None
        runner = None
        try:
            self._install_signal_handlers()
            memopad = self.build_memopad()
            housekeeper = Housekeeper(memopad, self.config.maintenance)
            await memopad.start()
            server = self.config.server
            runner = await start_server(memopad, server.host, server.port)
            await housekeeper.run(self._stop)
        finally:
            if runner is not None:
                await runner.cleanup()
            if memopad is not None:
                await memopad.stop()
            self._release_pid_file()
            logger.info("memopad stopped")
