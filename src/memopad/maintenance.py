"""Periodic housekeeping while the API is serving.

Jobs:
- Health: ask every registered engine whether it can still answer
- Prune: once a day, drop the oldest backup files under .versions/
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from memopad.config import MaintenanceConfig
    from memopad.core import Memopad

logger = logging.getLogger(__name__)


class Housekeeper:
    def __init__(self, memopad: Memopad, config: MaintenanceConfig) -> None:
        self._memopad = memopad
        self._config = config
        self._last_prune: str | None = None

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Tick every `interval` seconds until shutdown_event is set."""
        logger.info(
            "Housekeeping every %ds, prune@%02d:00", self._config.interval, self._config.prune_hour
        )
        while not shutdown_event.is_set():
            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=self._config.interval)
                break
            except asyncio.TimeoutError:
                pass
            await self.tick(datetime.now())

    async def tick(self, now: datetime) -> None:
        await self.check_engines()
        today = now.strftime("%Y-%m-%d")
        if now.hour == self._config.prune_hour and self._last_prune != today:
            self.prune_versions()
            self._last_prune = today

    async def check_engines(self) -> dict[str, bool]:
        results: dict[str, bool] = {}
        for name, engine in self._memopad.engines.items():
            try:
                results[name] = await engine.health_check()
            except Exception as e:
                logger.error("Engine %s health check raised: %s", name, e)
                results[name] = False
            if not results[name]:
                logger.warning("Engine %s is not answering", name)
        return results

    def prune_versions(self) -> int:
        removed = self._memopad.store.cleanup_old_versions(keep=self._config.keep_versions)
        if removed:
            logger.info("Pruned %d old memo backups", removed)
        return removed
