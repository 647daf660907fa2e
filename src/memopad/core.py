"""Memopad orchestrator.

Responsibilities:
1. Own the memo table, the registered engines and the session-wide theme preference
2. Lane lock per memo: concurrent summary requests for one memo generate it once
3. Build views (memo cards, detail view) wired to the store and summarizer
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from memopad.config import MemopadConfig
from memopad.memos.store import MemoStore
from memopad.summarizer import CancelToken, Summarizer
from memopad.theme import Environment, PreferenceStore, PresentationContext, ThemePreference
from memopad.views.card import MemoCard
from memopad.views.detail import MemoDetailView

if TYPE_CHECKING:
    from memopad.engines.base import Engine
    from memopad.memos.models import Category, Memo
    from memopad.views.events import EventTarget

logger = logging.getLogger(__name__)


class Memopad:
    """Core orchestrator. Ties the store, engines and views together."""

    def __init__(self, config: MemopadConfig) -> None:
        self.config = config
        self.store = MemoStore(config.memo_dir)
        prefers_dark = config.theme.prefers_dark
        self.theme = ThemePreference(
            PreferenceStore(config.preferences_file),
            PresentationContext(),
            Environment(
                browser_capable=config.theme.browser_capable,
                prefers_dark=lambda: prefers_dark,
            ),
        )
        self._engines: dict[str, Engine] = {}
        self._lane_locks: dict[str, asyncio.Lock] = {}  # per-memo serialization

    # ── Engine management ────────────────────────────────────

    def add_engine(self, engine: Engine) -> None:
        self._engines[engine.name] = engine
        logger.info("Registered engine: %s", engine.name)

    @property
    def engines(self) -> dict[str, Engine]:
        return dict(self._engines)

    def _get_engine(self, name: str | None = None) -> Engine:
        name = name or self.config.engine.name
        engine = self._engines.get(name)
        if not engine:
            raise RuntimeError(
                f"Engine '{name}' not registered. Available: {list(self._engines)}"
            )
        return engine

    @property
    def summarizer(self) -> Summarizer:
        fallback_name = self.config.engine.fallback
        fallback = self._engines.get(fallback_name) if fallback_name else None
        return Summarizer(self.store, self._get_engine(), fallback)

    # ── Memo operations ──────────────────────────────────────

    def _get_lane_lock(self, memo_id: str) -> asyncio.Lock:
        if memo_id not in self._lane_locks:
            self._lane_locks[memo_id] = asyncio.Lock()
        return self._lane_locks[memo_id]

    async def summarize(self, memo_id: str, cancel: CancelToken | None = None) -> str:
        lock = self._get_lane_lock(memo_id)
        async with lock:
            return await self.summarizer.summarize(memo_id, cancel)

    async def delete_memo(self, memo_id: str) -> None:
        self.store.delete_memo(memo_id)
        self._lane_locks.pop(memo_id, None)

    # ── Views ─────────────────────────────────────────────────

    def detail_view(
        self,
        window: EventTarget,
        *,
        on_edit: Callable[[Memo], None],
        confirm: Callable[[str], bool],
        alert: Callable[[str], None],
    ) -> MemoDetailView:
        return MemoDetailView(
            window,
            summarize=self.summarize,
            on_edit=on_edit,
            on_delete=self.delete_memo,
            confirm=confirm,
            alert=alert,
        )

    def cards(
        self,
        *,
        on_activate: Callable[[Memo], None],
        on_edit: Callable[[Memo], None],
        confirm: Callable[[str], bool],
        category: Category | str | None = None,
        query: str | None = None,
        on_delete: Callable[[str], Awaitable[None]] | None = None,
    ) -> list[MemoCard]:
        return [
            MemoCard(
                memo,
                on_activate=on_activate,
                on_edit=on_edit,
                on_delete=on_delete or self.delete_memo,
                confirm=confirm,
            )
            for memo in self.store.fetch_memos(category=category, query=query)
        ]

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> None:
        """Resolve session state. Engines must be registered first."""
        if not self._engines:
            raise RuntimeError("No engines registered. Call add_engine() first.")
        self.theme.initialize()
        logger.info(
            "Memopad ready (%d memos, engine=%s, theme=%s)",
            len(self.store.fetch_memos()),
            self.config.engine.name,
            self.theme.theme,
        )

    async def stop(self) -> None:
        """Close engines that support it."""
        for engine in self._engines.values():
            close = getattr(engine, "close", None)
            if close and callable(close):
                await close()
