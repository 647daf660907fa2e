"""Memo detail view: modal visibility, displayed memo and summary status.

States:
    CLOSED ──open(memo)──▶ IDLE (or SUMMARIZED when the memo already has a summary)
    IDLE ──request_summary──▶ SUMMARIZING ──ok──▶ SUMMARIZED
                                          └─fail─▶ IDLE (+ alert)
    any open state ──close / Escape / overlay click / edit / delete──▶ CLOSED

Keyboard and click listeners are attached while open and detached on close.
Closing cancels the in-flight summary request; its late result is dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING

from memopad.summarizer import CancelToken
from memopad.views.events import OVERLAY, ClickEvent, KeyEvent

if TYPE_CHECKING:
    from memopad.memos.models import Memo
    from memopad.views.events import EventTarget

logger = logging.getLogger(__name__)

SummarizeFn = Callable[[str, CancelToken], Awaitable[str]]
EditFn = Callable[["Memo"], None]
DeleteFn = Callable[[str], Awaitable[None]]
ConfirmFn = Callable[[str], bool]
AlertFn = Callable[[str], None]

DELETE_PROMPT = "Delete this memo? This cannot be undone."
SUMMARY_FAILED_MESSAGE = "Failed to summarize the memo."
DELETE_FAILED_MESSAGE = "Failed to delete the memo."


class DetailState(Enum):
    CLOSED = "closed"
    IDLE = "idle"
    SUMMARIZING = "summarizing"
    SUMMARIZED = "summarized"


class MemoDetailView:
    """Modal showing one memo with its summary, edit and delete actions."""

    def __init__(
        self,
        window: EventTarget,
        *,
        summarize: SummarizeFn,
        on_edit: EditFn,
        on_delete: DeleteFn,
        confirm: ConfirmFn,
        alert: AlertFn,
    ) -> None:
        self._window = window
        self._summarize = summarize
        self._on_edit = on_edit
        self._on_delete = on_delete
        self._confirm = confirm
        self._alert = alert

        self.visible_memo: Memo | None = None
        self.is_open = False
        self.summary_text: str | None = None
        self.is_summarizing = False

        self._token: CancelToken | None = None
        self._listening = False

    @property
    def state(self) -> DetailState:
        if not self.is_open:
            return DetailState.CLOSED
        if self.is_summarizing:
            return DetailState.SUMMARIZING
        if self.summary_text:
            return DetailState.SUMMARIZED
        return DetailState.IDLE

    # ── Open / close ──────────────────────────────────────────

    def open(self, memo: Memo | None) -> None:
        if memo is None:
            self.close()
            return
        if self._token is not None:
            self._token.cancel()

        self.visible_memo = memo
        self.is_open = True
        self.summary_text = memo.summary or None
        self.is_summarizing = False
        self._token = CancelToken()
        self._attach()

    def close(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None
        self._detach()
        self.visible_memo = None
        self.is_open = False
        self.summary_text = None
        self.is_summarizing = False

    def teardown(self) -> None:
        self.close()

    def _attach(self) -> None:
        if self._listening:
            return
        self._window.add_listener("keydown", self._handle_keydown)
        self._window.add_listener("click", self._handle_click)
        self._listening = True

    def _detach(self) -> None:
        if not self._listening:
            return
        self._window.remove_listener("keydown", self._handle_keydown)
        self._window.remove_listener("click", self._handle_click)
        self._listening = False

    def _handle_keydown(self, event: KeyEvent) -> None:
        if event.key == "Escape":
            self.close()

    def _handle_click(self, event: ClickEvent) -> None:
        # Clicks inside the content panel must not close the modal.
        if event.target == OVERLAY:
            self.close()

    # ── Actions ───────────────────────────────────────────────

    async def request_summary(self) -> None:
        memo = self.visible_memo
        token = self._token
        if not self.is_open or memo is None or token is None:
            return
        if self.summary_text or self.is_summarizing:
            return

        self.is_summarizing = True
        try:
            result = await self._summarize(memo.id, token)
        except Exception as e:
            if token.cancelled:
                logger.debug("Dropping summary failure for closed view: %s", e)
                return
            logger.error("Summary failed for memo %s: %s", memo.id, e)
            self._alert(SUMMARY_FAILED_MESSAGE)
        else:
            if token.cancelled:
                logger.debug("Dropping late summary for memo %s", memo.id)
                return
            self.summary_text = result
        finally:
            if not token.cancelled:
                self.is_summarizing = False

    def request_edit(self) -> None:
        memo = self.visible_memo
        if not self.is_open or memo is None:
            return
        self.close()
        self._on_edit(memo)

    async def request_delete(self) -> None:
        memo = self.visible_memo
        if not self.is_open or memo is None:
            return
        if not self._confirm(DELETE_PROMPT):
            return

        try:
            await self._on_delete(memo.id)
        except Exception as e:
            logger.error("Delete failed for memo %s: %s", memo.id, e)
            self._alert(DELETE_FAILED_MESSAGE)
            return

        if self.visible_memo is not None and self.visible_memo.id == memo.id:
            self.close()
