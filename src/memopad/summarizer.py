"""On-demand memo summaries.

A summary is generated once per memo content and cached on the memo; later
requests return the cached text without calling an engine.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from memopad.memos.store import StaleSummaryError

if TYPE_CHECKING:
    from memopad.engines.base import Completion, Engine
    from memopad.memos.store import MemoStore

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You summarize personal notes. Reply with the summary only: three sentences at
most, in the language of the note, no preamble, no markdown headings.
"""


class SummarizationError(Exception):
    """The engine failed to produce a summary."""


class SummaryCancelled(Exception):
    """The requester gave up before the summary was produced."""


class CancelToken:
    """Cooperative cancellation flag handed to one summary request."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise SummaryCancelled()


class Summarizer:
    """Generates and caches summaries through a primary engine and optional fallback."""

    def __init__(self, store: MemoStore, engine: Engine, fallback: Engine | None = None) -> None:
        self.store = store
        self.engine = engine
        self.fallback = fallback

    async def summarize(self, memo_id: str, cancel: CancelToken | None = None) -> str:
        """Return the memo's summary, generating it if needed.

        Raises MemoNotFoundError, SummaryCancelled or SummarizationError.
        """
        memo = self.store.get_memo(memo_id)
        if memo.summary:
            return memo.summary

        if cancel:
            cancel.raise_if_cancelled()

        if not memo.content.strip() and not memo.title.strip():
            raise SummarizationError("memo is empty")

        prompt = f"# {memo.title}\n\n{memo.content}"
        reply = await self._complete(prompt)

        if not reply.ok:
            raise SummarizationError(reply.error)
        text = reply.text.strip()
        if not text:
            raise SummarizationError("engine returned an empty summary")

        try:
            self.store.set_summary(memo_id, text, content=memo.content)
        except StaleSummaryError as e:
            logger.info("Discarding summary for %s: content was edited meanwhile", memo_id)
            raise SummarizationError(str(e)) from e
        return text

    async def _complete(self, prompt: str) -> Completion:
        reply = await self.engine.complete(prompt, system_prompt=SYSTEM_PROMPT)
        if not reply.ok and self.fallback is not None:
            logger.warning(
                "Engine %s failed (%s), trying fallback %s",
                self.engine.name,
                reply.error,
                self.fallback.name,
            )
            reply = await self.fallback.complete(prompt, system_prompt=SYSTEM_PROMPT)
        if reply.ok:
            logger.info(
                "Summary generated by %s (tokens in=%s out=%s)",
                reply.model or "engine",
                reply.input_tokens,
                reply.output_tokens,
            )
        else:
            logger.error("Summary generation failed: %s", reply.error)
        return reply
