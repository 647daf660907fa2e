"""Memo card shown in the memo list."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from memopad.memos.models import category_badge, category_label, format_timestamp
from memopad.views.detail import DELETE_PROMPT

if TYPE_CHECKING:
    from memopad.memos.models import Memo

PREVIEW_CHARS = 200


class MemoCard:
    """One list item. Activating the card opens the detail view.

    The edit and delete buttons sit on the card but never activate it.
    """

    def __init__(
        self,
        memo: Memo,
        *,
        on_activate: Callable[[Memo], None],
        on_edit: Callable[[Memo], None],
        on_delete: Callable[[str], Awaitable[None]],
        confirm: Callable[[str], bool],
    ) -> None:
        self.memo = memo
        self._on_activate = on_activate
        self._on_edit = on_edit
        self._on_delete = on_delete
        self._confirm = confirm

    @property
    def title(self) -> str:
        return self.memo.title

    @property
    def category_label(self) -> str:
        return category_label(self.memo.category)

    @property
    def badge_classes(self) -> str:
        return category_badge(self.memo.category)

    @property
    def updated_display(self) -> str:
        return format_timestamp(self.memo.updated_at)

    @property
    def preview(self) -> str:
        text = self.memo.content.strip()
        if len(text) <= PREVIEW_CHARS:
            return text
        return text[:PREVIEW_CHARS].rstrip() + "…"

    @property
    def tag_labels(self) -> list[str]:
        return [f"#{tag}" for tag in self.memo.tags]

    def activate(self) -> None:
        self._on_activate(self.memo)

    def edit(self) -> None:
        self._on_edit(self.memo)

    async def delete(self) -> bool:
        """Returns True if the memo was deleted."""
        if not self._confirm(DELETE_PROMPT):
            return False
        await self._on_delete(self.memo.id)
        return True
