"""Memo entity, category enumeration and row mapping for the memos table."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TypedDict


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Category(str, Enum):
    """Closed set of memo categories."""

    PERSONAL = "personal"
    WORK = "work"
    STUDY = "study"
    IDEA = "idea"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | Category | None) -> Category:
        """Map a stored value onto the enumeration. Unknown values become OTHER."""
        if isinstance(value, Category):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


_LABELS: dict[Category, str] = {
    Category.PERSONAL: "Personal",
    Category.WORK: "Work",
    Category.STUDY: "Study",
    Category.IDEA: "Idea",
    Category.OTHER: "Other",
}

_BADGES: dict[Category, str] = {
    Category.PERSONAL: "bg-blue-100 dark:bg-blue-900 text-blue-800 dark:text-blue-200",
    Category.WORK: "bg-green-100 dark:bg-green-900 text-green-800 dark:text-green-200",
    Category.STUDY: "bg-purple-100 dark:bg-purple-900 text-purple-800 dark:text-purple-200",
    Category.IDEA: "bg-yellow-100 dark:bg-yellow-900 text-yellow-800 dark:text-yellow-200",
    Category.OTHER: "bg-gray-100 dark:bg-gray-700 text-gray-800 dark:text-gray-200",
}


def category_label(category: Category) -> str:
    """Display label for a category."""
    return _LABELS[category]


def category_badge(category: Category) -> str:
    """Style classes for a category badge (light and dark variants)."""
    return _BADGES[category]


# ── Rows ─────────────────────────────────────────────────────


class MemoRow(TypedDict):
    id: str
    title: str
    content: str
    category: str
    tags: list[str]
    summary: str | None
    created_at: str
    updated_at: str


class MemoInsert(TypedDict, total=False):
    id: str
    title: str
    content: str
    category: str
    tags: list[str]
    summary: str | None
    created_at: str
    updated_at: str


class MemoUpdate(TypedDict, total=False):
    id: str
    title: str
    content: str
    category: str
    tags: list[str]
    summary: str | None
    created_at: str
    updated_at: str


@dataclass
class Memo:
    """A single user note."""

    id: str
    title: str
    content: str
    category: Category = Category.OTHER
    tags: list[str] = field(default_factory=list)
    summary: str | None = None
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.updated_at is None:
            self.updated_at = self.created_at

    @property
    def edited(self) -> bool:
        return self.updated_at != self.created_at


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO 8601 timestamp. Naive values are taken as UTC."""
    ts = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _parse_tags(value) -> list[str]:
    # Hand-edited files may hold a scalar such as `tags: work, home`.
    if isinstance(value, str):
        value = value.split(",")
    return [str(t).strip() for t in value or [] if str(t).strip()]


def memo_from_row(row: MemoRow | dict) -> Memo:
    """Build a Memo from a table row. updated_at is clamped to created_at."""
    created_at = parse_timestamp(row["created_at"])
    return Memo(
        id=str(row["id"]),
        title=row.get("title") or "",
        content=row.get("content") or "",
        category=Category.parse(row.get("category")),
        tags=_parse_tags(row.get("tags")),
        summary=row.get("summary") or None,
        created_at=created_at,
        updated_at=max(parse_timestamp(row["updated_at"]), created_at),
    )


def memo_to_row(memo: Memo) -> MemoRow:
    """Serialize a Memo into a table row (ISO timestamps)."""
    return MemoRow(
        id=memo.id,
        title=memo.title,
        content=memo.content,
        category=memo.category.value,
        tags=list(memo.tags),
        summary=memo.summary,
        created_at=memo.created_at.isoformat(),
        updated_at=memo.updated_at.isoformat(),
    )


def format_timestamp(ts: datetime, *, long: bool = False) -> str:
    """Human-readable timestamp for cards (short month) and the detail view (long)."""
    month = "%B" if long else "%b"
    return ts.strftime(f"{month} {ts.day}, %Y %H:%M")
