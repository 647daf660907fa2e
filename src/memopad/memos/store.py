"""Memo table backed by markdown files.

Markdown files are the source of truth. Columns live in YAML frontmatter and the
memo content is the body. An in-memory index (built once at startup, updated
incrementally on writes) avoids repeated disk scans.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from pathlib import Path

import frontmatter

from memopad.memos.models import (
    Category,
    Memo,
    MemoInsert,
    MemoUpdate,
    memo_from_row,
    memo_to_row,
    now_utc,
)

logger = logging.getLogger(__name__)

MAX_VERSIONS_PER_MEMO = 10


class MemoStoreError(Exception):
    """Base class for memo table errors."""


class MemoNotFoundError(MemoStoreError, KeyError):
    """No memo with the given id."""

    def __init__(self, memo_id: str) -> None:
        super().__init__(memo_id)
        self.memo_id = memo_id

    def __str__(self) -> str:
        return f"Memo not found: {self.memo_id}"


class InvalidMemoError(MemoStoreError, ValueError):
    """Rejected insert or update payload."""


class StaleSummaryError(MemoStoreError):
    """The memo content changed after a summary was requested."""


class MemoStore:
    """Read/write access to the memos table."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._index: dict[str, Memo] = {}
        self._ensure_initialized()
        self._build_index()

    # ── Initialization ────────────────────────────────────────

    @property
    def memos_dir(self) -> Path:
        return self.root / "memos"

    @property
    def versions_dir(self) -> Path:
        return self.root / ".versions"

    def _ensure_initialized(self) -> None:
        """Ensure base directories exist. Idempotent."""
        for d in (self.memos_dir, self.versions_dir):
            d.mkdir(parents=True, exist_ok=True)

    # ── In-memory index ───────────────────────────────────────

    def _build_index(self) -> None:
        """Scan memos/ once at startup, build in-memory index."""
        self._index.clear()
        for md_file in self.memos_dir.glob("*.md"):
            memo = self._load(md_file)
            if memo is not None:
                self._index[memo.id] = memo
        logger.debug("Indexed %d memos from %s", len(self._index), self.memos_dir)

    def _load(self, path: Path) -> Memo | None:
        """Parse one memo file. Unreadable files are skipped."""
        try:
            post = frontmatter.load(str(path))
            row = dict(post.metadata)
            row.setdefault("id", path.stem)
            row["content"] = post.content.strip("\n")
            return memo_from_row(row)
        except Exception as e:
            logger.warning("Skipping unreadable memo file %s: %s", path, e)
            return None

    # ── Paths & persistence ───────────────────────────────────

    def _path(self, memo_id: str) -> Path:
        return self.memos_dir / f"{memo_id}.md"

    def _write(self, memo: Memo) -> None:
        row = memo_to_row(memo)
        content = row.pop("content")
        post = frontmatter.Post(content, **row)
        self._path(memo.id).write_text(frontmatter.dumps(post) + "\n", encoding="utf-8")
        self._index[memo.id] = memo

    def _backup(self, path: Path) -> None:
        """Backup to .versions/, keep at most MAX_VERSIONS_PER_MEMO per memo."""
        if not path.exists():
            return
        ts = datetime.now().strftime("%Y%m%dT%H%M%S%f")
        (self.versions_dir / f"{path.stem}-{ts}.md").write_text(
            path.read_text(encoding="utf-8"), encoding="utf-8"
        )
        old = sorted(self.versions_dir.glob(f"{path.stem}-*.md"))
        for f in old[:-MAX_VERSIONS_PER_MEMO]:
            f.unlink()

    # ── Validation ────────────────────────────────────────────

    def _validate(self, fields: MemoInsert | MemoUpdate, *, partial: bool) -> dict:
        clean: dict = {}
        if "title" in fields or not partial:
            title = str(fields.get("title") or "").strip()
            if not title:
                raise InvalidMemoError("title is required")
            clean["title"] = title
        if "content" in fields:
            clean["content"] = str(fields["content"] or "")
        if "category" in fields:
            value = str(fields["category"] or "").strip().lower()
            try:
                clean["category"] = Category(value)
            except ValueError:
                raise InvalidMemoError(f"unknown category: {fields['category']!r}")
        if "tags" in fields:
            tags = fields["tags"] or []
            if isinstance(tags, str) or not isinstance(tags, (list, tuple)):
                raise InvalidMemoError("tags must be a list of strings")
            clean["tags"] = [str(t).strip() for t in tags if str(t).strip()]
        if "summary" in fields:
            clean["summary"] = fields["summary"] or None
        return clean

    # ── CRUD ──────────────────────────────────────────────────

    def fetch_memos(
        self,
        category: Category | str | None = None,
        query: str | None = None,
    ) -> list[Memo]:
        """All memos, newest first. Optionally filter by category and substring."""
        wanted = Category.parse(category) if category else None
        q = query.lower().strip() if query else ""
        results = []
        for memo in self._index.values():
            if wanted and memo.category != wanted:
                continue
            if q and not self._matches(memo, q):
                continue
            results.append(memo)
        return sorted(results, key=lambda m: m.created_at, reverse=True)

    def _matches(self, memo: Memo, q: str) -> bool:
        if q in memo.title.lower() or q in memo.content.lower():
            return True
        return any(q in tag.lower() for tag in memo.tags)

    def get_memo(self, memo_id: str) -> Memo:
        memo = self._index.get(memo_id)
        if memo is None:
            raise MemoNotFoundError(memo_id)
        return memo

    def create_memo(self, fields: MemoInsert) -> Memo:
        """Insert a new memo. Id and timestamps are assigned here."""
        clean = self._validate(fields, partial=False)
        ts = now_utc()
        memo = Memo(
            id=str(uuid.uuid4()),
            title=clean["title"],
            content=clean.get("content", ""),
            category=clean.get("category", Category.OTHER),
            tags=clean.get("tags", []),
            summary=clean.get("summary"),
            created_at=ts,
            updated_at=ts,
        )
        self._write(memo)
        logger.info("Created memo: %s (%s)", memo.id, memo.title)
        return memo

    def update_memo(self, memo_id: str, fields: MemoUpdate) -> Memo:
        """Apply a partial update. id and created_at are immutable."""
        memo = self.get_memo(memo_id)
        clean = self._validate(fields, partial=True)
        changes = dict(clean)

        if "content" in changes and changes["content"] != memo.content and "summary" not in changes:
            changes["summary"] = None  # summary was derived from the old content

        ts = max(now_utc(), memo.created_at)
        updated = Memo(
            id=memo.id,
            title=changes.get("title", memo.title),
            content=changes.get("content", memo.content),
            category=changes.get("category", memo.category),
            tags=changes.get("tags", list(memo.tags)),
            summary=changes.get("summary", memo.summary),
            created_at=memo.created_at,
            updated_at=ts,
        )
        self._backup(self._path(memo_id))
        self._write(updated)
        logger.info("Updated memo: %s", memo_id)
        return updated

    def delete_memo(self, memo_id: str) -> None:
        """Delete a memo file (auto-backup)."""
        self.get_memo(memo_id)
        path = self._path(memo_id)
        self._backup(path)
        path.unlink(missing_ok=True)
        self._index.pop(memo_id, None)
        logger.info("Deleted memo: %s", memo_id)

    def set_summary(self, memo_id: str, summary: str, *, content: str | None = None) -> Memo:
        """Cache a generated summary. Does not count as an edit.

        If `content` is given it must still match the memo, otherwise the summary
        describes text that is gone and StaleSummaryError is raised.
        """
        memo = self.get_memo(memo_id)
        if content is not None and memo.content != content:
            raise StaleSummaryError(f"memo {memo_id} changed while summarizing")
        updated = Memo(
            id=memo.id,
            title=memo.title,
            content=memo.content,
            category=memo.category,
            tags=list(memo.tags),
            summary=summary,
            created_at=memo.created_at,
            updated_at=memo.updated_at,
        )
        self._write(updated)
        logger.info("Stored summary for memo %s (%d chars)", memo_id, len(summary))
        return updated

    def cleanup_old_versions(self, keep: int = 50) -> int:
        """Keep only the most recent `keep` version files."""
        versions = sorted(
            self.versions_dir.glob("*"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        removed = 0
        for path in versions[keep:]:
            path.unlink()
            removed += 1
        return removed
