"""Memo table as markdown files with YAML frontmatter.

Layout:
    <memo_dir>/
    ├── memos/
    │   └── <id>.md                    # Frontmatter columns + markdown body
    └── .versions/                     # Timestamped backups (10 per memo)

Columns: id, title, content (body), category, tags, summary, created_at, updated_at.
"""
