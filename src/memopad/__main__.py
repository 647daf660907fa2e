"""Entry point: python -m memopad [serve|list|summarize|theme]

- serve (default):        run the memo HTTP API until SIGTERM/SIGINT
- list [category]:        print memos, newest first
- summarize <memo-id>:    generate (or print the cached) summary
- theme [light|dark|toggle]: show or change the stored theme
"""

from __future__ import annotations

import asyncio
import logging
import sys

from memopad.config import MemopadConfig, load_config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _run_serve(config: MemopadConfig) -> None:
    from memopad.daemon import MemopadDaemon

    asyncio.run(MemopadDaemon(config).run())


def _run_list(config: MemopadConfig, args: list[str]) -> None:
    from memopad.memos.models import category_label, format_timestamp
    from memopad.memos.store import MemoStore

    store = MemoStore(config.memo_dir)
    for memo in store.fetch_memos(category=args[0] if args else None):
        print(
            f"{memo.id}  {format_timestamp(memo.created_at)}  "
            f"[{category_label(memo.category)}] {memo.title}"
        )


def _run_summarize(config: MemopadConfig, args: list[str]) -> None:
    if not args:
        print("Usage: python -m memopad summarize <memo-id>", file=sys.stderr)
        sys.exit(2)

    from memopad.daemon import MemopadDaemon
    from memopad.memos.store import MemoNotFoundError
    from memopad.summarizer import SummarizationError

    memopad = MemopadDaemon(config).build_memopad()
    try:
        print(asyncio.run(memopad.summarize(args[0])))
    except (MemoNotFoundError, SummarizationError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


def _run_theme(config: MemopadConfig, args: list[str]) -> None:
    from memopad.core import Memopad

    theme = Memopad(config).theme
    theme.initialize()
    if args:
        choice = args[0]
        if choice == "toggle":
            theme.toggle()
        else:
            try:
                theme.set(choice)
            except ValueError as e:
                print(f"error: {e}", file=sys.stderr)
                sys.exit(2)
    print(theme.theme)


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "serve"
    args = sys.argv[2:]

    config = load_config()
    _setup_logging(config.log_level)

    if cmd == "serve":
        _run_serve(config)
    elif cmd == "list":
        _run_list(config, args)
    elif cmd == "summarize":
        _run_summarize(config, args)
    elif cmd == "theme":
        _run_theme(config, args)
    else:
        print("Usage: python -m memopad [serve|list|summarize|theme]")
        print("  serve                      Run the memo HTTP API (default)")
        print("  list [category]            List memos, newest first")
        print("  summarize <memo-id>        Summarize one memo")
        print("  theme [light|dark|toggle]  Show or change the theme")
        sys.exit(1)


if __name__ == "__main__":
    main()
