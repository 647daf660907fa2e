"""JSON HTTP API for the memo app.

Routes:
    GET    /api/memos                 list (?category=, ?q=)
    POST   /api/memos                 create
    GET    /api/memos/{id}            one memo with rendered html
    PUT    /api/memos/{id}            update
    DELETE /api/memos/{id}            delete
    POST   /api/memos/{id}/summary    generate (or return cached) summary
    GET    /api/theme                 current theme
    PUT    /api/theme                 set theme
    POST   /api/theme/toggle          toggle theme
"""

from __future__ import annotations

import json
import logging

from aiohttp import web

from memopad.core import Memopad
from memopad.memos.models import Memo, category_label, memo_to_row
from memopad.memos.store import InvalidMemoError, MemoNotFoundError
from memopad.rendering import render
from memopad.summarizer import SummarizationError

logger = logging.getLogger(__name__)

MEMOPAD_KEY = web.AppKey("memopad", Memopad)


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


@web.middleware
async def _error_middleware(request: web.Request, handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except MemoNotFoundError as e:
        return _error(404, str(e))
    except InvalidMemoError as e:
        return _error(400, str(e))
    except SummarizationError as e:
        logger.warning("Summary request failed: %s", e)
        return _error(502, f"summary failed: {e}")


async def _read_object(request: web.Request) -> dict:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidMemoError("request body must be JSON")
    if not isinstance(body, dict):
        raise InvalidMemoError("request body must be a JSON object")
    return body


def _memo_json(memo: Memo, *, with_html: bool = False) -> dict:
    data = dict(memo_to_row(memo))
    data["category_label"] = category_label(memo.category)
    if with_html:
        data["html"] = render(memo.content)
    return data


def _theme_json(memopad: Memopad) -> dict:
    theme = memopad.theme
    return {
        "theme": theme.theme,
        "is_dark": theme.is_dark,
        "mounted": theme.mounted,
        "root_classes": theme.root.classes,
    }


# ── Memo handlers ────────────────────────────────────────────


async def list_memos(request: web.Request) -> web.Response:
    memopad = request.app[MEMOPAD_KEY]
    memos = memopad.store.fetch_memos(
        category=request.query.get("category") or None,
        query=request.query.get("q") or None,
    )
    return web.json_response({"memos": [_memo_json(m) for m in memos]})


async def create_memo(request: web.Request) -> web.Response:
    memopad = request.app[MEMOPAD_KEY]
    body = await _read_object(request)
    memo = memopad.store.create_memo(body)
    return web.json_response(_memo_json(memo), status=201)


async def get_memo(request: web.Request) -> web.Response:
    memopad = request.app[MEMOPAD_KEY]
    memo = memopad.store.get_memo(request.match_info["memo_id"])
    return web.json_response(_memo_json(memo, with_html=True))


async def update_memo(request: web.Request) -> web.Response:
    memopad = request.app[MEMOPAD_KEY]
    body = await _read_object(request)
    memo = memopad.store.update_memo(request.match_info["memo_id"], body)
    return web.json_response(_memo_json(memo))


async def delete_memo(request: web.Request) -> web.Response:
    memopad = request.app[MEMOPAD_KEY]
    await memopad.delete_memo(request.match_info["memo_id"])
    return web.Response(status=204)


async def summarize_memo(request: web.Request) -> web.Response:
    memopad = request.app[MEMOPAD_KEY]
    memo_id = request.match_info["memo_id"]
    summary = await memopad.summarize(memo_id)
    return web.json_response({"id": memo_id, "summary": summary})


# ── Theme handlers ───────────────────────────────────────────


async def get_theme(request: web.Request) -> web.Response:
    return web.json_response(_theme_json(request.app[MEMOPAD_KEY]))


async def set_theme(request: web.Request) -> web.Response:
    memopad = request.app[MEMOPAD_KEY]
    body = await _read_object(request)
    try:
        memopad.theme.set(str(body.get("theme", "")))
    except ValueError as e:
        return _error(400, str(e))
    return web.json_response(_theme_json(memopad))


async def toggle_theme(request: web.Request) -> web.Response:
    memopad = request.app[MEMOPAD_KEY]
    memopad.theme.toggle()
    return web.json_response(_theme_json(memopad))


def create_app(memopad: Memopad) -> web.Application:
    app = web.Application(middlewares=[_error_middleware])
    app[MEMOPAD_KEY] = memopad
    app.router.add_get("/api/memos", list_memos)
    app.router.add_post("/api/memos", create_memo)
    app.router.add_get("/api/memos/{memo_id}", get_memo)
    app.router.add_put("/api/memos/{memo_id}", update_memo)
    app.router.add_delete("/api/memos/{memo_id}", delete_memo)
    app.router.add_post("/api/memos/{memo_id}/summary", summarize_memo)
    app.router.add_get("/api/theme", get_theme)
    app.router.add_put("/api/theme", set_theme)
    app.router.add_post("/api/theme/toggle", toggle_theme)
    return app


async def start_server(memopad: Memopad, host: str, port: int) -> web.AppRunner:
    """Start serving the API. Caller owns the returned runner (runner.cleanup())."""
    runner = web.AppRunner(create_app(memopad))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("Memopad API listening on http://%s:%d", host, port)
    return runner
