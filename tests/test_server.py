"""Tests for the JSON HTTP API."""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import test_utils

from memopad.config import EngineConfig, MemopadConfig
from memopad.core import Memopad
from memopad.engines.base import Completion
from memopad.rendering import CONTAINER_CLASS
from memopad.server import create_app


class MockEngine:
    def __init__(self):
        self.error: str | None = None

    @property
    def name(self) -> str:
        return "mock"

    async def complete(self, prompt, *, system_prompt=None) -> Completion:
        if self.error:
            return Completion.failed(self.error)
        return Completion(text="Mock summary")

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def memopad(tmp_path: Path) -> Memopad:
    m = Memopad(
        MemopadConfig(
            engine=EngineConfig(name="mock"),
            memo_dir=tmp_path / "data",
            preferences_file=tmp_path / "preferences.json",
        )
    )
    m.add_engine(MockEngine())
    return m


@pytest_asyncio.fixture
async def client(memopad: Memopad):
    async with test_utils.TestClient(test_utils.TestServer(create_app(memopad))) as c:
        yield c


async def _create(client: test_utils.TestClient, **fields) -> dict:
    resp = await client.post("/api/memos", json={"title": "Plan", **fields})
    assert resp.status == 201
    return await resp.json()


class TestMemoRoutes:
    @pytest.mark.asyncio
    async def test_create_and_list(self, client: test_utils.TestClient):
        created = await _create(client, content="Ship it", category="work", tags=["q3"])
        assert created["category"] == "work"
        assert created["category_label"] == "Work"
        assert created["summary"] is None

        resp = await client.get("/api/memos")
        assert resp.status == 200
        memos = (await resp.json())["memos"]
        assert [m["id"] for m in memos] == [created["id"]]

    @pytest.mark.asyncio
    async def test_list_filters(self, client: test_utils.TestClient):
        await _create(client, title="Standup", category="work")
        await _create(client, title="Novel idea", category="idea")

        resp = await client.get("/api/memos", params={"category": "idea"})
        assert [m["title"] for m in (await resp.json())["memos"]] == ["Novel idea"]

        resp = await client.get("/api/memos", params={"q": "standup"})
        assert [m["title"] for m in (await resp.json())["memos"]] == ["Standup"]

    @pytest.mark.asyncio
    async def test_get_includes_rendered_html(self, client: test_utils.TestClient):
        created = await _create(client, content="# Heading\n\n**bold**")
        resp = await client.get(f"/api/memos/{created['id']}")
        assert resp.status == 200
        body = await resp.json()
        assert body["html"].startswith(f'<div class="{CONTAINER_CLASS}">')
        assert "<h1" in body["html"]

    @pytest.mark.asyncio
    async def test_update(self, client: test_utils.TestClient):
        created = await _create(client)
        resp = await client.put(f"/api/memos/{created['id']}", json={"title": "Renamed"})
        assert resp.status == 200
        assert (await resp.json())["title"] == "Renamed"

    @pytest.mark.asyncio
    async def test_delete(self, client: test_utils.TestClient):
        created = await _create(client)
        resp = await client.delete(f"/api/memos/{created['id']}")
        assert resp.status == 204
        resp = await client.get(f"/api/memos/{created['id']}")
        assert resp.status == 404

    @pytest.mark.asyncio
    async def test_missing_memo_is_404(self, client: test_utils.TestClient):
        resp = await client.get("/api/memos/nope")
        assert resp.status == 404
        assert "nope" in (await resp.json())["error"]

    @pytest.mark.asyncio
    async def test_invalid_body_is_400(self, client: test_utils.TestClient):
        resp = await client.post("/api/memos", json={"title": ""})
        assert resp.status == 400

        resp = await client.post("/api/memos", data="not json")
        assert resp.status == 400

        resp = await client.post("/api/memos", json=["a list"])
        assert resp.status == 400

        resp = await client.post(
            "/api/memos", data=b"\xff\xfe{}", headers={"Content-Type": "application/json"}
        )
        assert resp.status == 400


class TestSummaryRoute:
    @pytest.mark.asyncio
    async def test_summarize(self, client: test_utils.TestClient, memopad: Memopad):
        created = await _create(client, content="Long body")
        resp = await client.post(f"/api/memos/{created['id']}/summary")
        assert resp.status == 200
        assert await resp.json() == {"id": created["id"], "summary": "Mock summary"}
        assert memopad.store.get_memo(created["id"]).summary == "Mock summary"

    @pytest.mark.asyncio
    async def test_engine_failure_is_502(self, client: test_utils.TestClient, memopad: Memopad):
        memopad._engines["mock"].error = "provider down"
        created = await _create(client, content="Body")
        resp = await client.post(f"/api/memos/{created['id']}/summary")
        assert resp.status == 502
        assert "down" in (await resp.json())["error"]


class TestThemeRoutes:
    @pytest.mark.asyncio
    async def test_get_default(self, client: test_utils.TestClient):
        resp = await client.get("/api/theme")
        body = await resp.json()
        assert body["theme"] == "light"
        assert body["is_dark"] is False

    @pytest.mark.asyncio
    async def test_toggle(self, client: test_utils.TestClient, tmp_path: Path):
        resp = await client.post("/api/theme/toggle")
        body = await resp.json()
        assert body["theme"] == "dark"
        assert body["root_classes"] == ["dark"]
        assert "dark" in (tmp_path / "preferences.json").read_text()

    @pytest.mark.asyncio
    async def test_set(self, client: test_utils.TestClient):
        resp = await client.put("/api/theme", json={"theme": "dark"})
        assert (await resp.json())["is_dark"] is True

    @pytest.mark.asyncio
    async def test_set_unknown_is_400(self, client: test_utils.TestClient):
        resp = await client.put("/api/theme", json={"theme": "sepia"})
        assert resp.status == 400
