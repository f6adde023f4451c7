"""Integration tests for preview and tool routes."""

from __future__ import annotations

from unittest.mock import patch

from engine.kernel.types import PREVIEW_SANDBOX


# ── health ──────────────────────────────────────────────────────────────────


async def test_health(async_client):
    res = await async_client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


# ── preview ─────────────────────────────────────────────────────────────────


class TestPreviewRoute:
    """Tests for POST /api/preview."""

    async def test_renders_project(self, async_client, project_nodes):
        res = await async_client.post("/api/preview", json={"files": project_nodes})
        assert res.status_code == 200
        assert "text/html" in res.headers["content-type"]
        assert res.headers["x-preview-status"] == "ok"
        assert res.headers["content-security-policy"] == f"sandbox {PREVIEW_SANDBOX}"
        assert '<script type="importmap">' in res.text

    async def test_raw_content_files(self, async_client):
        res = await async_client.post(
            "/api/preview",
            json={"files": {"/Home.jsx": "export default () => <h1>Home</h1>;"}, "entry_point": "/Home.jsx"},
        )
        assert res.status_code == 200
        assert 'module["Home"]' in res.text

    async def test_empty_project(self, async_client):
        res = await async_client.post("/api/preview", json={"files": {}})
        assert res.status_code == 200
        assert res.headers["x-preview-status"] == "empty"
        assert "No files to preview" in res.text

    async def test_compile_error_panel(self, async_client):
        res = await async_client.post("/api/preview", json={"files": {"/App.jsx": "export default () => <div>;"}})
        assert res.status_code == 200
        assert "Syntax Error (1)" in res.text

    async def test_unknown_field_rejected(self, async_client):
        res = await async_client.post("/api/preview", json={"files": {}, "entry": "/App.jsx"})
        assert res.status_code == 422

    async def test_too_many_files(self, async_client):
        files = {f"/f{i}.js": "" for i in range(3)}
        with patch("backend.routes.preview.settings.MAX_PROJECT_FILES", 2):
            res = await async_client.post("/api/preview", json={"files": files})
        assert res.status_code == 413


# ── tools ───────────────────────────────────────────────────────────────────


class TestToolRoutes:
    """Tests for /api/tools endpoints."""

    async def test_list_tools(self, async_client):
        res = await async_client.get("/api/tools")
        assert res.status_code == 200
        assert [t["name"] for t in res.json()] == ["str_replace_editor", "file_manager"]

    async def test_editor_create(self, async_client, project_nodes):
        res = await async_client.post(
            "/api/tools/str_replace_editor",
            json={
                "files": project_nodes,
                "input": {"command": "create", "path": "/lib/format.js", "file_text": "export const f = 1;"},
            },
        )
        assert res.status_code == 200
        data = res.json()
        assert data["result"] == "File created: /lib/format.js"
        assert data["files"]["/lib/format.js"]["content"] == "export const f = 1;"
        assert data["files"]["/lib"]["type"] == "directory"

    async def test_file_manager_rename(self, async_client, project_nodes):
        res = await async_client.post(
            "/api/tools/file_manager",
            json={"files": project_nodes, "input": {"command": "rename", "path": "/App.jsx", "new_path": "/Main.jsx"}},
        )
        data = res.json()
        assert data["result"]["success"] is True
        assert "/Main.jsx" in data["files"]
        assert "/App.jsx" not in data["files"]

    async def test_tool_error_is_a_result(self, async_client, project_nodes):
        res = await async_client.post(
            "/api/tools/str_replace_editor",
            json={"files": project_nodes, "input": {"command": "view", "path": "/missing.jsx"}},
        )
        assert res.status_code == 200
        assert res.json()["result"] == "File not found: /missing.jsx"

    async def test_unknown_tool(self, async_client):
        res = await async_client.post("/api/tools/web_search", json={"files": {}, "input": {}})
        assert res.status_code == 404
