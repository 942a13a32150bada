"""Tests for clickup_relay.server (MCP tools) running against the real gateway."""

import asyncio
from typing import Any

import httpx
import pytest
from mcp.server.fastmcp import FastMCP
from mcp.shared.memory import create_connected_server_and_client_session

from clickup_relay.clickup import ClickUpClient
from clickup_relay.config import SECRET_HEADER, Settings
from clickup_relay.gateway import create_app
from clickup_relay.server import (
    create_server,
    format_error,
    format_goals,
    format_health,
    format_task,
    format_task_list,
)

from conftest import UpstreamStub

TASK = {"id": "1", "name": "T", "status": {"status": "to do"}, "url": "http://x/1"}

TOOL_NAMES = {
    "create_task",
    "list_tasks",
    "update_task",
    "delete_task",
    "create_learning_session",
    "track_learning_progress",
    "get_learning_goals",
    "set_learning_goals",
    "check_worker_health",
    "test_clickup_connection",
}


@pytest.fixture
def server(settings: Settings, upstream: UpstreamStub) -> FastMCP:
    """MCP server -> gateway app (in-process) -> stubbed ClickUp."""
    clickup = ClickUpClient(settings, transport=httpx.MockTransport(upstream))
    app = create_app(settings, clickup=clickup)
    return create_server(settings, transport=httpx.ASGITransport(app=app))


def call_tool(server: FastMCP, name: str, arguments: dict[str, Any] | None = None) -> Any:
    async def _call() -> Any:
        async with create_connected_server_and_client_session(server._mcp_server) as session:
            return await session.call_tool(name, arguments or {})

    return asyncio.run(_call())


def text_of(result: Any) -> str:
    return result.content[0].text


class TestCatalog:
    """Tests for the advertised tool schemas."""

    def test_tool_names(self, server: FastMCP) -> None:
        tools = asyncio.run(server.list_tools())

        assert {tool.name for tool in tools} == TOOL_NAMES

    def test_required_arguments(self, server: FastMCP) -> None:
        tools = {tool.name: tool for tool in asyncio.run(server.list_tools())}

        assert tools["create_task"].inputSchema["required"] == ["title"]
        assert tools["update_task"].inputSchema["required"] == ["id"]
        assert tools["delete_task"].inputSchema["required"] == ["id"]
        assert tools["track_learning_progress"].inputSchema["required"] == ["time_spent"]
        assert tools["list_tasks"].inputSchema.get("required", []) == []

    def test_list_defaults(self, server: FastMCP) -> None:
        tools = {tool.name: tool for tool in asyncio.run(server.list_tools())}
        properties = tools["list_tasks"].inputSchema["properties"]

        assert properties["limit"]["default"] == 10
        assert properties["page"]["default"] == 0


class TestTaskTools:
    """Tests for task tools end to end."""

    def test_create_task(self, server: FastMCP, upstream: UpstreamStub) -> None:
        upstream.add("POST", "/list/list-1/task", body=TASK)

        result = call_tool(server, "create_task", {"title": "T", "priority": 2})

        assert not result.isError
        assert text_of(result).startswith("✅ Task created successfully!")
        assert "**ID:** 1" in text_of(result)
        assert upstream.json_body() == {"name": "T", "priority": 2}

    def test_create_task_missing_title(self, server: FastMCP, upstream: UpstreamStub) -> None:
        """Missing required argument is rejected before the gateway is called."""
        result = call_tool(server, "create_task", {"description": "no title"})

        assert result.isError
        assert "title" in text_of(result)
        assert upstream.requests == []

    def test_create_task_blank_title(self, server: FastMCP, upstream: UpstreamStub) -> None:
        result = call_tool(server, "create_task", {"title": "   "})

        assert text_of(result) == "❌ Error: title is required"
        assert upstream.requests == []

    def test_create_task_upstream_error(self, server: FastMCP, upstream: UpstreamStub) -> None:
        upstream.add("POST", "/list/list-1/task", status=401, body={"err": "Token invalid"})

        result = call_tool(server, "create_task", {"title": "T"})

        assert text_of(result) == "❌ Error: Worker API error: ClickUp API returned 401"

    def test_list_tasks(self, server: FastMCP, upstream: UpstreamStub) -> None:
        upstream.add(
            "GET",
            "/list/list-1/task",
            body={"tasks": [TASK, {**TASK, "id": "2", "name": "U"}]},
        )

        result = call_tool(server, "list_tasks", {"statuses": "to do"})

        assert text_of(result).startswith("📋 Found 2 tasks:")
        params = upstream.requests[0].url.params
        assert params.get_list("statuses[]") == ["to do"]
        assert params["limit"] == "10"
        assert params["page"] == "0"

    def test_list_tasks_empty(self, server: FastMCP, upstream: UpstreamStub) -> None:
        upstream.add("GET", "/list/list-1/task", body={"tasks": []})

        result = call_tool(server, "list_tasks")

        assert text_of(result) == "📋 No tasks found matching the criteria."

    def test_update_task_sends_only_given_fields(
        self, server: FastMCP, upstream: UpstreamStub
    ) -> None:
        upstream.add("PUT", "/task/abc", body={**TASK, "id": "abc", "status": {"status": "done"}})

        result = call_tool(server, "update_task", {"id": "abc", "status": "done"})

        assert text_of(result).startswith("✅ Task updated successfully!")
        assert upstream.json_body() == {"status": "done"}

    def test_update_task_rejects_unknown_status(
        self, server: FastMCP, upstream: UpstreamStub
    ) -> None:
        result = call_tool(server, "update_task", {"id": "abc", "status": "someday"})

        assert result.isError
        assert upstream.requests == []

    def test_delete_task(self, server: FastMCP, upstream: UpstreamStub) -> None:
        upstream.add("DELETE", "/task/abc", status=204)

        result = call_tool(server, "delete_task", {"id": "abc"})

        assert text_of(result).startswith("🗑️ Task deleted successfully!")
        assert "**ID:** abc" in text_of(result)


class TestLearningTools:
    """Tests for the learning tools end to end."""

    def test_create_learning_session(self, server: FastMCP, upstream: UpstreamStub) -> None:
        upstream.add("POST", "/list/list-1/task", body=TASK)

        result = call_tool(server, "create_learning_session", {"objectives": ["Try MCP"]})

        assert text_of(result).startswith("📚 Learning session created successfully!")
        assert "Weekly learning task created successfully!" in text_of(result)
        assert "- Try MCP" in upstream.json_body()["description"]

    def test_track_learning_progress(self, server: FastMCP, upstream: UpstreamStub) -> None:
        upstream.add("POST", "/list/list-1/task", body=TASK)

        result = call_tool(server, "track_learning_progress", {"time_spent": 25, "skills": ["evals"]})

        assert text_of(result).startswith("📊 Learning progress tracked successfully!")
        description = upstream.json_body()["description"]
        assert "Time Spent: 25 minutes" in description
        assert "- evals" in description

    def test_track_learning_progress_whole_minutes(
        self, server: FastMCP, upstream: UpstreamStub
    ) -> None:
        """Whole minutes are logged without a trailing ".0"."""
        upstream.add("POST", "/list/list-1/task", body=TASK)

        call_tool(server, "track_learning_progress", {"time_spent": 25.0})

        description = upstream.json_body()["description"]
        assert "Time Spent: 25 minutes" in description
        assert "25.0" not in description

    def test_get_learning_goals(self, server: FastMCP) -> None:
        result = call_tool(server, "get_learning_goals")

        assert text_of(result).startswith("🎯 Current Learning Goals:")
        assert "**LLM Mastery**" in text_of(result)

    def test_set_learning_goals(self, server: FastMCP) -> None:
        result = call_tool(
            server,
            "set_learning_goals",
            {"goals": [{"id": "rust", "title": "Learn Rust", "description": "ownership"}]},
        )
        fetched = call_tool(server, "get_learning_goals")

        assert text_of(result).startswith("🎯 Learning goals updated:")
        assert "**Learn Rust**: ownership" in text_of(fetched)

    def test_set_learning_goals_invalid(self, server: FastMCP) -> None:
        result = call_tool(server, "set_learning_goals", {"goals": [{"id": "x"}]})

        assert text_of(result).startswith("❌ Error: Worker API error:")


class TestConnectivityTools:
    def test_check_worker_health(self, server: FastMCP) -> None:
        result = call_tool(server, "check_worker_health")

        assert text_of(result) == "🏥 Worker Health Check: ✅ Healthy"

    def test_test_clickup_connection(self, server: FastMCP, upstream: UpstreamStub) -> None:
        upstream.add("GET", "/user", body={"user": {"id": 1, "username": "ada", "email": "ada@example.com"}})

        result = call_tool(server, "test_clickup_connection")

        assert "**User:** ada" in text_of(result)
        assert "✅ Connected" in text_of(result)

    def test_wrong_secret(self, settings: Settings, upstream: UpstreamStub) -> None:
        """A gateway 401 becomes a failure text, not an exception."""
        app = create_app(settings, clickup=ClickUpClient(settings, transport=httpx.MockTransport(upstream)))
        wrong = settings.model_copy(update={"clickup_shared_secret": "wrong"})
        server = create_server(wrong, transport=httpx.ASGITransport(app=app))

        result = call_tool(server, "check_worker_health")

        assert text_of(result).startswith("❌ Error: Worker API error:")

    def test_worker_unreachable(self, settings: Settings) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        server = create_server(settings, transport=httpx.MockTransport(refuse))

        result = call_tool(server, "check_worker_health")

        assert text_of(result).startswith("❌ Error: Failed to call worker:")

    def test_secret_header_comes_from_config(self, settings: Settings) -> None:
        """The tool server sends the header the gateway checks, defined in config."""
        seen: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        server = create_server(settings, transport=httpx.MockTransport(record))

        call_tool(server, "check_worker_health")

        assert SECRET_HEADER == "X-Webhook-Secret"
        assert seen[0].headers[SECRET_HEADER] == settings.worker_secret


class TestFormatting:
    """Tests for the pure formatting helpers."""

    def test_format_task(self) -> None:
        text = format_task("✅ Done", {"id": "1", "title": "T", "status": "to do", "url": "http://x/1"})

        assert text == "✅ Done\n\n**Title:** T\n**ID:** 1\n**Status:** to do\n**URL:** http://x/1"

    def test_format_task_list(self) -> None:
        text = format_task_list([{"title": "T", "status": "done", "url": "http://x/1"}])

        assert text == "📋 Found 1 tasks:\n\n- **T** (done) - http://x/1"

    def test_format_goals_empty(self) -> None:
        assert format_goals([]) == "🎯 No learning goals set."

    def test_format_health(self) -> None:
        assert format_health({"ok": False}) == "🏥 Worker Health Check: ❌ Unhealthy"

    def test_format_error(self) -> None:
        assert format_error(ValueError("bad")) == "❌ Error: bad"
