"""
ClickUp MCP Server - task and learning tools for an AI assistant

Every tool makes exactly one call to the ClickUp relay gateway and answers
with a short markdown text block. Failures come back as text starting with
"❌ Error:", never as exceptions.

Tools:
- create_task / list_tasks / update_task / delete_task
- create_learning_session: weekly learning session task
- track_learning_progress: learning progress log task
- get_learning_goals / set_learning_goals
- check_worker_health: gateway liveness
- test_clickup_connection: verify the ClickUp token
"""

import logging
import sys
from typing import Any, Literal

import httpx
from mcp.server.fastmcp import FastMCP

from .client import GatewayClient
from .config import Settings

logger = logging.getLogger(__name__)

TaskStatus = Literal["to do", "in progress", "done"]
TaskPriority = Literal[1, 2, 3, 4]


# ============================================
# Formatting
# ============================================


def format_error(error: Exception | str) -> str:
    return f"❌ Error: {error}"


def format_task(headline: str, result: dict[str, Any]) -> str:
    return (
        f"{headline}\n\n"
        f"**Title:** {result.get('title')}\n"
        f"**ID:** {result.get('id')}\n"
        f"**Status:** {result.get('status')}\n"
        f"**URL:** {result.get('url')}"
    )


def format_task_list(tasks: list[dict[str, Any]]) -> str:
    if not tasks:
        return "📋 No tasks found matching the criteria."
    lines = "\n".join(f"- **{t.get('title')}** ({t.get('status')}) - {t.get('url')}" for t in tasks)
    return f"📋 Found {len(tasks)} tasks:\n\n{lines}"


def format_deleted(result: dict[str, Any]) -> str:
    return (
        "🗑️ Task deleted successfully!\n\n"
        f"**ID:** {result.get('id')}\n"
        f"**Message:** {result.get('message')}"
    )


def format_learning_task(headline: str, result: dict[str, Any]) -> str:
    return (
        f"{headline}\n\n"
        f"**Title:** {result.get('title')}\n"
        f"**ID:** {result.get('id')}\n"
        f"**URL:** {result.get('url')}\n\n"
        f"{result.get('message', '')}"
    ).rstrip()


def format_goals(goals: list[dict[str, Any]], headline: str = "🎯 Current Learning Goals:") -> str:
    if not goals:
        return "🎯 No learning goals set."
    lines = "\n".join(
        f"- **{g.get('title')}**: {g.get('description')} (Target: {g.get('target_date') or 'none'})"
        for g in goals
    )
    return f"{headline}\n\n{lines}"


def format_health(result: dict[str, Any]) -> str:
    return f"🏥 Worker Health Check: {'✅ Healthy' if result.get('ok') else '❌ Unhealthy'}"


def format_connection(result: dict[str, Any]) -> str:
    return (
        "🔗 ClickUp Connection Test:\n\n"
        f"**User:** {result.get('username')}\n"
        f"**Email:** {result.get('email')}\n"
        "**Status:** ✅ Connected"
    )


def _present(**fields: Any) -> dict[str, Any]:
    """Drop arguments the assistant did not supply."""
    return {key: value for key, value in fields.items() if value is not None}


def _require(name: str, value: str) -> None:
    if not value or not value.strip():
        raise ValueError(f"{name} is required")


# ============================================
# Server
# ============================================


def create_server(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastMCP:
    """Build the MCP server; ``transport`` lets tests route calls in-process."""
    gateway = GatewayClient(settings, transport)
    default_list_id = settings.clickup_default_list_id or None

    mcp = FastMCP(
        "clickup",
        instructions="""ClickUp task management and learning tracking.

Use list_tasks() to find task ids before update_task() or delete_task().
list_id is optional everywhere; the configured default list is used.""",
    )

    @mcp.tool()
    async def create_task(
        title: str,
        description: str | None = None,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        tags: list[str] | None = None,
        due_date: str | None = None,
        list_id: str | None = None,
    ) -> str:
        """
        Create a new task in ClickUp.

        Args:
            title: Task title
            description: Task description (supports markdown)
            status: Task status ("to do", "in progress", "done")
            priority: 1=urgent, 2=high, 3=normal, 4=low
            tags: Tags for the task
            due_date: Due date in YYYY-MM-DD format
            list_id: ClickUp list ID (optional, uses default if not provided)
        """
        try:
            _require("title", title)
            result = await gateway.request(
                "POST",
                "/tasks.create",
                json=_present(
                    title=title,
                    description=description,
                    status=status,
                    priority=priority,
                    tags=tags,
                    due_date=due_date,
                    list_id=list_id or default_list_id,
                ),
            )
            return format_task("✅ Task created successfully!", result)
        except Exception as e:
            return format_error(e)

    @mcp.tool()
    async def list_tasks(
        statuses: str | None = None,
        limit: int = 10,
        page: int = 0,
        list_id: str | None = None,
    ) -> str:
        """
        List tasks from ClickUp.

        Args:
            statuses: Comma-separated list of statuses to filter by
            limit: Maximum number of tasks to return (default 10)
            page: Page number for pagination (default 0)
            list_id: ClickUp list ID (optional, uses default if not provided)
        """
        try:
            result = await gateway.request(
                "GET",
                "/tasks.list",
                params=_present(
                    statuses=statuses,
                    limit=limit,
                    page=page,
                    list_id=list_id or default_list_id,
                ),
            )
            return format_task_list(result.get("tasks") or [])
        except Exception as e:
            return format_error(e)

    @mcp.tool()
    async def update_task(
        id: str,
        title: str | None = None,
        description: str | None = None,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        tags: list[str] | None = None,
        due_date: str | None = None,
    ) -> str:
        """
        Update an existing ClickUp task. Only the fields given are changed.

        Args:
            id: Task ID to update
            title: New task title
            description: New task description
            status: New task status
            priority: New task priority (1=urgent ... 4=low)
            tags: New tags for the task
            due_date: New due date in YYYY-MM-DD format
        """
        try:
            _require("id", id)
            result = await gateway.request(
                "POST",
                "/tasks.update",
                json=_present(
                    id=id,
                    title=title,
                    description=description,
                    status=status,
                    priority=priority,
                    tags=tags,
                    due_date=due_date,
                ),
            )
            return format_task("✅ Task updated successfully!", result)
        except Exception as e:
            return format_error(e)

    @mcp.tool()
    async def delete_task(id: str) -> str:
        """
        Delete a ClickUp task.

        Args:
            id: Task ID to delete
        """
        try:
            _require("id", id)
            result = await gateway.request("POST", "/tasks.delete", json={"id": id})
            return format_deleted(result)
        except Exception as e:
            return format_error(e)

    @mcp.tool()
    async def create_learning_session(
        objectives: list[str] | None = None,
        list_id: str | None = None,
    ) -> str:
        """
        Create a structured weekly learning session task.

        Args:
            objectives: Learning objectives for the session (defaults are used if omitted)
            list_id: ClickUp list ID (optional, uses default if not provided)
        """
        try:
            result = await gateway.request(
                "POST",
                "/learning/weekly",
                json=_present(objectives=objectives, list_id=list_id or default_list_id),
            )
            return format_learning_task("📚 Learning session created successfully!", result)
        except Exception as e:
            return format_error(e)

    @mcp.tool()
    async def track_learning_progress(
        time_spent: int | float,
        skills: list[str] | None = None,
        achievements: list[str] | None = None,
        session_type: str = "General Learning",
        focus_area: str = "LLM & Productivity",
        next_steps: str | None = None,
        list_id: str | None = None,
    ) -> str:
        """
        Track learning progress and create a progress log task.

        Args:
            time_spent: Time spent learning in minutes
            skills: Skills practiced during the session
            achievements: Achievements or milestones reached
            session_type: Type of learning session
            focus_area: Main focus area for the session
            next_steps: Next steps or follow-up actions
            list_id: ClickUp list ID (optional, uses default if not provided)
        """
        try:
            result = await gateway.request(
                "POST",
                "/learning/track",
                json=_present(
                    time_spent=time_spent,
                    skills=skills or [],
                    achievements=achievements or [],
                    session_type=session_type,
                    focus_area=focus_area,
                    next_steps=next_steps,
                    list_id=list_id or default_list_id,
                ),
            )
            return format_learning_task("📊 Learning progress tracked successfully!", result)
        except Exception as e:
            return format_error(e)

    @mcp.tool()
    async def get_learning_goals() -> str:
        """Get current learning goals and objectives."""
        try:
            result = await gateway.request("GET", "/learning/goals")
            return format_goals(result.get("goals") or [])
        except Exception as e:
            return format_error(e)

    @mcp.tool()
    async def set_learning_goals(goals: list[dict[str, Any]]) -> str:
        """
        Replace the current learning goals.

        Args:
            goals: Goal objects with id, title, and optionally description,
                   progress (number) and target_date (YYYY-MM-DD)
        """
        try:
            result = await gateway.request("POST", "/learning/goals", json={"goals": goals})
            return format_goals(result.get("goals") or [], "🎯 Learning goals updated:")
        except Exception as e:
            return format_error(e)

    @mcp.tool()
    async def check_worker_health() -> str:
        """Check if the ClickUp worker is healthy and accessible."""
        try:
            return format_health(await gateway.request("GET", "/health"))
        except Exception as e:
            return format_error(e)

    @mcp.tool()
    async def test_clickup_connection() -> str:
        """Test the connection to ClickUp and verify authentication."""
        try:
            return format_connection(await gateway.request("GET", "/clickup.me"))
        except Exception as e:
            return format_error(e)

    return mcp


def main() -> None:
    """Entry point for the ClickUp MCP server."""
    settings = Settings()
    # stdout carries the MCP protocol
    logging.basicConfig(level=settings.log_level.upper(), stream=sys.stderr)
    logger.info("Starting ClickUp MCP server, gateway: %s", settings.clickup_worker_url)
    create_server(settings).run()


if __name__ == "__main__":
    main()
