"""
Learning goal storage.

Goals live in a local libSQL database. Until someone submits a goal set,
the three default goals are returned.
"""

import logging
from contextlib import closing
from pathlib import Path
from typing import Any

import libsql_experimental as libsql  # type: ignore[import-untyped]  # pyright: ignore[reportMissingModuleSource]

from .errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_GOALS: tuple[dict[str, Any], ...] = (
    {
        "id": "llm-mastery",
        "title": "LLM Mastery",
        "description": "Become proficient in prompt engineering and LLM integration",
        "progress": 0,
        "target_date": "2024-12-31",
    },
    {
        "id": "productivity-automation",
        "title": "Productivity Automation",
        "description": "Build automated workflows and tools to boost productivity",
        "progress": 0,
        "target_date": "2024-12-31",
    },
    {
        "id": "emerging-tech",
        "title": "Emerging Tech Tracking",
        "description": "Stay updated with latest AI/ML developments and applications",
        "progress": 0,
        "target_date": "2024-12-31",
    },
)

_COLUMNS = ["id", "title", "description", "progress", "target_date"]


def normalize_goals(goals: Any) -> list[dict[str, Any]]:
    """Validate a submitted goal list and fill in optional fields.

    Raises:
        ValidationError: if the list is empty, malformed, or repeats an id
    """
    if not isinstance(goals, list) or not goals:
        raise ValidationError("goals must be a non-empty list")

    normalized: list[dict[str, Any]] = []
    seen: set[str] = set()
    for index, goal in enumerate(goals):
        if not isinstance(goal, dict):
            raise ValidationError(f"goals[{index}] must be an object")

        goal_id = goal.get("id")
        title = goal.get("title")
        if not isinstance(goal_id, str) or not goal_id.strip():
            raise ValidationError(f"goals[{index}].id required")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError(f"goals[{index}].title required")
        if goal_id in seen:
            raise ValidationError(f"duplicate goal id '{goal_id}'")
        seen.add(goal_id)

        progress = goal.get("progress", 0)
        if isinstance(progress, bool) or not isinstance(progress, (int, float)):
            raise ValidationError(f"goals[{index}].progress must be a number")

        normalized.append(
            {
                "id": goal_id,
                "title": title,
                "description": goal.get("description") or "",
                "progress": progress,
                # Older clients send camelCase
                "target_date": goal.get("target_date", goal.get("targetDate")),
            }
        )
    return normalized


def _from_row(row: tuple[Any, ...]) -> dict[str, Any]:
    goal = dict(zip(_COLUMNS, row, strict=False))
    # The REAL column hands back 10.0 for a stored 10
    progress = goal["progress"]
    if isinstance(progress, float) and progress.is_integer():
        goal["progress"] = int(progress)
    return goal


class GoalStore:
    """Persists the current learning goal set in a libSQL database file."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path).expanduser()

    def _connect(self) -> "libsql.Connection":  # pyright: ignore[reportAttributeAccessIssue]
        """Get database connection, creating schema if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = libsql.connect(str(self.db_path))  # pyright: ignore[reportAttributeAccessIssue]
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS goals (
                position INTEGER NOT NULL,
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                description TEXT,
                progress REAL DEFAULT 0,
                target_date TEXT,
                updated_at TEXT DEFAULT (datetime('now'))
            );
        """)
        conn.commit()
        return conn

    def get_goals(self) -> list[dict[str, Any]]:
        """Return stored goals in submission order, or the defaults."""
        with closing(self._connect()) as conn:
            cursor = conn.execute(
                "SELECT id, title, description, progress, target_date "
                "FROM goals ORDER BY position ASC"
            )
            rows = cursor.fetchall()

        if not rows:
            return [dict(goal) for goal in DEFAULT_GOALS]
        return [_from_row(row) for row in rows]

    def set_goals(self, goals: Any) -> list[dict[str, Any]]:
        """Replace the stored goal set.

        Args:
            goals: List of goal objects, each with at least ``id`` and ``title``

        Returns:
            The normalized goals as stored
        """
        normalized = normalize_goals(goals)
        with closing(self._connect()) as conn:
            conn.execute("DELETE FROM goals")
            for position, goal in enumerate(normalized):
                conn.execute(
                    """
                    INSERT INTO goals (position, id, title, description, progress, target_date)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        position,
                        goal["id"],
                        goal["title"],
                        goal["description"],
                        goal["progress"],
                        goal["target_date"],
                    ),
                )
            conn.commit()

        logger.info("Stored %d learning goals in %s", len(normalized), self.db_path)
        return normalized
