"""Markdown templates for generated learning tasks."""

from collections.abc import Sequence
from datetime import date, datetime, timezone

DEFAULT_OBJECTIVES = (
    "🔍 Explore new LLM capabilities and use cases",
    "💻 Practice prompt engineering and optimization",
    "🚀 Build or improve a productivity tool/script",
    "📚 Research emerging AI/ML trends and applications",
    "🔄 Review and optimize existing workflows",
)

WEEKLY_TASK_TAGS = ["learning", "weekly", "llm", "productivity"]
WEEKLY_TASK_PRIORITY = 2
WEEKLY_TASK_STATUS = "to do"

PROGRESS_TASK_TAGS = ["learning", "progress", "tracking"]
PROGRESS_TASK_PRIORITY = 1
PROGRESS_TASK_STATUS = "in progress"

DEFAULT_SESSION_TYPE = "General Learning"
DEFAULT_FOCUS_AREA = "LLM & Productivity"
DEFAULT_NEXT_STEPS = "- Continue exploring current learning path"

FOOTER = "*Generated by clickup-relay*"


def today() -> date:
    """Current UTC calendar date."""
    return datetime.now(timezone.utc).date()


def _bullets(items: Sequence[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def weekly_session_title(day: date | None = None) -> str:
    return f"Weekly LLM Learning Session {(day or today()).isoformat()}"


def weekly_session_description(
    objectives: Sequence[str] | None = None,
    day: date | None = None,
) -> str:
    """
    Build the weekly learning session description.

    Both the scheduled job and the /learning/weekly route use this, so the
    two paths always produce the same layout.

    Args:
        objectives: Objective lines; DEFAULT_OBJECTIVES when omitted or empty
        day: Session date (defaults to today, UTC)

    Returns:
        Markdown task description
    """
    day = day or today()
    objectives = list(objectives) if objectives else list(DEFAULT_OBJECTIVES)
    return f"""## Weekly Learning Session {day.isoformat()}

### 🎯 Learning Objectives:
{_bullets(objectives)}

### 🗓️ Session Structure:
1. **Review** (15 min): What did you learn last week?
2. **Explore** (30 min): Try something new with LLMs
3. **Build** (30 min): Create or improve a tool
4. **Plan** (15 min): What to focus on next week

### 📝 Session Notes:
- What did you learn today?
- What challenges did you encounter?
- What will you apply next week?

### 🔗 Resources:
- Add relevant links, articles, or tools here

### ✅ Action Items:
- [ ] Complete at least one learning objective
- [ ] Document key insights
- [ ] Plan next week's focus area

---
{FOOTER}"""


def progress_log_title(day: date | None = None) -> str:
    return f"Learning Progress - {(day or today()).isoformat()}"


def progress_log_description(
    time_spent: int | float = 0,
    skills: Sequence[str] = (),
    achievements: Sequence[str] = (),
    session_type: str | None = None,
    focus_area: str | None = None,
    next_steps: str | Sequence[str] | None = None,
    day: date | None = None,
) -> str:
    """Build the description of a learning progress log task."""
    day = day or today()
    # 25.0 reads as "25 minutes"
    if isinstance(time_spent, float) and time_spent.is_integer():
        time_spent = int(time_spent)
    if isinstance(next_steps, str):
        steps = next_steps.strip() or DEFAULT_NEXT_STEPS
    elif next_steps:
        steps = _bullets(next_steps)
    else:
        steps = DEFAULT_NEXT_STEPS

    return f"""## Learning Progress Log {day.isoformat()}

### ⏱️ Time Spent: {time_spent} minutes

### 🎯 Skills Practiced:
{_bullets(skills)}

### 🏆 Achievements:
{_bullets(achievements)}

### 📊 Progress Summary:
- Date: {day.isoformat()}
- Session Type: {session_type or DEFAULT_SESSION_TYPE}
- Focus Area: {focus_area or DEFAULT_FOCUS_AREA}

### 🔄 Next Steps:
{steps}

---
{FOOTER}"""
