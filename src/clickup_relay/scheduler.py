"""Weekly scheduler that creates the learning session task."""

import logging
from datetime import date
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from . import templates
from .config import Settings

if TYPE_CHECKING:
    from .clickup import ClickUpClient

logger = logging.getLogger(__name__)


async def create_weekly_task(
    settings: Settings,
    clickup: "ClickUpClient",
    day: date | None = None,
) -> str | None:
    """Create this week's learning session task in the default list.

    Nobody waits on this job, so every failure is logged and dropped.

    Returns:
        The created task id, or None when skipped or failed
    """
    list_id = settings.clickup_default_list_id
    if not clickup.configured or not list_id:
        logger.info("[cron] missing token or CLICKUP_DEFAULT_LIST_ID; skipping")
        return None

    try:
        payload = {
            "name": templates.weekly_session_title(day),
            "description": templates.weekly_session_description(templates.DEFAULT_OBJECTIVES, day),
            "status": templates.WEEKLY_TASK_STATUS,
            "tags": templates.WEEKLY_TASK_TAGS,
            "priority": templates.WEEKLY_TASK_PRIORITY,
        }
        data = await clickup.create_task(list_id, payload)
    except Exception as e:
        logger.error("[cron] weekly task creation failed: %s", e)
        return None

    task_id = data.get("id")
    logger.info("[cron] created weekly learning task id=%s", task_id)
    return task_id


def start_scheduler(settings: Settings, clickup: "ClickUpClient") -> AsyncIOScheduler:
    """Start the scheduler; must be called from a running event loop."""
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        create_weekly_task,
        CronTrigger.from_crontab(settings.weekly_task_cron, timezone="UTC"),
        args=[settings, clickup],
        id="weekly_learning_task",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler started (cron: %s UTC)", settings.weekly_task_cron)
    return scheduler
