"""
Scheduled Background Tasks.

Tasks that run on a schedule (cron-based).
These tasks are registered with the broker and include schedule metadata
that the TaskiqScheduler reads via LabelScheduleSource.

Cron Format:
    ┌───────────── minute (0-59)
    │ ┌───────────── hour (0-23)
    │ │ ┌───────────── day of month (1-31)
    │ │ │ ┌───────────── month (1-12)
    │ │ │ │ ┌───────────── day of week (0-6, Sun=0)
    │ │ │ │ │
    * * * * *

Usage:
    from minicrm.backend.tasks.scheduled import register_scheduled_tasks
    register_scheduled_tasks()

    taskiq scheduler minicrm.backend.tasks.scheduler:scheduler
"""

from typing import Any

from minicrm.backend.core.config import get_app_config
from minicrm.backend.core.logging import get_logger, log_with_source
from minicrm.backend.core.utils import utc_now

logger = get_logger(__name__)


async def notify_due_reminders() -> dict[str, Any]:
    """
    Deliver every due reminder through Telegram.

    Runs on ``reminders.sweep_cron`` (every minute by default).

    Returns:
        Sweep statistics
    """
    from minicrm.backend.core.database import get_session_factory
    from minicrm.backend.tasks.reminders import sweep_due_reminders
    from minicrm.telegram.bot import create_bot
    from minicrm.telegram.services.reminders import TelegramReminderSink

    bot = create_bot()
    try:
        sink = TelegramReminderSink(bot, get_session_factory())
        reports = await sweep_due_reminders(get_session_factory(), sink)
    finally:
        await bot.session.close()

    result = {
        "status": "completed",
        "owners": len(reports),
        "notified": sum(len(r.notified) for r in reports),
        "failed": sum(len(r.failed) for r in reports),
        "owners_failed": sum(1 for r in reports if r.error is not None),
        "completed_at": utc_now().isoformat(),
    }
    log_with_source(logger, "tasks", "info", "Due reminder sweep completed", **result)
    return result


def get_scheduled_tasks() -> dict[str, dict[str, Any]]:
    reminders = get_app_config().reminders
    return {
        "notify_due_reminders": {
            "function": notify_due_reminders,
            "schedule": [{"cron": reminders.sweep_cron}],
            # The next run retries whatever is still due
            "retry_on_error": False,
            "description": "Send Telegram alerts for due reminders",
        },
    }


def register_scheduled_tasks() -> dict[str, Any]:
    """
    Register scheduled task functions with the Taskiq broker.

    Returns:
        Dict mapping task names to registered task objects
    """
    from minicrm.backend.tasks.broker import get_broker

    broker = get_broker()
    registered = {}

    for task_name, config in get_scheduled_tasks().items():
        task_kwargs = {
            "task_name": task_name,
            "schedule": config["schedule"],
            "retry_on_error": config.get("retry_on_error", False),
        }
        if "max_retries" in config:
            task_kwargs["max_retries"] = config["max_retries"]

        registered[task_name] = broker.task(**task_kwargs)(config["function"])

    logger.info(
        "Scheduled tasks registered",
        extra={"task_count": len(registered), "tasks": list(registered.keys())},
    )
    return registered
