"""
Task Scheduler Configuration.

Configures the Taskiq scheduler for time-based task execution.
Uses LabelScheduleSource for the schedules attached in scheduled.py.

Usage:
    taskiq scheduler minicrm.backend.tasks.scheduler:scheduler

Important:
    Run only ONE scheduler instance. Multiple instances send each
    reminder sweep more than once.
"""

from typing import TYPE_CHECKING

from minicrm.backend.core.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from taskiq import TaskiqScheduler


def create_scheduler() -> "TaskiqScheduler":
    """
    Create and configure the Taskiq scheduler.

    Returns:
        Configured TaskiqScheduler instance
    """
    from taskiq import TaskiqScheduler
    from taskiq.schedule_sources import LabelScheduleSource

    from minicrm.backend.tasks.broker import get_worker_broker

    broker = get_worker_broker()
    scheduler = TaskiqScheduler(
        broker=broker,
        sources=[LabelScheduleSource(broker)],
    )

    logger.info("Taskiq scheduler configured with LabelScheduleSource")
    return scheduler


_scheduler: "TaskiqScheduler | None" = None


def get_scheduler() -> "TaskiqScheduler":
    """Get the scheduler instance, creating it if necessary."""
    global _scheduler
    if _scheduler is None:
        _scheduler = create_scheduler()
    return _scheduler


def __getattr__(name: str):
    """Lazy attribute access for the ``taskiq scheduler`` command."""
    if name == "scheduler":
        return get_scheduler()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
