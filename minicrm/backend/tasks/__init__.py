"""
Background Tasks Package.

Reminder delivery runs in one of three ways:

1. Scheduled task (production): ``notify_due_reminders`` sweeps every owner
   on ``reminders.sweep_cron`` through Taskiq with a Redis broker.

       taskiq worker minicrm.backend.tasks.broker:broker
       taskiq scheduler minicrm.backend.tasks.scheduler:scheduler

2. In-process sweep: enable ``features.reminders_in_process_sweep_enabled``
   and the API process runs the sweep itself (no Redis needed).

3. Single-owner poller: ``ReminderPoller`` / ``python cli.py --service
   reminder-poll --owner-id ...``.

The dispatch functions are plain async functions and can be called
directly in tests without a broker.

Important:
    Run only ONE scheduler instance to avoid duplicate alerts.
"""

from minicrm.backend.tasks.broker import get_broker, get_worker_broker
from minicrm.backend.tasks.scheduler import get_scheduler
from minicrm.backend.tasks.scheduled import notify_due_reminders, register_scheduled_tasks

__all__ = [
    "get_broker",
    "get_worker_broker",
    "get_scheduler",
    "register_scheduled_tasks",
    "notify_due_reminders",
]
