"""
Telegram Bot Services.

Outbound messaging: the rate-limited NotificationService and the reminder
alert sink built on it.
"""

from minicrm.telegram.services.notifications import (
    NotificationResult,
    NotificationService,
    get_notification_service,
)
from minicrm.telegram.services.reminders import TelegramReminderSink

__all__ = [
    "NotificationResult",
    "NotificationService",
    "TelegramReminderSink",
    "get_notification_service",
]
