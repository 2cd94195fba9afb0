"""
Keyboard Builders.

Inline keyboards for the bot. Buttons open pages of the mini-app through
``WebAppInfo``.
"""

from minicrm.telegram.keyboards.common import get_reminder_keyboard, get_webapp_keyboard

__all__ = [
    "get_reminder_keyboard",
    "get_webapp_keyboard",
]
