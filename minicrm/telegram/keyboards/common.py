"""
Common Keyboard Builders.

Inline keyboards that open the CRM mini-app.
"""

from aiogram.types import InlineKeyboardMarkup, WebAppInfo
from aiogram.utils.keyboard import InlineKeyboardBuilder


def _page_url(webapp_url: str, path: str = "") -> str:
    return webapp_url.rstrip("/") + path


def get_webapp_keyboard(webapp_url: str) -> InlineKeyboardMarkup:
    """
    Main entry keyboard: open the CRM, or jump to reminders.

    Args:
        webapp_url: Base URL of the mini-app
    """
    builder = InlineKeyboardBuilder()
    builder.button(text="📇 Open CRM", web_app=WebAppInfo(url=_page_url(webapp_url)))
    builder.button(
        text="🔔 Reminders",
        web_app=WebAppInfo(url=_page_url(webapp_url, "/reminders")),
    )
    builder.adjust(1)
    return builder.as_markup()


def get_reminder_keyboard(webapp_url: str, reminder_id: str) -> InlineKeyboardMarkup:
    """Keyboard attached to a reminder alert, opening that reminder."""
    builder = InlineKeyboardBuilder()
    builder.button(
        text="Open reminder",
        web_app=WebAppInfo(url=_page_url(webapp_url, f"/reminder/{reminder_id}")),
    )
    return builder.as_markup()
