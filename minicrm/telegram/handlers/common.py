"""
Common Handlers.

Bot commands available to every user: /start, /help, /due, /today.
The CRM itself lives in the mini-app; the bot opens it and answers a few
read-only questions about reminders.
"""

import html

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message, User

from minicrm.backend.core.config import get_app_config
from minicrm.backend.core.database import get_session_factory
from minicrm.backend.core.logging import get_logger
from minicrm.backend.models.reminder import Reminder
from minicrm.backend.services.reminder import ReminderService
from minicrm.backend.tasks.reminders import format_reminder_message
from minicrm.telegram.keyboards.common import get_webapp_keyboard

logger = get_logger(__name__)

router = Router(name="common")

HELP_TEXT = """
<b>📚 Available Commands</b>

/start - Open the CRM
/due - Reminders that are due now
/today - Today's reminders
/help - Show this help message
"""


def _reminder_line(reminder: Reminder) -> str:
    return f"• {reminder.time:%H:%M} {html.escape(reminder.text)}"


@router.message(CommandStart())
async def cmd_start(message: Message, telegram_user: User) -> None:
    """Greet the user and offer the mini-app button."""
    webapp_url = get_app_config().application.telegram.webapp_url

    await message.answer(
        f"👋 Welcome, <b>{html.escape(telegram_user.first_name)}</b>!\n\n"
        "Keep your clients, notes and reminders in one place.",
        reply_markup=get_webapp_keyboard(webapp_url),
    )

    logger.info(
        "User started bot",
        extra={"user_id": telegram_user.id, "username": telegram_user.username},
    )


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@router.message(Command("due"))
async def cmd_due(message: Message, owner_id: str) -> None:
    """
    List reminders that are due and not yet notified.

    Read-only: the poller is what marks them notified.
    """
    async with get_session_factory()() as session:
        due = await ReminderService(session).list_due(owner_id)

    if not due:
        await message.answer("✅ Nothing is due.")
        return

    for reminder in due:
        await message.answer(format_reminder_message(reminder))


@router.message(Command("today"))
async def cmd_today(message: Message, owner_id: str) -> None:
    """List today's active reminders, soonest first."""
    async with get_session_factory()() as session:
        service = ReminderService(session)
        today = service.now().date()
        reminders = await service.list_active(owner_id, on_date=today)

    if not reminders:
        await message.answer(f"📅 No reminders for {today:%d.%m.%Y}.")
        return

    lines = [f"<b>📅 {today:%d.%m.%Y}</b>", ""]
    lines.extend(_reminder_line(r) for r in reminders)
    await message.answer("\n".join(lines))
