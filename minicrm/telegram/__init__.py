"""
Telegram Channel.

aiogram v3 integration: the bot that opens the CRM mini-app, answers
reminder commands and delivers due-reminder alerts.

Structure:
    telegram/
    ├── bot.py               # Bot and dispatcher setup
    ├── webhook.py           # Webhook endpoint for FastAPI
    ├── handlers/            # /start, /help, /due, /today
    ├── middlewares/         # Logging, owner identity
    ├── keyboards/           # Mini-app buttons
    └── services/            # Notification delivery, reminder alert sink

The bot runs either inside the API process in webhook mode or standalone
with long polling (``cli.py --service telegram-poll``).

Environment Variables:
    TELEGRAM_BOT_TOKEN: Bot token from BotFather
    TELEGRAM_WEBHOOK_SECRET: Secret for webhook validation
"""

from minicrm.telegram.bot import create_bot, create_dispatcher, get_bot, get_dispatcher

__all__ = [
    "create_bot",
    "create_dispatcher",
    "get_bot",
    "get_dispatcher",
]
