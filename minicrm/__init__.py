"""
MiniCRM.

- backend/: HTTP API, database models, services, background tasks
- telegram/: Telegram bot integration (aiogram v3) and reminder delivery
"""
