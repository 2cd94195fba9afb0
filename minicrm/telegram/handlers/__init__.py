"""
Telegram Bot Handlers.

Command handlers organized by feature.

Adding New Handlers:
1. Create a new file in this directory
2. Create a Router and add handlers
3. Import and add to get_all_routers()
"""

from aiogram import Router

from minicrm.telegram.handlers.common import router as common_router

__all__ = [
    "get_all_routers",
    "common_router",
]


def get_all_routers() -> list[Router]:
    """Routers to include in the dispatcher, in priority order."""
    return [common_router]
