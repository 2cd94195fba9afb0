"""
Telegram Bot Middlewares.

aiogram v3 middleware scopes:
- Outer middleware: Runs on every update
- Inner middleware: Runs after filters pass
"""

from typing import TYPE_CHECKING

from minicrm.telegram.middlewares.logging import LoggingMiddleware
from minicrm.telegram.middlewares.owner import OwnerMiddleware

if TYPE_CHECKING:
    from aiogram import Dispatcher

__all__ = [
    "LoggingMiddleware",
    "OwnerMiddleware",
    "setup_middlewares",
]


def setup_middlewares(dp: "Dispatcher") -> None:
    """
    Setup all middlewares on the dispatcher.

    Order:
    1. LoggingMiddleware (outer) - Log all updates
    2. OwnerMiddleware (outer) - Resolve the owner before any handler runs
    """
    dp.update.outer_middleware(LoggingMiddleware())
    dp.update.outer_middleware(OwnerMiddleware())
