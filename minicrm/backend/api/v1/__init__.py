"""
API Version 1 Router.

Aggregates all v1 endpoint routers. Every v1 route requires a caller
identity (Telegram init data).
"""

from fastapi import APIRouter

from minicrm.backend.api.v1.endpoints import clients, notes, reminders, settings, summary

router = APIRouter()

router.include_router(clients.router, prefix="/clients", tags=["clients"])
router.include_router(notes.router, prefix="/notes", tags=["notes"])
router.include_router(reminders.router, prefix="/reminders", tags=["reminders"])
router.include_router(settings.router, prefix="/settings", tags=["settings"])
router.include_router(summary.router, prefix="/summary", tags=["summary"])
