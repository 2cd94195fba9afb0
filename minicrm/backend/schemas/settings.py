"""
User Settings Schemas.
"""

from typing import Literal

from minicrm.backend.schemas.base import CamelModel


class SettingsResponse(CamelModel):
    """The owner's settings, defaults included."""

    notifications: bool = True
    sound: bool = True
    language: str = "ru"
    theme: str = "auto"


class SettingsUpdate(CamelModel):
    """Partial settings update."""

    notifications: bool | None = None
    sound: bool | None = None
    language: Literal["ru", "en", "uk"] | None = None
    theme: Literal["auto", "light", "dark"] | None = None
