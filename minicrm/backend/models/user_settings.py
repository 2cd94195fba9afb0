"""
User Settings Model.

Per-owner preferences from the mini-app settings page.
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from minicrm.backend.models.base import Base, TimestampMixin, UUIDMixin

DEFAULT_SETTINGS = {
    "notifications": True,
    "sound": True,
    "language": "ru",
    "theme": "auto",
}


class UserSettings(UUIDMixin, TimestampMixin, Base):
    """User settings database model. One row per owner."""

    __tablename__ = "user_settings"

    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    notifications: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sound: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    language: Mapped[str] = mapped_column(String(8), default="ru", nullable=False)
    theme: Mapped[str] = mapped_column(String(16), default="auto", nullable=False)

    def __repr__(self) -> str:
        return f"<UserSettings(owner_id={self.owner_id})>"
