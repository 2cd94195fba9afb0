"""
Reminder Model.

A dated reminder. ``date`` and ``time`` are wall-clock values in the
application timezone. ``notified`` and ``archived`` are only changed
through the lifecycle operations in ``services.reminder``.
"""

import datetime as dt

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column

from minicrm.backend.models.base import Base, OwnedMixin, TimestampMixin, UUIDMixin


class Reminder(UUIDMixin, OwnedMixin, TimestampMixin, Base):
    """Reminder database model."""

    __tablename__ = "reminders"
    __table_args__ = (
        Index("ix_reminders_owner_archived_date", "owner_id", "archived", "date"),
    )

    client_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("clients.id"),
        nullable=True,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    notified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    archived_at: Mapped[dt.datetime | None] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Reminder(id={self.id}, date={self.date}, time={self.time}, "
            f"notified={self.notified}, archived={self.archived})>"
        )
