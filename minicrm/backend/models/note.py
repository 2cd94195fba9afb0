"""
Note Model.

Free-text note, optionally attached to a client of the same owner.
"""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from minicrm.backend.models.base import Base, OwnedMixin, TimestampMixin, UUIDMixin


class Note(UUIDMixin, OwnedMixin, TimestampMixin, Base):
    """Note database model."""

    __tablename__ = "notes"

    client_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("clients.id"),
        nullable=True,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, client_id={self.client_id})>"
