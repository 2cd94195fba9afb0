"""
Client Model.

A contact managed in the CRM. Notes and reminders may refer to a client.
"""

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from minicrm.backend.models.base import Base, OwnedMixin, TimestampMixin, UUIDMixin


class Client(UUIDMixin, OwnedMixin, TimestampMixin, Base):
    """Client database model."""

    __tablename__ = "clients"
    __table_args__ = (
        Index("ix_clients_owner_updated", "owner_id", "updated_at"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name={self.name!r})>"
