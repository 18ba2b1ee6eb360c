"""
PinJournal Backend — Email SQLAlchemy Model
=============================================

What:  ORM model for the `emails` table filled by the capture endpoint.
Why:   The unique index on `email` is the only guard against two concurrent
       submissions of the same address; the application never checks first.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from pinjournal.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmailRecord(Base):
    """A captured email with the visitor's public IPv4 and country name."""

    __tablename__ = "emails"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Stored normalized (trimmed, lowercased) so the unique index is
    # case-insensitive in practice
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)

    ip_address: Mapped[str] = mapped_column(String(15), nullable=False)

    # Country display name or "Unknown"
    location: Mapped[str] = mapped_column(String(100), nullable=False)

    # Set once on insert; nothing in the service updates it
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<EmailRecord(email='{self.email}', location='{self.location}')>"
