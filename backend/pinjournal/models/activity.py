"""
PinJournal Backend — Activity SQLAlchemy Model
================================================

What:  Append-only audit trail of journal actions (`activities` table).
Why:   Records who-did-what for traceability; nothing replays it.

`entry_id` is a weak reference: soft-deleting an entry leaves its history
untouched, and download events carry no entry at all. The integer primary
key doubles as the insertion order.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pinjournal.database import Base
from pinjournal.models.entry import Entry

ACTION_CREATE = "create"
ACTION_UPDATE = "update"
ACTION_DELETE = "delete"
ACTION_DOWNLOAD = "download"
ACTIONS = (ACTION_CREATE, ACTION_UPDATE, ACTION_DELETE, ACTION_DOWNLOAD)


class Activity(Base):
    """One journal action. Rows are inserted, never updated or deleted."""

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    action: Mapped[str] = mapped_column(String(16), nullable=False)

    entry_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("entries.id", ondelete="SET NULL"),
        nullable=True,
    )

    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # Loaded eagerly by the listing query to resolve the entry title
    entry: Mapped[Optional[Entry]] = relationship(Entry, lazy="raise")

    __table_args__ = (
        CheckConstraint(
            "action IN ({})".format(", ".join(repr(a) for a in ACTIONS)),
            name="ck_activities_action",
        ),
        Index("idx_activities_entry_id", "entry_id"),
    )

    def __repr__(self) -> str:
        return f"<Activity(id={self.id}, action='{self.action}', entry_id={self.entry_id})>"
