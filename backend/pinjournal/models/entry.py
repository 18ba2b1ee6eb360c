"""
PinJournal Backend — Entry SQLAlchemy Model
=============================================

What:  ORM model for the `entries` table: the pinned notes of the journal.
Why:   Entries are never physically removed. Deleting one flips `status` to
       'Deleted', which hides it from every read while keeping the row for
       the activity history.

Query Patterns:
    - Board listing:  WHERE status = 'Active'
    - Update/delete:  WHERE id = :id AND status = 'Active'
    - Weekly report:  WHERE status = 'Active' AND date >= :since
      → all three are served by idx_entries_status_date
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from pinjournal.database import Base

PIN_COLORS = ("yellow", "red", "green", "orange")
DEFAULT_PIN_COLOR = "green"

STATUS_ACTIVE = "Active"
STATUS_DELETED = "Deleted"
ENTRY_STATUSES = (STATUS_ACTIVE, STATUS_DELETED)


def _in_list(column: str, values) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class Entry(Base):
    """
    A journal note pinned to the board.

    Lifecycle:
        1. Created Active with the default green pin unless one is given
        2. title/content/pin_color may be changed any number of times
        3. Soft-deleted once; a Deleted entry is never updated again
    """

    __tablename__ = "entries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # One timestamp; the report splits it into a display date and time
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    pin_color: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=DEFAULT_PIN_COLOR,
        server_default=text(f"'{DEFAULT_PIN_COLOR}'"),
    )

    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=STATUS_ACTIVE,
        server_default=text(f"'{STATUS_ACTIVE}'"),
    )

    __table_args__ = (
        CheckConstraint(_in_list("pin_color", PIN_COLORS), name="ck_entries_pin_color"),
        CheckConstraint(_in_list("status", ENTRY_STATUSES), name="ck_entries_status"),
        Index("idx_entries_status_date", "status", "date"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    def snapshot(self) -> dict:
        """The three user-editable fields, keyed by their wire names."""
        return {"title": self.title, "content": self.content, "pinColor": self.pin_color}

    def __repr__(self) -> str:
        return f"<Entry(id={self.id}, status='{self.status}', title={self.title!r})>"
