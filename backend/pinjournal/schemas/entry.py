"""
PinJournal Backend — Journal Request/Response Schemas
=======================================================

What:  Pydantic models for the journal API.
Why:   The journal frontend speaks camelCase (`pinColor`, `entryId`); models
       here keep snake_case attributes and publish camelCase aliases.

Request bodies declare every field optional. Presence rules ("title and
content are required") are checked by pinjournal.validation so the client
gets the 400 message it expects instead of FastAPI's generic 422.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class EntryCreate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    pin_color: Optional[str] = None


class EntryUpdate(CamelModel):
    """Partial update: a field left out (or null) keeps its stored value."""
    title: Optional[str] = None
    content: Optional[str] = None
    pin_color: Optional[str] = None

    def supplied(self) -> dict:
        """The fields the caller actually sent, keyed by wire name."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class EntryResponse(CamelModel):
    id: uuid.UUID
    title: str
    content: str
    date: datetime
    pin_color: str
    status: str


class ActivityEntryRef(CamelModel):
    """The referenced entry, reduced to what the activity feed displays."""
    id: uuid.UUID
    title: str


class ActivityResponse(CamelModel):
    id: int
    action: str
    # Populated from the `entry` relationship; null for downloads or when
    # the entry row is gone
    entry_id: Optional[ActivityEntryRef] = None
    details: Optional[str] = None
    timestamp: datetime
