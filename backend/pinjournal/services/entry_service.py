"""
PinJournal Backend — Entry Service (Journal CRUD)
===================================================

What:  Create, list, update and soft-delete journal entries.
Why:   Keeps the routes thin and puts the ordering rule in one place:
       validate → persist and commit the entry → append the audit record.
How:   Each mutating method commits the entry change before calling
       ActivityService.record(), so an audit failure cannot roll it back.

Only Active entries are visible. A Deleted entry behaves exactly like an id
that never existed: 404 "Entry not found or already deleted".
"""

import json
import logging
import uuid
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pinjournal.exceptions import DatabaseError, NotFoundError
from pinjournal.models.activity import ACTION_CREATE, ACTION_DELETE, ACTION_UPDATE
from pinjournal.models.entry import STATUS_ACTIVE, STATUS_DELETED, Entry
from pinjournal.schemas.entry import EntryCreate, EntryResponse, EntryUpdate
from pinjournal.services.activity_service import activity_service
from pinjournal.validation import (
    validate_entry_changes,
    validate_new_entry,
    validate_pin_color,
)

logger = logging.getLogger(__name__)

ENTRY_NOT_FOUND = "Entry not found or already deleted"


def _compact_json(value: dict) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def parse_entry_id(raw_id: str) -> uuid.UUID:
    """An id that is not a UUID cannot name an entry, so it is a 404 like any other."""
    try:
        return uuid.UUID(str(raw_id))
    except ValueError:
        raise NotFoundError(message=ENTRY_NOT_FOUND, resource="entry", resource_id=str(raw_id))


class EntryService:
    """
    Business logic for journal entries.

    Error Handling Strategy:
        Input problems raise ValidationError before any query runs. Missing or
        Deleted entries raise NotFoundError. Any SQLAlchemy failure on the
        primary write becomes DatabaseError with a message naming the
        operation; the SQL detail is logged only.
    """

    async def create_entry(self, db: AsyncSession, payload: EntryCreate) -> EntryResponse:
        validate_new_entry(payload.title, payload.content)
        validate_pin_color(payload.pin_color)

        entry = Entry(title=payload.title, content=payload.content)
        if payload.pin_color is not None:
            entry.pin_color = payload.pin_color

        try:
            db.add(entry)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error creating entry: %s", str(e), exc_info=True)
            raise DatabaseError(message="Failed to create entry", context={"error_type": type(e).__name__})

        logger.info("Entry %s created", entry.id)
        # Built before the audit write: a failed write rolls back and expires `entry`
        response = EntryResponse.model_validate(entry)
        await activity_service.record(
            db,
            action=ACTION_CREATE,
            entry_id=entry.id,
            details=f"Created entry with title: {entry.title}",
        )
        return response

    async def list_entries(self, db: AsyncSession) -> List[EntryResponse]:
        """Active entries in storage order."""
        try:
            result = await db.execute(select(Entry).where(Entry.status == STATUS_ACTIVE))
            entries = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing entries: %s", str(e), exc_info=True)
            raise DatabaseError(message="Failed to fetch entries", context={"error_type": type(e).__name__})
        return [EntryResponse.model_validate(entry) for entry in entries]

    async def update_entry(
        self,
        db: AsyncSession,
        raw_id: str,
        payload: EntryUpdate,
    ) -> EntryResponse:
        """
        Apply the supplied fields of `payload` to an Active entry.

        The audit details show all three editable fields before the change
        and only the fields the caller sent after it.
        """
        entry_id = parse_entry_id(raw_id)
        validate_entry_changes(payload.title, payload.content)
        validate_pin_color(payload.pin_color)

        entry = await self._get_active(db, entry_id, failure_message="Failed to update entry")
        before = entry.snapshot()

        if payload.title is not None:
            entry.title = payload.title
        if payload.content is not None:
            entry.content = payload.content
        if payload.pin_color is not None:
            entry.pin_color = payload.pin_color

        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error updating entry %s: %s", entry_id, str(e), exc_info=True)
            raise DatabaseError(message="Failed to update entry", context={"entry_id": str(entry_id)})

        response = EntryResponse.model_validate(entry)
        await activity_service.record(
            db,
            action=ACTION_UPDATE,
            entry_id=entry.id,
            details=f"Updated entry from: {_compact_json(before)} to: {_compact_json(payload.supplied())}",
        )
        return response

    async def delete_entry(self, db: AsyncSession, raw_id: str) -> None:
        """Soft delete: the row stays, its status becomes Deleted."""
        entry_id = parse_entry_id(raw_id)
        entry = await self._get_active(db, entry_id, failure_message="Failed to delete entry")

        entry.status = STATUS_DELETED
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting entry %s: %s", entry_id, str(e), exc_info=True)
            raise DatabaseError(message="Failed to delete entry", context={"entry_id": str(entry_id)})

        logger.info("Entry %s marked as deleted", entry_id)
        await activity_service.record(
            db,
            action=ACTION_DELETE,
            entry_id=entry.id,
            details=f"Deleted entry with title: {entry.title}",
        )

    async def _get_active(self, db: AsyncSession, entry_id: uuid.UUID, failure_message: str) -> Entry:
        try:
            result = await db.execute(
                select(Entry).where(Entry.id == entry_id, Entry.status == STATUS_ACTIVE)
            )
            entry = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching entry %s: %s", entry_id, str(e), exc_info=True)
            raise DatabaseError(message=failure_message, context={"entry_id": str(entry_id)})

        if entry is None:
            raise NotFoundError(message=ENTRY_NOT_FOUND, resource="entry", resource_id=str(entry_id))
        return entry


entry_service = EntryService()
