"""
PinJournal Backend — Activity Log Service
===========================================

What:  Appends audit records for journal actions and lists them back.
Why:   The activity feed shows what happened to which entry. It is a side
       effect: by the time `record()` runs, the entry change it describes has
       already been committed, and a failed audit write is logged and dropped
       rather than failing the request.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pinjournal.exceptions import DatabaseError
from pinjournal.models.activity import Activity
from pinjournal.schemas.entry import ActivityEntryRef, ActivityResponse

logger = logging.getLogger(__name__)


class ActivityService:
    """Stateless; receives the session per call."""

    async def record(
        self,
        db: AsyncSession,
        action: str,
        details: str,
        entry_id: Optional[uuid.UUID] = None,
    ) -> Optional[Activity]:
        """
        Insert and commit one activity row.

        Returns the stored row, or None when the write failed. Never raises
        for database errors.
        """
        activity = Activity(action=action, entry_id=entry_id, details=details)
        try:
            db.add(activity)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error(
                "Failed to record '%s' activity for entry %s: %s",
                action,
                entry_id,
                str(e),
            )
            await db.rollback()
            return None
        return activity

    async def list_activities(self, db: AsyncSession) -> List[ActivityResponse]:
        """All activities, oldest first, each with its entry's title when it still resolves."""
        try:
            result = await db.execute(
                select(Activity)
                .options(selectinload(Activity.entry))
                .order_by(Activity.id.asc())
            )
            activities = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing activities: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to fetch activities",
                context={"error_type": type(e).__name__},
            )

        return [
            ActivityResponse(
                id=activity.id,
                action=activity.action,
                entry_id=(
                    ActivityEntryRef(id=activity.entry.id, title=activity.entry.title)
                    if activity.entry is not None
                    else None
                ),
                details=activity.details,
                timestamp=activity.timestamp,
            )
            for activity in activities
        ]


activity_service = ActivityService()
