"""
PinJournal Backend — Journal Route Handlers
=============================================

What:  The journal API under /api/journal: entry CRUD, the activity feed
       and the weekly CSV report.
How:   Each handler pulls the session from get_db_session and delegates to a
       service; errors are rendered by the global handlers in main.py.

Route Inventory:
    POST   /api/journal                   create entry        → 201
    GET    /api/journal                   Active entries      → 200
    PATCH  /api/journal/{entry_id}        partial update      → 200 | 404
    DELETE /api/journal/{entry_id}        soft delete         → 200 | 404
    GET    /api/journal/activities        audit trail         → 200
    GET    /api/journal/download-report   weekly CSV          → 200 | 404
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from pinjournal.database import get_db_session
from pinjournal.dependencies import get_database
from pinjournal.schemas.common import ErrorResponse, MessageResponse
from pinjournal.schemas.entry import (
    ActivityResponse,
    EntryCreate,
    EntryResponse,
    EntryUpdate,
)
from pinjournal.services.activity_service import activity_service
from pinjournal.services.entry_service import entry_service
from pinjournal.services.report_service import REPORT_FILENAME, report_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/journal", tags=["Journal"])


@router.post(
    "",
    status_code=201,
    response_model=EntryResponse,
    responses={
        400: {"description": "Title or content missing, or unknown pin color", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a journal entry",
)
async def create_entry(
    payload: Optional[EntryCreate] = None,
    db: AsyncSession = Depends(get_db_session),
) -> EntryResponse:
    return await entry_service.create_entry(db, payload or EntryCreate())


@router.get(
    "",
    response_model=List[EntryResponse],
    summary="List Active journal entries",
)
async def list_entries(db: AsyncSession = Depends(get_db_session)) -> List[EntryResponse]:
    return await entry_service.list_entries(db)


@router.get(
    "/activities",
    response_model=List[ActivityResponse],
    summary="List the activity log, oldest first",
)
async def list_activities(db: AsyncSession = Depends(get_db_session)) -> List[ActivityResponse]:
    return await activity_service.list_activities(db)


@router.get(
    "/download-report",
    response_class=Response,
    responses={
        200: {"description": "Semicolon-delimited CSV", "content": {"text/csv": {}}},
        404: {"description": "No entries in the last week", "model": ErrorResponse},
    },
    summary="Download the weekly CSV report",
)
async def download_report(
    background_tasks: BackgroundTasks,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """
    The download is audited after the response has been sent; a failed
    audit write only shows up in the logs.
    """
    csv_text = await report_service.build_weekly_report(db)
    background_tasks.add_task(report_service.record_download, get_database(request))
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={REPORT_FILENAME}"},
    )


@router.patch(
    "/{entry_id}",
    response_model=EntryResponse,
    responses={
        400: {"description": "Blank title/content or unknown pin color", "model": ErrorResponse},
        404: {"description": "Entry not found or already deleted", "model": ErrorResponse},
    },
    summary="Update title, content or pin color",
)
async def update_entry(
    entry_id: str,
    payload: Optional[EntryUpdate] = None,
    db: AsyncSession = Depends(get_db_session),
) -> EntryResponse:
    return await entry_service.update_entry(db, entry_id, payload or EntryUpdate())


@router.delete(
    "/{entry_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Entry not found or already deleted", "model": ErrorResponse}},
    summary="Soft-delete an entry",
)
async def delete_entry(
    entry_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await entry_service.delete_entry(db, entry_id)
    return MessageResponse(message="Entry marked as deleted")
