"""
PinJournal Backend — Email Capture Route Handlers
===================================================

What:  POST /api/emails for the sign-up form, plus its CORS preflight.
Why:   This service answers a single cross-origin form, so CORS is written
       out by hand: one allowed origin (CLIENT_URL), a 204 preflight, and
       the allow-origin header on the success response.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from pinjournal.config import settings
from pinjournal.database import get_db_session
from pinjournal.dependencies import get_email_service
from pinjournal.exceptions import MethodNotAllowedError
from pinjournal.schemas.common import ErrorResponse
from pinjournal.schemas.email import EmailSavedResponse, EmailSubmission
from pinjournal.services.email_service import EmailService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Emails"])

EMAILS_PATH = "/api/emails"
ALLOWED_METHODS = ["POST", "OPTIONS"]


def preflight_headers() -> dict:
    return {
        "Access-Control-Allow-Origin": settings.client_url,
        "Access-Control-Allow-Methods": "GET, POST",
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Max-Age": "86400",
    }


@router.options("/{path:path}", include_in_schema=False)
async def preflight(path: str) -> Response:
    """Any OPTIONS request: 204, CORS headers, no body."""
    return Response(status_code=204, headers=preflight_headers())


@router.post(
    EMAILS_PATH,
    status_code=201,
    response_model=EmailSavedResponse,
    responses={
        400: {"description": "Missing, malformed or duplicate email", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Capture a visitor's email",
)
async def submit_email(
    request: Request,
    payload: Optional[EmailSubmission] = None,
    db: AsyncSession = Depends(get_db_session),
    email_service: EmailService = Depends(get_email_service),
) -> JSONResponse:
    await email_service.capture(
        db,
        email=payload.email if payload else None,
        headers=request.headers,
        client_host=request.client.host if request.client else None,
    )
    return JSONResponse(
        status_code=201,
        content=EmailSavedResponse().model_dump(),
        headers={"Access-Control-Allow-Origin": settings.client_url},
    )


@router.api_route(
    EMAILS_PATH,
    methods=["GET", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def method_not_allowed() -> None:
    raise MethodNotAllowedError(allowed=ALLOWED_METHODS)
