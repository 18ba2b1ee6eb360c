"""
PinJournal Backend — Request Logging Middleware
=================================================

What:  One access-log line per request: method, path, status, duration,
       request ID and client address.
Why:   Uvicorn's own access log has no request ID and no timing; it is
       silenced in setup_logging() in favour of this one.

Request bodies are never logged; the email service receives personal data.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from pinjournal.middleware.request_id import request_id_var

logger = logging.getLogger("pinjournal.access")

SKIPPED_PATHS = {"/health"}


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Must sit inside RequestIDMiddleware so the ID is already set."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        logger.log(
            level_for_status(response.status_code),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
