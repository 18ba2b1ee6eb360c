"""
PinJournal Backend — Request ID Middleware
============================================

What:  Gives every request a short correlation ID, echoed in `X-Request-ID`
       and in every error body.
How:   A client-supplied ID is reused when it looks sane (the frontends send
       one so a user's bug report can be matched to the log line); anything
       else is replaced with the first 8 hex chars of a UUID4.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Header values are echoed into logs; keep them short and printable
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def pick_request_id(incoming: str | None) -> str:
    if incoming and _SAFE_REQUEST_ID.match(incoming):
        return incoming
    return new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Sets `request_id_var` and `request.state.request_id`, then tags the response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = pick_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
