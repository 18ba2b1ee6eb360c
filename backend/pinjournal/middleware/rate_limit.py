"""
PinJournal Backend — Rate Limiting Middleware
===============================================

What:  Per-IP sliding window limiter for the public email capture service.
Why:   The sign-up form is unauthenticated; without a limit one client can
       fill the emails table and burn the public IP lookup quota.
How:   Each IP keeps a list of request timestamps. Timestamps older than the
       window are dropped; a full list means 429.

Every response carries the standard `RateLimit-Limit`, `RateLimit-Remaining`
and `RateLimit-Reset` headers; a 429 also carries `Retry-After`.

In-memory state is per process. Running several workers multiplies the
effective limit by the worker count.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from pinjournal.config import settings
from pinjournal.exceptions import RateLimitExceededError
from pinjournal.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Args:
        limit:  Max requests per window (default: settings.rate_limit_requests)
        window: Window length in seconds (default: settings.rate_limit_window)
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        limit: Optional[int] = None,
        window: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(app, **kwargs)
        self.limit = limit or settings.rate_limit_requests
        self.window = window or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window

        hits = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = hits

        if len(hits) >= self.limit:
            retry_after = int(hits[0] + self.window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(hits),
                self.window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            response = JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )
            self._set_headers(response, remaining=0, reset=retry_after)
            return response

        hits.append(now)
        reset = int(hits[0] + self.window - now) + 1

        self._seen += 1
        if self._seen % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

        response = await call_next(request)
        self._set_headers(response, remaining=self.limit - len(hits), reset=reset)
        return response

    def _set_headers(self, response: Response, remaining: int, reset: int) -> None:
        response.headers["RateLimit-Limit"] = str(self.limit)
        response.headers["RateLimit-Remaining"] = str(max(remaining, 0))
        response.headers["RateLimit-Reset"] = str(max(reset, 0))

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Drop IPs whose newest request has left the window."""
        inactive = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive:
            del self._requests[ip]
        if inactive:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive))
