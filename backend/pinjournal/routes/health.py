"""
PinJournal Backend — Health Check Route
=========================================

What:  GET /health for container probes, mounted on both services.
How:   Pings the database and checks whether the GeoIP database is loaded.

Status levels:
    - healthy:   database reachable, GeoIP loaded (HTTP 200)
    - degraded:  database reachable, GeoIP missing; emails are still
                 captured, located as "Unknown" (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request, Response

from pinjournal import __version__
from pinjournal.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    state = request.app.state

    db_ok = await state.database.ping()
    # Only the email service carries a locator
    locator = getattr(state, "geo_locator", None)
    geo_ok = locator is None or locator.available

    if not db_ok:
        overall = "unhealthy"
        response.status_code = 503
    elif not geo_ok:
        overall = "degraded"
    else:
        overall = "healthy"

    return HealthResponse(
        status=overall,
        service=state.service_name,
        version=__version__,
        database="connected" if db_ok else "disconnected",
        geoip="not_used" if locator is None else ("loaded" if geo_ok else "missing"),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
