"""
PinJournal Backend — FastAPI Application Factories
====================================================

What:  Builds the two ASGI applications: the journal API and the email
       capture API.
Why:   They deploy separately (different origins, only the public email form
       is rate limited) but share configuration, persistence, logging and
       error handling. Both factories go through `_build_app()`.
How:   Factory functions accept the collaborators (Database, resolver,
       locator) so tests can inject their own; in production they are built
       from settings. The lifespan tears them down on shutdown.

    uvicorn pinjournal.main:app          # journal  (/api/journal, /health)
    uvicorn pinjournal.main:email_app    # emails   (/api/emails, /health)

Lifecycle:
    Startup:
    1. Configure logging
    2. Validate production settings (logged, not fatal)
    3. Create tables when running against a local SQLite file
    Shutdown:
    1. Close the public IP HTTP client and the GeoIP reader
    2. Dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Sequence, Tuple

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pinjournal import __version__
from pinjournal.config import settings
from pinjournal.database import Database, build_database
from pinjournal.exceptions import (
    ConflictError,
    DatabaseError,
    MethodNotAllowedError,
    NotFoundError,
    PinJournalError,
    UpstreamError,
    ValidationError,
)
from pinjournal.middleware.logging import RequestLoggingMiddleware
from pinjournal.middleware.rate_limit import RateLimitMiddleware
from pinjournal.middleware.request_id import RequestIDMiddleware, request_id_var
from pinjournal.middleware.security_headers import SecurityHeadersMiddleware
from pinjournal.routes import emails, health, journal
from pinjournal.services.email_service import EmailService
from pinjournal.services.geolocation import GeoLocator
from pinjournal.services.ip_resolver import PublicIpResolver

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once per process.

    Format: 2024-06-03T14:05:00 [INFO] pinjournal.services.entry_service: ...
    Output goes to stdout, which the container runtime collects.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Replaced by RequestLoggingMiddleware / too chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    service = app.state.service_name
    logger.info("PinJournal %s service starting up (env=%s)", service, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health reports what is missing
        logger.error("Configuration error: %s", str(e))

    database: Database = app.state.database
    if database.url.startswith("sqlite") and not settings.is_production:
        await database.create_all()
        logger.info("Local SQLite schema ensured")

    logger.info("Server ready on port %d", settings.port)

    yield

    logger.info("PinJournal %s service shutting down...", service)
    email_service: Optional[EmailService] = getattr(app.state, "email_service", None)
    if email_service is not None:
        await email_service.resolver.aclose()
        email_service.locator.close()
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: Optional[dict] = None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy to HTTP responses.

        ValidationError          → 400
        ConflictError            → 400
        RequestValidationError   → 400 (malformed JSON / wrong field types)
        NotFoundError            → 404
        MethodNotAllowedError    → 405
        UpstreamError            → 500 "Server error"
        DatabaseError            → 500 with the operation's message
        PinJournalError / other  → 500

    No handler returns exception context or driver messages to the client.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        details = {"field": exc.field} if exc.field else None
        if len(exc.errors) > 1:
            details = {"errors": exc.errors}
        return JSONResponse(status_code=400, content=_error_body("validation_error", exc.message, details))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()]
        return JSONResponse(
            status_code=400,
            content=_error_body(
                "validation_error",
                "Request body is not valid",
                {"fields": [f for f in fields if f]},
            ),
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return JSONResponse(status_code=400, content=_error_body("conflict", exc.message))

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=_error_body("not_found", exc.message))

    @app.exception_handler(MethodNotAllowedError)
    async def handle_method_not_allowed(request: Request, exc: MethodNotAllowedError):
        headers = {"Allow": ", ".join(exc.allowed)} if exc.allowed else None
        return JSONResponse(
            status_code=405,
            content=_error_body("method_not_allowed", exc.message),
            headers=headers,
        )

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(request: Request, exc: UpstreamError):
        logger.error("[%s] Upstream error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(status_code=500, content=_error_body("server_error", "Server error"))

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(status_code=500, content=_error_body("server_error", exc.message))

    @app.exception_handler(PinJournalError)
    async def handle_app_error(request: Request, exc: PinJournalError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(status_code=500, content=_error_body("server_error", "Server error"))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body("internal_server_error", "An unexpected error occurred"),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factories
# ══════════════════════════════════════════════════════════════════════════

def _build_app(
    title: str,
    description: str,
    service_name: str,
    database: Optional[Database],
    inner_middleware: Sequence[Tuple[type, dict]] = (),
) -> FastAPI:
    app = FastAPI(
        title=title,
        description=description,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service_name = service_name
    app.state.database = database or build_database(settings)

    for middleware_class, options in inner_middleware:
        app.add_middleware(middleware_class, **options)

    # Last added runs first: RequestID → Logging → inner middleware → route
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)
    app.include_router(health.router)
    return app


def create_journal_app(database: Optional[Database] = None) -> FastAPI:
    """Journal API: entry CRUD, activity feed and weekly report."""
    app = _build_app(
        title="PinJournal API",
        description="Pinned journal entries with soft deletion, an activity log and a weekly CSV report.",
        service_name="journal",
        database=database,
        inner_middleware=[(SecurityHeadersMiddleware, {})],
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.journal_origins_list,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )
    app.include_router(journal.router)
    return app


def create_email_app(
    database: Optional[Database] = None,
    resolver: Optional[PublicIpResolver] = None,
    locator: Optional[GeoLocator] = None,
    rate_limit: Optional[int] = None,
    rate_window: Optional[int] = None,
) -> FastAPI:
    """Email capture API: one rate-limited POST endpoint."""
    app = _build_app(
        title="PinJournal Email Capture",
        description="Stores sign-up emails with the visitor's public IP and country.",
        service_name="emails",
        database=database,
        inner_middleware=[(RateLimitMiddleware, {"limit": rate_limit, "window": rate_window})],
    )
    resolver = resolver or PublicIpResolver(settings.public_ip_url, timeout=settings.public_ip_timeout)
    locator = locator or GeoLocator.from_path(settings.geoip_db_path)
    app.state.geo_locator = locator
    app.state.email_service = EmailService(resolver, locator)
    app.include_router(emails.router)
    return app


app = create_journal_app()
email_app = create_email_app()


def run_journal() -> None:
    """Console entry point: serve the journal API on PORT."""
    uvicorn.run("pinjournal.main:app", host=settings.host, port=settings.port)


def run_emails() -> None:
    """Console entry point: serve the email capture API on PORT."""
    uvicorn.run("pinjournal.main:email_app", host=settings.host, port=settings.port)
