"""
PinJournal Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   The connection pool is the only resource shared across requests. It is
       wrapped in an explicit `Database` object that the app factory builds,
       stores on `app.state`, and disposes on shutdown, so handlers never
       reach for a module-level engine.
How:   `Database` owns the engine and sessionmaker; `get_db_session` pulls the
       instance off the running app and yields one session per request.
Who:   Built by main.create_*_app(); consumed by routes via Depends().
When:  Engine is created with the app; sessions are created per-request.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from pinjournal.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all ORM models (emails, entries, activities).

    Shares a single metadata object, which Alembic and `Database.create_all`
    both read.
    """
    pass


class Database:
    """
    Owns one async engine and its session factory.

    Lifecycle:
        1. Constructed by the app factory (no connection is opened yet)
        2. Sessions are handed out per request by `session()`
        3. `dispose()` closes every pooled connection on shutdown
    """

    def __init__(self, url: str, **engine_kwargs: Any):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        # expire_on_commit=False: services commit mid-request and still read
        # attributes of the committed objects afterwards
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Yield a session that commits on success and rolls back on error.

        Used directly by background tasks, which run after the request's own
        session has been closed.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create every table known to `Base.metadata` (tests and local dev)."""
        # Register the models with Base.metadata before creating tables
        from pinjournal.models import activity, email, entry  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """Run SELECT 1; used by the health check."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()


def build_database(settings: Settings) -> Database:
    """
    Build the process-wide `Database` from settings.

    Pool sizing only applies to server databases; SQLite (used for local runs)
    rejects the QueuePool arguments.
    """
    kwargs: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not make_url(settings.database_url).get_backend_name().startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return Database(settings.database_url, **kwargs)


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the app's `Database`
        2. Yields it to the route handler
        3. On success: commits whatever the services left pending
        4. On error: rolls back and re-raises for the global error handler

    Services commit explicitly when a later step (the audit record) must not
    be able to undo an earlier one; the final commit here is then a no-op.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
