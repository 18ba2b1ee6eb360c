"""
PinJournal Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Settings are pointed at SQLite and a missing GeoIP file BEFORE any
       pinjournal import, so the module-level apps in pinjournal.main never
       touch PostgreSQL or MaxMind data.

Fixture Hierarchy:
    ├── mock_db_session:  AsyncMock session (no database)
    ├── database:         in-memory SQLite `Database` with all tables
    ├── db_session:       one AsyncSession on that database
    ├── fake_geo_reader:  stands in for a geoip2 Reader
    ├── lookup_ip / lookup_calls / make_resolver: PublicIpResolver over httpx.MockTransport
    ├── journal_client:   AsyncClient for the journal app
    └── email_client:     AsyncClient for the email app (8.8.8.8 → United States)
"""

import os
from types import SimpleNamespace
from typing import List
from unittest.mock import AsyncMock, MagicMock

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["GEOIP_DB_PATH"] = "./does-not-exist.mmdb"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

import geoip2.errors
import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from pinjournal.database import Database
from pinjournal.services.geolocation import GeoLocator
from pinjournal.services.ip_resolver import PublicIpResolver

LOOKUP_URL = "https://ip-lookup.test/?format=json"
LOOKUP_IP = "203.0.113.50"


class FakeGeoReader:
    """Duck-typed geoip2 Reader: `.country(ip)` over a fixed table."""

    def __init__(self, table):
        self.table = dict(table)
        self.closed = False

    def country(self, ip_address):
        if ip_address not in self.table:
            raise geoip2.errors.AddressNotFoundError(f"{ip_address} not in database")
        return SimpleNamespace(country=SimpleNamespace(iso_code=self.table[ip_address]))

    def close(self):
        self.closed = True


@pytest.fixture
def mock_db_session():
    """AsyncMock session for service tests that never reach SQL."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def database():
    """
    Fresh in-memory database per test.

    StaticPool keeps the single SQLite connection alive, otherwise every
    new connection would see an empty in-memory database.
    """
    db = Database(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def fake_geo_reader():
    return FakeGeoReader({"8.8.8.8": "US", "81.2.69.142": "GB", LOOKUP_IP: "FR", "198.51.100.7": "XZ"})


@pytest.fixture
def lookup_ip() -> str:
    """The address every mocked lookup answers with."""
    return LOOKUP_IP


@pytest.fixture
def lookup_calls() -> List[httpx.Request]:
    return []


@pytest.fixture
def make_resolver(lookup_calls):
    """
    Build a PublicIpResolver whose lookups hit a MockTransport.

    make_resolver()                      → answers {"ip": LOOKUP_IP}
    make_resolver(status_code=503)       → upstream failure
    make_resolver(exc=httpx.ConnectTimeout("..."))
    """

    def factory(status_code=200, json_body=None, exc=None):
        def handler(request: httpx.Request) -> httpx.Response:
            lookup_calls.append(request)
            if exc is not None:
                raise exc
            body = {"ip": LOOKUP_IP} if json_body is None else json_body
            return httpx.Response(status_code, json=body)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return PublicIpResolver(LOOKUP_URL, timeout=3.0, client=client)

    return factory


@pytest_asyncio.fixture
async def journal_client(database):
    from pinjournal.main import create_journal_app

    app = create_journal_app(database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def email_client(database, make_resolver, fake_geo_reader):
    from pinjournal.main import create_email_app

    app = create_email_app(
        database=database,
        resolver=make_resolver(),
        locator=GeoLocator(fake_geo_reader),
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"x-forwarded-for": "8.8.8.8"},
    ) as client:
        yield client
