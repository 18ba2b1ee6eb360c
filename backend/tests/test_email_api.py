"""
PinJournal Backend — Email Capture API Tests
==============================================

What:  End-to-end tests through the email FastAPI app.
How:   The email_client fixture sends X-Forwarded-For: 8.8.8.8 by default,
       which the fake GeoIP reader places in the United States.

What we test:
    ✅ 201 with the CLIENT_URL allow-origin header
    ✅ 400 for missing, malformed and duplicate emails
    ✅ 405 for other methods, 204 preflight
    ✅ 500 "Server error" when the public IP lookup fails
    ✅ /health reports the missing GeoIP database as degraded
"""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from pinjournal.config import settings
from pinjournal.main import create_email_app
from pinjournal.models.email import EmailRecord
from pinjournal.services.geolocation import GeoLocator


class TestSubmitEmail:

    @pytest.mark.asyncio
    async def test_email_saved(self, email_client, database):
        response = await email_client.post("/api/emails", json={"email": "New@Example.com"})

        assert response.status_code == 201
        assert response.json() == {"message": "Email saved successfully"}
        assert response.headers["access-control-allow-origin"] == settings.client_url

        async with database.session() as db:
            record = (await db.execute(select(EmailRecord))).scalar_one()
        assert (record.email, record.ip_address) == ("new@example.com", "8.8.8.8")

    @pytest.mark.asyncio
    async def test_duplicate_email(self, email_client):
        await email_client.post("/api/emails", json={"email": "dup@example.com"})

        response = await email_client.post("/api/emails", json={"email": "DUP@example.com "})

        assert response.status_code == 400
        assert response.json()["message"] == "Email already exists"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"email": ""}])
    async def test_missing_email(self, email_client, body):
        response = await email_client.post("/api/emails", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "Email is required"

    @pytest.mark.asyncio
    async def test_malformed_email(self, email_client):
        response = await email_client.post("/api/emails", json={"email": "nobody"})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid email format"

    @pytest.mark.asyncio
    async def test_overlong_email(self, email_client):
        response = await email_client.post("/api/emails", json={"email": "a" * 320 + "@example.com"})

        assert response.status_code == 400
        assert response.json()["message"] == "Email must be at most 320 characters"

    @pytest.mark.asyncio
    async def test_lookup_failure_is_server_error(self, database, make_resolver, fake_geo_reader):
        app = create_email_app(
            database=database,
            resolver=make_resolver(exc=httpx.ConnectTimeout("timed out")),
            locator=GeoLocator(fake_geo_reader),
        )
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/api/emails", json={"email": "a@b.co"})

        assert response.status_code == 500
        assert response.json()["message"] == "Server error"


class TestMethodsAndPreflight:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
    async def test_other_methods_not_allowed(self, email_client, method):
        response = await email_client.request(method, "/api/emails")

        assert response.status_code == 405
        assert response.json()["message"] == "Method not allowed"
        assert response.headers["allow"] == "POST, OPTIONS"

    @pytest.mark.asyncio
    async def test_preflight(self, email_client):
        response = await email_client.options("/api/emails")

        assert response.status_code == 204
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == settings.client_url
        assert response.headers["access-control-allow-methods"] == "GET, POST"
        assert response.headers["access-control-allow-headers"] == "Content-Type"
        assert response.headers["access-control-max-age"] == "86400"


class TestEmailHealth:

    @pytest.mark.asyncio
    async def test_health_with_geoip(self, email_client):
        body = (await email_client.get("/health")).json()
        assert (body["status"], body["service"], body["geoip"]) == ("healthy", "emails", "loaded")

    @pytest.mark.asyncio
    async def test_health_without_geoip(self, database, make_resolver):
        app = create_email_app(database=database, resolver=make_resolver(), locator=GeoLocator(None))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["geoip"] == "missing"
