"""
PinJournal Backend — Shared Response Schemas
==============================================

What:  Error envelope, plain message body and health report, shared by the
       journal and email services.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx JSON response.

    Example:
        {
            "error": "not_found",
            "message": "Entry not found or already deleted",
            "request_id": "3f2a9c1b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Returned by GET /health on both services."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    service: str = Field(description="Which backend answered: journal or emails")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    geoip: str = Field(description="GeoIP database: loaded, missing, not_used")
    uptime_seconds: float = Field(description="Seconds since service started")
