"""
PinJournal Backend — Email Capture Schemas
============================================
"""

from typing import Optional

from pydantic import BaseModel


class EmailSubmission(BaseModel):
    """Body of POST /api/emails. Presence is checked by the service."""
    email: Optional[str] = None


class EmailSavedResponse(BaseModel):
    message: str = "Email saved successfully"
