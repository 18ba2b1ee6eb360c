"""
PinJournal Backend — Request-Scoped Dependencies
==================================================

What:  FastAPI dependencies that hand the collaborators built by the app
       factory (stored on `app.state`) to route handlers.
Why:   Routes declare what they need with Depends(); tests swap the objects
       by passing their own to create_*_app().
"""

from fastapi import Request

from pinjournal.database import Database
from pinjournal.services.email_service import EmailService


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service
