"""
PinJournal Backend — Email Capture Service
============================================

What:  Records a visitor's email with their public IP and country.
How:   presence check → resolve public IP → geolocate → validate and
       normalize the record → insert.

Duplicate detection is left to the unique index on `emails.email`: the
IntegrityError it raises is translated into ConflictError here, so two
simultaneous submissions of one address still produce exactly one row.
"""

import logging
from typing import Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pinjournal.exceptions import ConflictError, DatabaseError, ValidationError
from pinjournal.models.email import EmailRecord
from pinjournal.services.geolocation import GeoLocator
from pinjournal.services.ip_resolver import PublicIpResolver
from pinjournal.validation import validate_email_record

logger = logging.getLogger(__name__)


class EmailService:
    """Holds the resolver and locator built at startup; the session is per call."""

    def __init__(self, resolver: PublicIpResolver, locator: GeoLocator):
        self.resolver = resolver
        self.locator = locator

    async def capture(
        self,
        db: AsyncSession,
        email: Optional[str],
        headers: Mapping[str, str],
        client_host: Optional[str],
    ) -> EmailRecord:
        """
        Store one email submission.

        Raises:
            ValidationError: email missing, or a field fails its format check
            IpResolutionError: the public IP lookup failed
            ConflictError: the normalized email is already stored
            DatabaseError: any other insert failure
        """
        if not email:
            raise ValidationError(message="Email is required", field="email")

        ip_address = await self.resolver.resolve(headers, client_host)
        location = self.locator.lookup(ip_address)
        normalized = validate_email_record(email, ip_address, location)

        record = EmailRecord(email=normalized, ip_address=ip_address, location=location)
        try:
            db.add(record)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.info("Duplicate email submission rejected")
            raise ConflictError(message="Email already exists")
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Email submission error: %s", str(e), exc_info=True)
            raise DatabaseError(message="Server error", context={"error_type": type(e).__name__})

        logger.info("Email captured from %s (%s)", ip_address, location)
        return record
