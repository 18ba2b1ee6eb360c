"""
PinJournal Backend — Input Validation & Normalization
=======================================================

What:  Pure functions that normalize and check every user-supplied value
       before it reaches the database.
Why:   The storage schema only carries the constraints a database can
       enforce cheaply (NOT NULL, unique, enum CHECKs). Format rules live here
       so they can be tested without an engine and produce the exact
       messages the clients display.
"""

import re
from typing import List, Optional

from pinjournal.exceptions import ValidationError
from pinjournal.models.entry import PIN_COLORS

# local@domain.tld: no whitespace, exactly one "@", a dot in the domain
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Four dot-separated groups of 1-3 digits; octet range is not checked
IPV4_PATTERN = re.compile(r"^(?:[0-9]{1,3}\.){3}[0-9]{1,3}$")

PRIVATE_IPV4_PATTERN = re.compile(r"^(192\.168\.|10\.|172\.(1[6-9]|2[0-9]|3[0-1])\.|127\.)")

IPV4_MAPPED_PREFIX = "::ffff:"

MIN_LOCATION_LENGTH = 2

# Width of emails.email
MAX_EMAIL_LENGTH = 320


def normalize_email(email: str) -> str:
    """Trim surrounding whitespace and lowercase."""
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def is_valid_ipv4(address: str) -> bool:
    return bool(IPV4_PATTERN.match(address))


def is_private_ipv4(address: str) -> bool:
    """True for 10/8, 172.16/12, 192.168/16 and loopback 127/8 prefixes."""
    return bool(PRIVATE_IPV4_PATTERN.match(address))


def strip_ipv4_mapped_prefix(address: str) -> str:
    """'::ffff:203.0.113.9' → '203.0.113.9'; anything else is returned as-is."""
    if address.startswith(IPV4_MAPPED_PREFIX):
        return address[len(IPV4_MAPPED_PREFIX):]
    return address


def validate_email_record(email: str, ip_address: str, location: str) -> str:
    """
    Check all three fields of an email record and report every failure at once.

    Returns the normalized email. Raises ValidationError whose message joins
    the per-field messages with ", ".
    """
    errors: List[str] = []
    normalized = normalize_email(email)
    if not is_valid_email(normalized):
        errors.append("Invalid email format")
    elif len(normalized) > MAX_EMAIL_LENGTH:
        errors.append(f"Email must be at most {MAX_EMAIL_LENGTH} characters")
    if not is_valid_ipv4(ip_address or ""):
        errors.append("Invalid IPv4 format")
    if len(location or "") < MIN_LOCATION_LENGTH:
        errors.append(f"Location must be at least {MIN_LOCATION_LENGTH} characters")
    if errors:
        raise ValidationError(message=", ".join(errors), errors=errors)
    return normalized


def validate_pin_color(pin_color: Optional[str]) -> Optional[str]:
    """None means "not supplied" and passes through."""
    if pin_color is None:
        return None
    if pin_color not in PIN_COLORS:
        raise ValidationError(
            message=f"Invalid pin color '{pin_color}'. Allowed: {', '.join(PIN_COLORS)}",
            field="pinColor",
        )
    return pin_color


def validate_new_entry(title: Optional[str], content: Optional[str]) -> None:
    if not (title or "").strip() or not (content or "").strip():
        raise ValidationError(message="Title and content are required")


def validate_entry_changes(title: Optional[str], content: Optional[str]) -> None:
    """A PATCH may omit title/content, but may not blank them."""
    for name, value in (("title", title), ("content", content)):
        if value is not None and not value.strip():
            raise ValidationError(message=f"{name.capitalize()} cannot be empty", field=name)
