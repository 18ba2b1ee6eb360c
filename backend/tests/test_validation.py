"""
PinJournal Backend — Validation Unit Tests
============================================

What:  Tests for the pure normalization and format checks.
How:   No database, no HTTP: plain function calls.

What we test:
    ✅ Email normalization and format check
    ✅ IPv4 format, private ranges, IPv4-mapped prefix
    ✅ Email records report every failing field at once
    ✅ Pin colour and title/content rules for entries
"""

import pytest

from pinjournal.exceptions import ValidationError
from pinjournal.validation import (
    is_private_ipv4,
    is_valid_email,
    is_valid_ipv4,
    normalize_email,
    strip_ipv4_mapped_prefix,
    validate_email_record,
    validate_entry_changes,
    validate_new_entry,
    validate_pin_color,
)


class TestEmailFormat:

    def test_normalize_trims_and_lowercases(self):
        assert normalize_email("  Alice@Example.COM ") == "alice@example.com"

    @pytest.mark.parametrize("email", ["A@B.CO", " x@y.org", "already@lower.io"])
    def test_normalize_is_idempotent(self, email):
        once = normalize_email(email)
        assert normalize_email(once) == once

    @pytest.mark.parametrize("email", ["a@b.co", "first.last+tag@sub.example.org"])
    def test_valid_emails(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", ["", "plain", "a@b", "a b@c.de", "a@@b.cd", "@b.cd"])
    def test_invalid_emails(self, email):
        assert not is_valid_email(email)


class TestIpv4Checks:

    def test_dotted_quad_is_valid(self):
        assert is_valid_ipv4("8.8.8.8")

    def test_octet_range_is_not_checked(self):
        """Only the shape is validated: four groups of one to three digits."""
        assert is_valid_ipv4("999.1.1.1")

    @pytest.mark.parametrize("address", ["", "1.2.3", "1.2.3.4.5", "::1", "abc.def.ghi.jkl"])
    def test_malformed_addresses(self, address):
        assert not is_valid_ipv4(address)

    @pytest.mark.parametrize(
        "address",
        ["10.0.0.1", "192.168.1.20", "172.16.0.1", "172.31.255.255", "127.0.0.1"],
    )
    def test_private_ranges(self, address):
        assert is_private_ipv4(address)

    @pytest.mark.parametrize("address", ["8.8.8.8", "172.15.0.1", "172.32.0.1", "11.0.0.1"])
    def test_public_addresses(self, address):
        assert not is_private_ipv4(address)

    def test_strip_mapped_prefix(self):
        assert strip_ipv4_mapped_prefix("::ffff:203.0.113.9") == "203.0.113.9"
        assert strip_ipv4_mapped_prefix("203.0.113.9") == "203.0.113.9"


class TestValidateEmailRecord:

    def test_returns_normalized_email(self):
        assert validate_email_record(" Bob@Example.com", "8.8.8.8", "Germany") == "bob@example.com"

    def test_unknown_location_is_long_enough(self):
        assert validate_email_record("bob@example.com", "8.8.8.8", "Unknown") == "bob@example.com"

    def test_all_failures_are_reported_together(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_email_record("not-an-email", "1.2.3", "X")

        error = exc_info.value
        assert error.errors == [
            "Invalid email format",
            "Invalid IPv4 format",
            "Location must be at least 2 characters",
        ]
        assert error.message == (
            "Invalid email format, Invalid IPv4 format, Location must be at least 2 characters"
        )

    def test_single_failure_message(self):
        with pytest.raises(ValidationError, match="^Invalid email format$"):
            validate_email_record("nope", "8.8.8.8", "France")


class TestEntryRules:

    def test_pin_color_none_passes(self):
        assert validate_pin_color(None) is None

    @pytest.mark.parametrize("color", ["yellow", "red", "green", "orange"])
    def test_known_pin_colors(self, color):
        assert validate_pin_color(color) == color

    def test_unknown_pin_color(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_pin_color("purple")
        assert exc_info.value.field == "pinColor"

    @pytest.mark.parametrize(
        "title, content",
        [(None, "body"), ("title", None), ("", "body"), ("title", ""), ("   ", "body"), ("title", "\n\t")],
    )
    def test_new_entry_requires_title_and_content(self, title, content):
        with pytest.raises(ValidationError, match="Title and content are required"):
            validate_new_entry(title, content)

    def test_changes_may_omit_fields(self):
        validate_entry_changes(None, None)
        validate_entry_changes("New title", None)

    def test_changes_may_not_blank_fields(self):
        with pytest.raises(ValidationError, match="Title cannot be empty"):
            validate_entry_changes("   ", None)
        with pytest.raises(ValidationError, match="Content cannot be empty"):
            validate_entry_changes(None, "")


class TestEmailLength:

    def test_address_longer_than_column_is_rejected(self):
        long_email = "a" * 310 + "@example.com"

        with pytest.raises(ValidationError, match="Email must be at most 320 characters"):
            validate_email_record(long_email, "8.8.8.8", "France")

    def test_address_at_column_width_is_accepted(self):
        email = "a" * 308 + "@example.com"
        assert len(email) == 320
        assert validate_email_record(email, "8.8.8.8", "France") == email
