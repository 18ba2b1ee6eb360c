"""
PinJournal Backend — Geolocation Tests
========================================

What:  Tests for IPv4 → country name lookups.
How:   A FakeGeoReader (conftest) stands in for the MaxMind reader.

What we test:
    ✅ Known address → English country name
    ✅ Address missing from the database → "Unknown"
    ✅ Country code pycountry does not know → "Unknown"
    ✅ Missing database file → locator without reader
"""

import pycountry

from pinjournal.services.geolocation import (
    UNKNOWN_LOCATION,
    GeoLocator,
    country_name,
)


class TestCountryName:

    def test_known_code(self):
        assert country_name("FR") == "France"

    def test_lowercase_code(self):
        assert country_name("de") == "Germany"

    def test_unknown_code(self):
        assert country_name("XZ") is None

    def test_empty_code(self):
        assert country_name(None) is None
        assert country_name("") is None


class TestGeoLocator:

    def test_lookup_known_address(self, fake_geo_reader):
        locator = GeoLocator(fake_geo_reader)
        assert locator.lookup("8.8.8.8") == pycountry.countries.get(alpha_2="US").name

    def test_lookup_unlisted_address(self, fake_geo_reader):
        locator = GeoLocator(fake_geo_reader)
        assert locator.lookup("192.0.2.1") == UNKNOWN_LOCATION

    def test_lookup_unmapped_country_code(self, fake_geo_reader):
        locator = GeoLocator(fake_geo_reader)
        assert locator.country_code("198.51.100.7") == "XZ"
        assert locator.lookup("198.51.100.7") == UNKNOWN_LOCATION

    def test_locator_without_reader(self):
        locator = GeoLocator(None)
        assert not locator.available
        assert locator.lookup("8.8.8.8") == UNKNOWN_LOCATION

    def test_from_missing_path(self, tmp_path):
        locator = GeoLocator.from_path(str(tmp_path / "missing.mmdb"))
        assert not locator.available
        assert locator.lookup("8.8.8.8") == UNKNOWN_LOCATION

    def test_close_releases_reader(self, fake_geo_reader):
        locator = GeoLocator(fake_geo_reader)
        locator.close()
        assert fake_geo_reader.closed
        assert not locator.available
