"""
PinJournal Backend — Offline Geolocation
==========================================

What:  IPv4 → country display name, using a local MaxMind GeoLite2-Country
       database and the ISO 3166 table shipped with pycountry.
Why:   Location is a nice-to-have on an email record; a missing database or
       an unknown address must never fail the submission. Every miss is the
       fixed sentinel "Unknown".
"""

import logging
from pathlib import Path
from typing import Any, Optional

import geoip2.database
import geoip2.errors
import pycountry

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "Unknown"


def country_name(code: Optional[str]) -> Optional[str]:
    """ISO alpha-2 code → English short name, or None when the code is unknown."""
    if not code:
        return None
    country = pycountry.countries.get(alpha_2=code.upper())
    return country.name if country else None


class GeoLocator:
    """
    Wraps a geoip2 reader (anything with a `.country(ip)` method).

    A locator without a reader answers "Unknown" for everything; that is the
    state when GEOIP_DB_PATH does not exist.
    """

    def __init__(self, reader: Optional[Any] = None):
        self._reader = reader

    @classmethod
    def from_path(cls, path: str) -> "GeoLocator":
        db_path = Path(path)
        if not db_path.is_file():
            logger.warning("GeoIP database not found at %s; locations will be '%s'", path, UNKNOWN_LOCATION)
            return cls(None)
        logger.info("GeoIP database: %s", db_path.resolve())
        return cls(geoip2.database.Reader(str(db_path)))

    @property
    def available(self) -> bool:
        return self._reader is not None

    def country_code(self, ip_address: str) -> Optional[str]:
        if self._reader is None:
            return None
        try:
            response = self._reader.country(ip_address)
        except (geoip2.errors.AddressNotFoundError, ValueError):
            return None
        return response.country.iso_code

    def lookup(self, ip_address: str) -> str:
        code = self.country_code(ip_address)
        if code is None:
            return UNKNOWN_LOCATION
        return country_name(code) or UNKNOWN_LOCATION

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None
