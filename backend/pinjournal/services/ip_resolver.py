"""
PinJournal Backend — Public IP Resolver
=========================================

What:  Works out the visitor's public IPv4 address for an email submission.
Why:   Behind a proxy or in local development the socket address is private
       (10.x, 192.168.x, 127.x). Those addresses geolocate to nothing, so
       the resolver asks a "what is my IP" service instead.
How:   1. First token of X-Forwarded-For, else the platform proxy header,
          else the socket address
       2. Strip an IPv4-mapped IPv6 prefix (::ffff:)
       3. Malformed or private → GET the lookup service (bounded timeout,
          no retry) and use its answer
       4. Otherwise return the candidate unchanged

Failure: any lookup problem (network, timeout, non-2xx, bad JSON) becomes
IpResolutionError; the capture endpoint answers it with a generic 500.
"""

import logging
from typing import Mapping, Optional

import httpx

from pinjournal.exceptions import IpResolutionError
from pinjournal.validation import (
    is_private_ipv4,
    is_valid_ipv4,
    strip_ipv4_mapped_prefix,
)

logger = logging.getLogger(__name__)

FORWARDED_FOR_HEADER = "x-forwarded-for"
PLATFORM_PROXY_HEADER = "x-vercel-proxied-for"
LOOPBACK = "127.0.0.1"


def extract_candidate_ip(headers: Mapping[str, str], client_host: Optional[str]) -> str:
    """
    Pick the address the request claims to come from.

    Header lookups are lowercase; Starlette's Headers is case-insensitive and
    plain dicts in tests use lowercase keys.
    """
    forwarded = headers.get(FORWARDED_FOR_HEADER)
    if forwarded:
        candidate = forwarded.split(",")[0].strip()
    else:
        candidate = headers.get(PLATFORM_PROXY_HEADER) or client_host or LOOPBACK
    return strip_ipv4_mapped_prefix(candidate)


def needs_public_lookup(address: str) -> bool:
    return not is_valid_ipv4(address) or is_private_ipv4(address)


class PublicIpResolver:
    """
    Resolves a request to a public IPv4, falling back to an HTTP lookup.

    The httpx client is created lazily and reused across requests; the app
    lifespan calls `aclose()` on shutdown. Tests pass a client built on
    `httpx.MockTransport`.
    """

    def __init__(
        self,
        lookup_url: str,
        timeout: float = 3.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.lookup_url = lookup_url
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def resolve(self, headers: Mapping[str, str], client_host: Optional[str]) -> str:
        candidate = extract_candidate_ip(headers, client_host)
        if not needs_public_lookup(candidate):
            return candidate

        logger.debug("Candidate address %r is not public; asking lookup service", candidate)
        return await self.lookup_public_ip()

    async def lookup_public_ip(self) -> str:
        """
        GET the lookup service and return the `ip` field of its JSON body.

        Raises:
            IpResolutionError: on any transport error, timeout, non-2xx
                status or a body without an `ip` string.
        """
        try:
            response = await self.client.get(self.lookup_url, timeout=self.timeout)
            response.raise_for_status()
            ip = response.json()["ip"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.error("Error fetching public IP: %s", str(e))
            raise IpResolutionError(context={"error_type": type(e).__name__})

        if not isinstance(ip, str):
            logger.error("Public IP lookup returned a non-string ip: %r", ip)
            raise IpResolutionError(context={"error_type": "InvalidPayload"})
        return ip

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
