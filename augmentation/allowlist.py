"""
Domain allowlist for outbound retrieval.

Only hosts matching an entry may be fetched. Each entry carries its own
permitted extraction profiles and per-minute request ceiling.
"""

import logging
from typing import Iterable, Optional
from urllib.parse import urlparse

from .types import AllowedDomain, ExtractionProfile

logger = logging.getLogger(__name__)

P = ExtractionProfile

DEFAULT_ALLOWED_DOMAINS: tuple[AllowedDomain, ...] = (
    AllowedDomain(
        domain="amazon.com",
        allow_subdomains=True,
        extraction_profiles=frozenset({P.PRODUCT, P.REVIEW}),
        max_requests_per_minute=5,
    ),
    AllowedDomain(
        domain="bestbuy.com",
        allow_subdomains=True,
        extraction_profiles=frozenset({P.PRODUCT}),
        max_requests_per_minute=5,
    ),
    AllowedDomain(
        domain="support.apple.com",
        allow_subdomains=False,
        extraction_profiles=frozenset({P.ARTICLE}),
        max_requests_per_minute=10,
    ),
    AllowedDomain(
        domain="samsung.com",
        allow_subdomains=True,
        extraction_profiles=frozenset({P.PRODUCT, P.ARTICLE}),
        max_requests_per_minute=10,
    ),
    AllowedDomain(
        domain="wikihow.com",
        allow_subdomains=False,
        extraction_profiles=frozenset({P.ARTICLE}),
        max_requests_per_minute=10,
    ),
)


class Allowlist:
    """Immutable set of allowed domains."""

    def __init__(self, domains: Iterable[AllowedDomain] = DEFAULT_ALLOWED_DOMAINS):
        self._domains = tuple(domains)

    @property
    def domains(self) -> tuple[AllowedDomain, ...]:
        return self._domains

    def match_host(self, hostname: str) -> Optional[AllowedDomain]:
        """Return the first entry matching the hostname, if any."""
        if not hostname:
            return None
        for entry in self._domains:
            if entry.matches(hostname):
                return entry
        return None

    def match_url(self, url: str) -> Optional[AllowedDomain]:
        try:
            hostname = urlparse(url).hostname
        except ValueError:
            return None
        return self.match_host(hostname or "")

    def resolve_profile(
        self, entry: AllowedDomain, requested: ExtractionProfile
    ) -> ExtractionProfile:
        """Requested profile if the entry permits it, otherwise generic."""
        if requested != ExtractionProfile.GENERIC and not entry.permits(requested):
            logger.info(
                f"Profile '{requested.value}' not permitted for {entry.domain}, "
                "using generic extraction"
            )
            return ExtractionProfile.GENERIC
        return requested

    def __len__(self) -> int:
        return len(self._domains)

    def __iter__(self):
        return iter(self._domains)
