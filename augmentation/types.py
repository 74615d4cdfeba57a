"""
Shared types for the web fetch core.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from utils.errors import ErrorKind

DEFAULT_CACHE_TIME = 3600  # 1 hour in seconds
REQUEST_TIMEOUT = 15.0  # seconds
RATE_LIMIT_WINDOW = 60.0  # seconds


class ExtractionProfile(str, Enum):
    """How raw page markup is reduced to text and metadata."""

    GENERIC = "generic"
    PRODUCT = "product"
    ARTICLE = "article"
    REVIEW = "review"

    @classmethod
    def parse(cls, value: "str | ExtractionProfile | None") -> "ExtractionProfile":
        """Lenient lookup; ``full`` is accepted as an alias of generic."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.GENERIC
        normalized = str(value).strip().lower()
        if normalized == "full":
            return cls.GENERIC
        return cls(normalized)


@dataclass(frozen=True)
class AllowedDomain:
    """Allowlist policy entry."""

    domain: str
    allow_subdomains: bool
    extraction_profiles: frozenset[ExtractionProfile]
    max_requests_per_minute: int
    default_cache_ttl: int = DEFAULT_CACHE_TIME

    def matches(self, hostname: str) -> bool:
        hostname = hostname.lower().rstrip(".")
        if hostname == self.domain:
            return True
        return self.allow_subdomains and hostname.endswith("." + self.domain)

    def permits(self, profile: ExtractionProfile) -> bool:
        return profile in self.extraction_profiles

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "allow_subdomains": self.allow_subdomains,
            "extraction_profiles": sorted(p.value for p in self.extraction_profiles),
            "max_requests_per_minute": self.max_requests_per_minute,
            "default_cache_ttl": self.default_cache_ttl,
        }


@dataclass
class BrowsingResult:
    """Outcome of a fetch. Failures are values, never exceptions."""

    success: bool
    url: str
    content: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    source: str = "live"  # "cache" or "live"
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    profile: ExtractionProfile = ExtractionProfile.GENERIC

    @classmethod
    def failure(
        cls,
        url: str,
        kind: ErrorKind,
        error: str,
        profile: ExtractionProfile = ExtractionProfile.GENERIC,
    ) -> "BrowsingResult":
        return cls(
            success=False,
            url=url,
            error=error,
            error_kind=kind,
            profile=profile,
        )

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "url": self.url,
            "content": self.content,
            "metadata": self.metadata,
            "source": self.source,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "profile": self.profile.value,
        }
