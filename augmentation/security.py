"""
URL screening and markup sanitizing for fetched pages.
"""

import logging
import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")

# Payload markers that have no business in a query string
SUSPICIOUS_QUERY_MARKERS = ("<script", "javascript:", "onerror=", "onclick=")

# Path fragments for areas a support bot must never browse
RESTRICTED_PATH_MARKERS = ("admin", "login", "account", "checkout")

_DANGEROUS_ELEMENTS = ("script", "iframe", "object", "embed", "form")
_BLOCK_PATTERNS = [
    re.compile(rf"<{tag}\b[^>]*>.*?</{tag}\s*>", re.IGNORECASE | re.DOTALL)
    for tag in _DANGEROUS_ELEMENTS
]
_SELF_CLOSING_PATTERNS = [
    re.compile(rf"<{tag}\b[^>]*/?>", re.IGNORECASE) for tag in ("embed",)
]
_EVENT_HANDLER_PATTERN = re.compile(
    r"""\s+on\w+\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+)""", re.IGNORECASE
)


@dataclass
class UrlCheck:
    """Outcome of screening a URL."""

    valid: bool
    issues: list[str] = field(default_factory=list)


def validate_url(url: str) -> UrlCheck:
    """
    Screen a URL for scheme, injection payloads and restricted paths.

    Args:
        url: Absolute URL to screen

    Returns:
        UrlCheck listing every issue found
    """
    issues = []
    try:
        parsed = urlparse(url)
    except ValueError:
        return UrlCheck(valid=False, issues=["Invalid URL format"])

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        issues.append(f"Invalid protocol: {parsed.scheme or '(none)'}")
    if not parsed.hostname:
        issues.append("Invalid URL format")

    query = parsed.query.lower()
    if any(marker in query for marker in SUSPICIOUS_QUERY_MARKERS):
        issues.append("Potential XSS detected in URL parameters")

    path = parsed.path.lower()
    if any(marker in path for marker in RESTRICTED_PATH_MARKERS):
        issues.append("URL path contains potentially restricted area")

    return UrlCheck(valid=not issues, issues=issues)


def sanitize_html(html: str) -> str:
    """Remove active elements and inline event handlers from markup."""
    sanitized = html
    for pattern in _BLOCK_PATTERNS:
        sanitized = pattern.sub("", sanitized)
    for pattern in _SELF_CLOSING_PATTERNS:
        sanitized = pattern.sub("", sanitized)
    return _EVENT_HANDLER_PATTERN.sub("", sanitized)


def log_security_event(event_type: str, url: str, details: str) -> None:
    logger.warning(f"[SECURITY] {event_type} - {url} - {details}")
