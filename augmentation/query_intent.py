"""
Retrieval intent detection for support chat messages.

Decides whether a user message asks the assistant to look something up
and, if so, whether it is a retailer product question (routed to the
Amazon lookup) or a general browsing question (routed to a fetch).

Patterns are tried in order and the first match wins. A message that
matches both the general and the retailer patterns is treated as a
retailer question.
"""

import re
from dataclasses import dataclass
from typing import Optional

# Trailing qualifiers that say where to look, not what to look for
_WHERE_SUFFIX = (
    r"(?:\s+on\s+the\s+internet|\s+online|\s+on\s+the\s+web"
    r"|\s+at\s+amazon|\s+on\s+amazon)?"
)
_END = r"[\s?.!]*$"

BROWSING_PATTERNS = [
    re.compile(
        r"\b(?:search(?:\s+for)?|look\s+up|find|check|browse|get\s+information\s+about|research)"
        r"\s+(.+?)" + _WHERE_SUFFIX + _END,
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:what\s+is|tell\s+me\s+about|find\s+information\s+on|can\s+you\s+find"
        r"|\bprice\s+of\b|\bdetails\s+for\b|\bspecs\s+for\b)"
        r"\s+(.+?)" + _WHERE_SUFFIX + _END,
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:compare\s+prices\s+for|how\s+much\s+does\s+it\s+cost|price\s+check)"
        r"\s+(.+?)" + _WHERE_SUFFIX + _END,
        re.IGNORECASE,
    ),
]

AMAZON_PATTERNS = [
    re.compile(
        r"(?:amazon\s+price\s+for|price\s+on\s+amazon\s+for|how\s+much\s+is|cost\s+of)"
        r"\s+(.+?)" + _WHERE_SUFFIX + _END,
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:search\s+amazon\s+for|find\s+on\s+amazon|lookup\s+on\s+amazon)\s+(.+?)" + _END,
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:amazon\s+reviews\s+for|ratings\s+on\s+amazon\s+for)\s+(.+?)" + _END,
        re.IGNORECASE,
    ),
]

RETAILER_KEYWORDS = ("amazon",)


@dataclass
class RetrievalIntent:
    """A detected lookup request."""

    query: str
    retailer: bool = False  # product lookup rather than a general fetch
    via_retailer_pattern: bool = False


def _first_capture(patterns: list[re.Pattern], text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def detect_browsing_request(message: str) -> Optional[str]:
    """Return the looked-up subject if the message is a browsing request."""
    return _first_capture(BROWSING_PATTERNS, message)


def is_retailer_query(message: str) -> bool:
    """True for retailer patterns or any mention of a retailer by name."""
    if any(pattern.search(message) for pattern in AMAZON_PATTERNS):
        return True
    lowered = message.lower()
    return any(keyword in lowered for keyword in RETAILER_KEYWORDS)


def extract_product_query(message: str) -> Optional[str]:
    """Product subject, preferring the retailer patterns' capture."""
    return _first_capture(AMAZON_PATTERNS, message) or detect_browsing_request(
        message
    )


def detect_retrieval_intent(message: str) -> Optional[RetrievalIntent]:
    """
    Classify a user message.

    Args:
        message: Raw user message

    Returns:
        RetrievalIntent, or None if no lookup was requested
    """
    if not message or not message.strip():
        return None

    retailer_capture = _first_capture(AMAZON_PATTERNS, message)
    browsing_capture = detect_browsing_request(message)
    if retailer_capture is None and browsing_capture is None:
        return None

    if retailer_capture is not None or is_retailer_query(message):
        return RetrievalIntent(
            query=retailer_capture or browsing_capture,
            retailer=True,
            via_retailer_pattern=retailer_capture is not None,
        )
    return RetrievalIntent(query=browsing_capture)
