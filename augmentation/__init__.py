"""
Augmentation module.

Fetches allow-listed web pages under a security policy and turns them
into retrieval text for provider requests.
"""

from .allowlist import DEFAULT_ALLOWED_DOMAINS, Allowlist
from .cache import ResponseCache
from .extractor import ContentExtractor
from .query_intent import RetrievalIntent, detect_retrieval_intent
from .rate_limiter import DomainRateLimiter
from .retrieval import RetrievalAugmentor, RetrievalOutcome
from .scraper import WebScraper
from .types import AllowedDomain, BrowsingResult, ExtractionProfile

__all__ = [
    "AllowedDomain",
    "Allowlist",
    "BrowsingResult",
    "ContentExtractor",
    "DEFAULT_ALLOWED_DOMAINS",
    "DomainRateLimiter",
    "ExtractionProfile",
    "ResponseCache",
    "RetrievalAugmentor",
    "RetrievalIntent",
    "RetrievalOutcome",
    "WebScraper",
    "detect_retrieval_intent",
]
