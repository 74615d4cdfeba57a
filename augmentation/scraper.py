"""
Web scraper for fetching allow-listed pages under a security policy.

Every fetch runs the same pipeline, each step short-circuiting to a
failed BrowsingResult:

1. URL validation and security screen
2. Allowlist match
3. Profile resolution against the domain's permitted profiles
4. Cache lookup on (url, profile)
5. Per-domain rate limit
6. HTTP GET with timeout and exponential-backoff retry
7. Sanitize, extract, cache

fetch() never raises.
"""

import dataclasses
import logging
import time
from typing import Callable, Optional
from urllib.parse import urlparse

import httpx

from utils.errors import (
    ErrorKind,
    ServiceError,
    classify_status,
    classify_transport_error,
)
from utils.retry import RetryPolicy, call_with_retry

from .allowlist import Allowlist
from .cache import ResponseCache
from .extractor import ContentExtractor
from .rate_limiter import DomainRateLimiter
from .security import log_security_event, sanitize_html, validate_url
from .types import REQUEST_TIMEOUT, BrowsingResult, ExtractionProfile

logger = logging.getLogger(__name__)

# Browser-like headers; many retail sites serve different markup to bots
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
}


class WebScraper:
    """
    Policy-enforcing page fetcher.

    All stateful collaborators are injected so one set of rate-limit
    windows and cache entries can be shared process-wide.
    """

    def __init__(
        self,
        allowlist: Optional[Allowlist] = None,
        rate_limiter: Optional[DomainRateLimiter] = None,
        cache: Optional[ResponseCache] = None,
        extractor: Optional[ContentExtractor] = None,
        client: Optional[httpx.Client] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = REQUEST_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the scraper.

        Args:
            allowlist: Domains that may be fetched
            rate_limiter: Shared per-domain window tracker
            cache: Shared response cache
            extractor: Content extractor
            client: httpx client (one is created and owned if omitted)
            retry_policy: Attempt budget and backoff base
            timeout: Per-request timeout in seconds
            sleep: Sleep function used between attempts
        """
        self.allowlist = allowlist if allowlist is not None else Allowlist()
        self.rate_limiter = (
            rate_limiter if rate_limiter is not None else DomainRateLimiter()
        )
        self.cache = cache if cache is not None else ResponseCache()
        self.extractor = extractor if extractor is not None else ContentExtractor()
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        self._sleep = sleep
        self._owns_client = client is None
        self._client = (
            client
            if client is not None
            else httpx.Client(timeout=httpx.Timeout(timeout), follow_redirects=True)
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def fetch(
        self,
        url: str,
        profile: ExtractionProfile | str = ExtractionProfile.GENERIC,
        cache_ttl: Optional[float] = None,
    ) -> BrowsingResult:
        """
        Fetch and extract a page.

        Args:
            url: Absolute http(s) URL
            profile: Requested extraction profile
            cache_ttl: Cache lifetime in seconds (domain default if None)

        Returns:
            BrowsingResult tagged "cache" or "live"
        """
        try:
            requested = ExtractionProfile.parse(profile)
        except ValueError:
            return BrowsingResult.failure(
                url, ErrorKind.VALIDATION, f"Unknown extraction profile: {profile}"
            )

        try:
            return self._fetch(url, requested, cache_ttl)
        except Exception as e:
            logger.error(f"Unexpected error fetching {url}: {e}")
            return BrowsingResult.failure(
                url, ErrorKind.UNKNOWN, f"Error browsing URL: {e}", requested
            )

    def _fetch(
        self,
        url: str,
        requested: ExtractionProfile,
        cache_ttl: Optional[float],
    ) -> BrowsingResult:
        try:
            scheme = urlparse(url).scheme.lower()
        except ValueError:
            scheme = ""
        if scheme not in ("http", "https"):
            return BrowsingResult.failure(
                url, ErrorKind.VALIDATION, "Invalid URL format", requested
            )

        check = validate_url(url)
        if not check.valid:
            details = "; ".join(check.issues)
            log_security_event("URL_REJECTED", url, details)
            return BrowsingResult.failure(
                url, ErrorKind.POLICY_DENIED, f"URL rejected: {details}", requested
            )

        entry = self.allowlist.match_url(url)
        if entry is None:
            logger.warning(f"Blocked fetch of {url}: domain not in allowlist")
            return BrowsingResult.failure(
                url,
                ErrorKind.POLICY_DENIED,
                "URL not in allowed domains list",
                requested,
            )

        effective = self.allowlist.resolve_profile(entry, requested)

        cached = self.cache.get(url, effective)
        if cached is not None:
            return dataclasses.replace(cached, source="cache")

        if not self.rate_limiter.acquire(entry.domain, entry.max_requests_per_minute):
            return BrowsingResult.failure(
                url,
                ErrorKind.RATE_LIMITED,
                f"Rate limit exceeded for {entry.domain}",
                effective,
            )

        try:
            html = call_with_retry(
                lambda: self._get(url),
                policy=self.retry_policy,
                sleep=self._sleep,
                label=f"GET {url}",
            )
        except ServiceError as e:
            logger.warning(f"Fetch failed for {url}: {e.describe()}")
            result = BrowsingResult.failure(url, e.kind, e.message, effective)
            result.metadata["status_code"] = e.status_code
            return result

        content, metadata = self.extractor.extract(sanitize_html(html), url, effective)
        result = BrowsingResult(
            success=True,
            url=url,
            content=content,
            metadata=metadata,
            source="live",
            profile=effective,
        )

        ttl = cache_ttl if cache_ttl is not None else entry.default_cache_ttl
        self.cache.put(url, effective, result, ttl)
        logger.info(f"Fetched {url} [{effective.value}] ({len(content)} chars)")
        return result

    def _get(self, url: str) -> str:
        """One attempt. Raises ServiceError classified at the point of failure."""
        logger.info(f"Fetching {url}")
        try:
            response = self._client.get(
                url, headers=BROWSER_HEADERS, timeout=self.timeout
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise classify_transport_error(e) from e

        if response.status_code >= 400:
            raise classify_status(response.status_code)
        return response.text

    def rate_limit_status(self) -> dict:
        return self.rate_limiter.status()

    def cache_stats(self) -> dict:
        return self.cache.stats()

    def clear_cache(self) -> None:
        self.cache.clear()
