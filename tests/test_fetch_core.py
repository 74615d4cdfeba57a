"""
Unit tests for the web fetch core: rate limiter, response cache and the
WebScraper pipeline.
"""

import threading

import httpx
import pytest

from augmentation import (
    AllowedDomain,
    Allowlist,
    BrowsingResult,
    DomainRateLimiter,
    ExtractionProfile,
    ResponseCache,
    WebScraper,
)
from utils.errors import ErrorKind

from conftest import AMAZON_ASIN, AMAZON_PRODUCT_PAGE, RecordingHandler

PRODUCT_URL = f"https://www.amazon.com/dp/{AMAZON_ASIN}"
ARTICLE_HTML = "<html><head><title>Reset</title></head><body><main>Hold the button.</main></body></html>"


def ok(text=ARTICLE_HTML):
    return lambda request: httpx.Response(200, text=text)


def scripted(*statuses, text=ARTICLE_HTML):
    """Responder returning the given statuses in order, then 200s."""
    remaining = list(statuses)

    def responder(request):
        status = remaining.pop(0) if remaining else 200
        return httpx.Response(status, text=text if status == 200 else "error")

    return responder


class TestDomainRateLimiter:
    """Tests for the sliding-window limiter."""

    def test_ceiling_plus_one_rejected(self, clock):
        limiter = DomainRateLimiter(clock=clock)
        for _ in range(5):
            assert limiter.acquire("amazon.com", 5) is True
            clock.advance(1)
        assert limiter.acquire("amazon.com", 5) is False

    def test_window_slides_past_first_request(self, clock):
        limiter = DomainRateLimiter(clock=clock)
        for _ in range(5):
            limiter.acquire("amazon.com", 5)
            clock.advance(1)
        assert limiter.acquire("amazon.com", 5) is False

        # First request was at t=0; five seconds have passed already
        clock.advance(55.5)
        assert limiter.acquire("amazon.com", 5) is True
        assert limiter.acquire("amazon.com", 5) is False

    def test_domains_tracked_independently(self, clock):
        limiter = DomainRateLimiter(clock=clock)
        assert limiter.acquire("amazon.com", 1) is True
        assert limiter.acquire("amazon.com", 1) is False
        assert limiter.acquire("wikihow.com", 1) is True

    def test_can_make_request_does_not_record(self, clock):
        limiter = DomainRateLimiter(clock=clock)
        assert limiter.can_make_request("samsung.com", 1) is True
        assert limiter.can_make_request("samsung.com", 1) is True
        limiter.record_request("samsung.com")
        assert limiter.can_make_request("samsung.com", 1) is False

    def test_status(self, clock):
        limiter = DomainRateLimiter(clock=clock)
        limiter.acquire("amazon.com", 5)
        limiter.acquire("amazon.com", 5)
        assert limiter.status() == {"amazon.com": {"count": 2, "limit": 5}}

        clock.advance(61)
        assert limiter.status() == {"amazon.com": {"count": 0, "limit": 5}}

    def test_concurrent_acquire_admits_exactly_ceiling(self, clock):
        limiter = DomainRateLimiter(clock=clock)
        barrier = threading.Barrier(20)
        admitted = []

        def worker():
            barrier.wait()
            admitted.append(limiter.acquire("amazon.com", 5))

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert admitted.count(True) == 5
        assert admitted.count(False) == 15
        assert limiter.status()["amazon.com"]["count"] == 5


class TestResponseCache:
    """Tests for the TTL cache."""

    def result(self, url="https://wikihow.com/x"):
        return BrowsingResult(success=True, url=url, content="text")

    def test_hit_within_ttl(self, clock):
        cache = ResponseCache(clock=clock)
        cache.put("https://wikihow.com/x", ExtractionProfile.ARTICLE, self.result(), 60)
        clock.advance(59)
        assert cache.get("https://wikihow.com/x", ExtractionProfile.ARTICLE) is not None

    def test_expired_entry_evicted_on_lookup(self, clock):
        cache = ResponseCache(clock=clock)
        cache.put("https://wikihow.com/x", ExtractionProfile.ARTICLE, self.result(), 60)
        clock.advance(60)
        assert cache.get("https://wikihow.com/x", ExtractionProfile.ARTICLE) is None
        assert len(cache) == 0

    def test_keyed_by_profile(self, clock):
        cache = ResponseCache(clock=clock)
        cache.put("https://wikihow.com/x", ExtractionProfile.ARTICLE, self.result(), 60)
        assert cache.get("https://wikihow.com/x", ExtractionProfile.GENERIC) is None

    def test_clear_and_stats(self, clock):
        cache = ResponseCache(clock=clock)
        cache.put("https://a.example/1", ExtractionProfile.GENERIC, self.result(), 60)
        cache.put("https://a.example/2", ExtractionProfile.GENERIC, self.result(), 10)
        clock.advance(30)
        assert cache.stats() == {"size": 1, "keys": ["https://a.example/1:generic"]}

        cache.clear()
        assert cache.stats()["size"] == 0

    def test_returned_result_is_a_copy(self, clock):
        cache = ResponseCache(clock=clock)
        original = self.result()
        original.metadata["title"] = "Reset"
        cache.put("https://wikihow.com/x", ExtractionProfile.ARTICLE, original, 60)
        original.metadata["title"] = "changed after put"

        hit = cache.get("https://wikihow.com/x", ExtractionProfile.ARTICLE)
        hit.metadata["title"] = "changed by caller"

        again = cache.get("https://wikihow.com/x", ExtractionProfile.ARTICLE)
        assert again.metadata["title"] == "Reset"

    def test_concurrent_puts_and_gets(self, clock):
        cache = ResponseCache(clock=clock)
        barrier = threading.Barrier(8)
        misses = []

        def worker(n):
            barrier.wait()
            for i in range(50):
                url = f"https://a.example/{n}/{i}"
                cache.put(url, ExtractionProfile.GENERIC, self.result(url), 60)
                hit = cache.get(url, ExtractionProfile.GENERIC)
                if hit is None or hit.url != url:
                    misses.append(url)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert misses == []
        assert len(cache) == 400


class TestWebScraperPolicy:
    """Validation, allowlist and rate-limit steps of the fetch pipeline."""

    def test_non_http_scheme_rejected(self, make_scraper):
        scraper, handler = make_scraper(ok())
        result = scraper.fetch("ftp://www.amazon.com/file")
        assert result.success is False
        assert result.error_kind == ErrorKind.VALIDATION
        assert handler.requests == []

    def test_domain_not_in_allowlist(self, make_scraper):
        scraper, handler = make_scraper(ok())
        result = scraper.fetch("https://evil.example.com/page")
        assert result.error_kind == ErrorKind.POLICY_DENIED
        assert result.error == "URL not in allowed domains list"
        assert handler.requests == []

    def test_empty_allowlist_denies_everything(self, make_scraper):
        scraper, handler = make_scraper(ok(), allowlist=Allowlist([]))
        result = scraper.fetch("https://wikihow.com/Reset")
        assert len(scraper.allowlist) == 0
        assert result.error_kind == ErrorKind.POLICY_DENIED
        assert handler.requests == []

    def test_lookalike_domain_rejected(self, make_scraper):
        scraper, _ = make_scraper(ok())
        result = scraper.fetch("https://notamazon.com/dp/X")
        assert result.error_kind == ErrorKind.POLICY_DENIED

    def test_exact_domain_does_not_allow_subdomains(self, make_scraper):
        scraper, _ = make_scraper(ok())
        assert scraper.fetch("https://support.apple.com/kb/1").success is True
        result = scraper.fetch("https://www.support.apple.com/kb/1")
        assert result.error_kind == ErrorKind.POLICY_DENIED

    def test_restricted_path_rejected_and_logged(self, make_scraper, caplog):
        scraper, handler = make_scraper(ok())
        with caplog.at_level("WARNING"):
            result = scraper.fetch("https://www.amazon.com/gp/checkout/cart")
        assert result.error_kind == ErrorKind.POLICY_DENIED
        assert handler.requests == []
        assert "[SECURITY] URL_REJECTED - https://www.amazon.com/gp/checkout/cart" in caplog.text

    def test_script_in_query_rejected(self, make_scraper):
        scraper, _ = make_scraper(ok())
        result = scraper.fetch("https://wikihow.com/x?q=<script>alert(1)</script>")
        assert result.error_kind == ErrorKind.POLICY_DENIED

    def test_unknown_profile_is_validation_error(self, make_scraper):
        scraper, _ = make_scraper(ok())
        result = scraper.fetch("https://wikihow.com/x", profile="screenshot")
        assert result.error_kind == ErrorKind.VALIDATION

    def test_unpermitted_profile_falls_back_to_generic(self, make_scraper):
        scraper, _ = make_scraper(ok())
        result = scraper.fetch("https://wikihow.com/Reset", ExtractionProfile.PRODUCT)
        assert result.success is True
        assert result.profile == ExtractionProfile.GENERIC
        assert result.content == "Hold the button."

    def test_permitted_profile_used(self, make_scraper):
        scraper, _ = make_scraper(ok())
        result = scraper.fetch("https://wikihow.com/Reset", ExtractionProfile.ARTICLE)
        assert result.profile == ExtractionProfile.ARTICLE

    def test_rate_limited_after_ceiling(self, make_scraper):
        allowlist = Allowlist(
            [
                AllowedDomain(
                    domain="wikihow.com",
                    allow_subdomains=True,
                    extraction_profiles=frozenset({ExtractionProfile.ARTICLE}),
                    max_requests_per_minute=2,
                )
            ]
        )
        scraper, handler = make_scraper(ok(), allowlist=allowlist)
        assert scraper.fetch("https://wikihow.com/a").success
        assert scraper.fetch("https://wikihow.com/b").success
        result = scraper.fetch("https://wikihow.com/c")
        assert result.error_kind == ErrorKind.RATE_LIMITED
        assert len(handler.requests) == 2
        assert scraper.rate_limit_status()["wikihow.com"] == {"count": 2, "limit": 2}


class TestWebScraperCache:
    """Cache step of the fetch pipeline."""

    def test_second_fetch_served_from_cache(self, make_scraper):
        scraper, handler = make_scraper(ok())
        first = scraper.fetch("https://wikihow.com/Reset", ExtractionProfile.ARTICLE)
        second = scraper.fetch("https://wikihow.com/Reset", ExtractionProfile.ARTICLE)

        assert first.source == "live"
        assert second.source == "cache"
        assert second.content == first.content
        assert len(handler.requests) == 1

    def test_cache_hit_does_not_consume_rate_limit(self, make_scraper):
        scraper, _ = make_scraper(ok())
        for _ in range(3):
            scraper.fetch("https://wikihow.com/Reset")
        assert scraper.rate_limit_status()["wikihow.com"]["count"] == 1

    def test_live_after_expiry(self, make_scraper, clock):
        scraper, handler = make_scraper(ok())
        scraper.fetch("https://wikihow.com/Reset", cache_ttl=60)
        clock.advance(61)
        result = scraper.fetch("https://wikihow.com/Reset", cache_ttl=60)
        assert result.source == "live"
        assert len(handler.requests) == 2

    def test_domain_default_ttl(self, make_scraper, clock):
        scraper, handler = make_scraper(ok())
        scraper.fetch("https://wikihow.com/Reset")
        clock.advance(3599)
        assert scraper.fetch("https://wikihow.com/Reset").source == "cache"
        clock.advance(1)
        assert scraper.fetch("https://wikihow.com/Reset").source == "live"

    def test_failures_not_cached(self, make_scraper):
        scraper, handler = make_scraper(scripted(404))
        assert scraper.fetch("https://wikihow.com/x").success is False
        assert scraper.fetch("https://wikihow.com/x").success is True
        assert len(handler.requests) == 2

    def test_clear_cache(self, make_scraper):
        scraper, handler = make_scraper(ok())
        scraper.fetch("https://wikihow.com/Reset")
        scraper.clear_cache()
        assert scraper.fetch("https://wikihow.com/Reset").source == "live"
        assert scraper.cache_stats()["size"] == 1

    def test_empty_shared_cache_is_kept(self, clock):
        shared = ResponseCache(clock=clock)
        handler = RecordingHandler(ok())
        client = httpx.Client(transport=httpx.MockTransport(handler))
        first = WebScraper(cache=shared, client=client)
        second = WebScraper(cache=shared, client=client)

        assert first.cache is shared
        assert second.cache is shared
        assert first.fetch("https://wikihow.com/Reset").source == "live"
        assert second.fetch("https://wikihow.com/Reset").source == "cache"
        assert len(handler.requests) == 1
        client.close()

    def test_mutating_a_result_does_not_leak_into_cache(self, make_scraper):
        scraper, _ = make_scraper(ok())
        live = scraper.fetch("https://wikihow.com/Reset")
        live.metadata["title"] = "edited"
        hit = scraper.fetch("https://wikihow.com/Reset")
        hit.metadata.clear()

        again = scraper.fetch("https://wikihow.com/Reset")
        assert again.source == "cache"
        assert again.metadata["title"] == "Reset"


class TestWebScraperRetry:
    """Network step of the fetch pipeline."""

    def test_recovers_after_two_503s(self, make_scraper, sleeps):
        scraper, handler = make_scraper(scripted(503, 503))
        result = scraper.fetch("https://wikihow.com/Reset")

        assert result.success is True
        assert result.source == "live"
        assert len(handler.requests) == 3
        assert sleeps == [1.0, 2.0]

    def test_exhausted_retries_return_last_error(self, make_scraper, sleeps):
        scraper, handler = make_scraper(scripted(503, 502, 500))
        result = scraper.fetch("https://wikihow.com/Reset")

        assert result.success is False
        assert result.error_kind == ErrorKind.HTTP_ERROR
        assert result.metadata["status_code"] == 500
        assert len(handler.requests) == 3
        assert sleeps == [1.0, 2.0]

    def test_429_is_retried(self, make_scraper, sleeps):
        scraper, handler = make_scraper(scripted(429))
        assert scraper.fetch("https://wikihow.com/Reset").success is True
        assert sleeps == [1.0]

    @pytest.mark.parametrize("status", [400, 403, 404])
    def test_client_errors_fail_fast(self, make_scraper, sleeps, status):
        scraper, handler = make_scraper(scripted(status))
        result = scraper.fetch("https://wikihow.com/Reset")
        assert result.success is False
        assert len(handler.requests) == 1
        assert sleeps == []

    def test_timeout_is_retried_and_classified(self, make_scraper, sleeps):
        def responder(request):
            raise httpx.ReadTimeout("timed out", request=request)

        scraper, handler = make_scraper(responder)
        result = scraper.fetch("https://wikihow.com/Reset")
        assert result.error_kind == ErrorKind.TIMEOUT
        assert len(handler.requests) == 3
        assert sleeps == [1.0, 2.0]

    def test_network_error_recovers(self, make_scraper, sleeps):
        calls = []

        def responder(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, text=ARTICLE_HTML)

        scraper, _ = make_scraper(responder)
        assert scraper.fetch("https://wikihow.com/Reset").success is True
        assert sleeps == [1.0]


class TestWebScraperExtraction:
    """Extraction step of the fetch pipeline."""

    def test_markup_sanitized_before_extraction(self, make_scraper):
        scraper, _ = make_scraper(ok(AMAZON_PRODUCT_PAGE))
        result = scraper.fetch(PRODUCT_URL, ExtractionProfile.PRODUCT)
        assert result.success is True
        assert "tracking" not in result.content
        assert result.metadata["price"] == "$348.00"

    def test_browser_headers_sent(self, make_scraper):
        scraper, handler = make_scraper(ok())
        scraper.fetch("https://wikihow.com/Reset")
        headers = handler.requests[0].headers
        assert "Mozilla/5.0" in headers["User-Agent"]
        assert headers["Accept-Language"] == "en-US,en;q=0.9"
