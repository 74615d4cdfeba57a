"""
Retrieval for chat turns.

Turns a detected RetrievalIntent into text for the [RETRIEVED DATA]
section of the outbound provider request. General questions are routed
to an allow-listed site by keyword; retailer questions go through the
Amazon product lookup.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Optional
from urllib.parse import quote_plus

from .query_intent import RetrievalIntent
from .scraper import WebScraper
from .types import BrowsingResult, ExtractionProfile

if TYPE_CHECKING:
    from live.amazon import AmazonProduct, AmazonService, ProductSearchResult

logger = logging.getLogger(__name__)

EXCERPT_LIMIT = 1000  # characters of page text passed to the provider
GENERAL_CACHE_TTL = 1800  # 30 minutes


@dataclass
class RetrievalOutcome:
    """Text to splice into the request, and whether retrieval worked."""

    success: bool
    text: str
    url: str = ""
    source: str = "live"
    retailer: bool = False


def excerpt(content: str, limit: int = EXCERPT_LIMIT) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + "..."


def route_general_query(query: str) -> str:
    """Pick the allow-listed page most likely to answer a general query."""
    lowered = query.lower()
    encoded = quote_plus(query)
    if "apple" in lowered and "support" in lowered:
        return f"https://support.apple.com/search?q={encoded}"
    if "samsung" in lowered:
        return f"https://www.samsung.com/us/search/searchMain/?searchTerm={encoded}"
    if "how to" in lowered:
        # wikihow.com is allow-listed without subdomains
        return f"https://wikihow.com/wikiHowTo?search={encoded}"
    return f"https://www.amazon.com/s?k={encoded}"


def format_browsing_result(result: BrowsingResult) -> str:
    lines = [f"Source: {result.url}", ""]
    title = result.metadata.get("title")
    if title:
        lines += [f"Title: {title}", ""]
    if result.content:
        lines.append(f"Content Extract:\n{excerpt(result.content)}")
    else:
        lines.append("No content was extracted from this page.")
    if result.source == "cache":
        updated = result.metadata.get("extracted_at", "unknown")
        lines.append(
            f"\nNote: This information was retrieved from cache (last updated: {updated})"
        )
    return "\n".join(lines)


def format_product(product: "AmazonProduct", retrieved_at: datetime) -> str:
    lines = [
        "Amazon Product Information:",
        f"Title: {product.title}",
        f"Price: {product.price.formatted if product.price else 'Not available'}",
    ]
    if product.rating:
        lines.append(
            f"Rating: {product.rating.value} out of 5 ({product.rating.count} reviews)"
        )
    if product.features:
        lines.append("\nKey Features:")
        lines += [f"- {feature}" for feature in product.features]
    if product.description:
        lines.append(f"\nDescription: {excerpt(product.description)}")
    lines += [
        f"\nAmazon URL: {product.url}",
        f"Product ID (ASIN): {product.asin}",
        f"Information retrieved: {retrieved_at.isoformat()}",
    ]
    return "\n".join(lines)


def format_search_page(search: "ProductSearchResult") -> str:
    lines = [
        "Amazon Search Results:",
        f'Search query: "{search.query}"',
        f"Source: {search.url}",
        "",
    ]
    if search.page_title:
        lines += [f"Page title: {search.page_title}", ""]
    if search.excerpt:
        lines.append(f"Content extract:\n{excerpt(search.excerpt)}")
    else:
        lines.append("No product information could be extracted.")
    return "\n".join(lines)


class RetrievalAugmentor:
    """
    Runs retrieval for a chat turn. Never raises; failures become a note.

    Args:
        scraper: Fetch core for general queries
        amazon: Product lookup for retailer queries
        clock: Returns the instant stamped on product summaries
    """

    def __init__(
        self,
        scraper: WebScraper,
        amazon: "Optional[AmazonService]" = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.scraper = scraper
        if amazon is None:
            from live.amazon import AmazonService

            amazon = AmazonService(scraper)
        self.amazon = amazon
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def retrieve(self, intent: RetrievalIntent) -> RetrievalOutcome:
        if intent.retailer:
            return self._retrieve_product(intent.query)
        return self._retrieve_general(intent.query)

    def _retrieve_general(self, query: str) -> RetrievalOutcome:
        url = route_general_query(query)
        logger.info(f"Browsing {url} for '{query}'")
        result = self.scraper.fetch(
            url, ExtractionProfile.GENERIC, cache_ttl=GENERAL_CACHE_TTL
        )
        if not result.success:
            return RetrievalOutcome(
                success=False,
                text=f"Failed to retrieve information: {result.error}",
                url=url,
            )
        return RetrievalOutcome(
            success=True,
            text=format_browsing_result(result),
            url=url,
            source=result.source,
        )

    def _retrieve_product(self, query: str) -> RetrievalOutcome:
        logger.info(f"Searching Amazon for '{query}'")
        search = self.amazon.search_products(query, max_results=1)
        if not search.success:
            return RetrievalOutcome(
                success=False,
                text=(
                    f'I tried searching for "{query}" on Amazon but encountered '
                    f"an error: {search.error or 'Unknown error'}"
                ),
                url=search.url,
                retailer=True,
            )
        if search.products:
            text = format_product(search.products[0], self._clock())
        else:
            text = format_search_page(search)
        return RetrievalOutcome(
            success=True,
            text=text,
            url=search.url,
            source=search.source,
            retailer=True,
        )
