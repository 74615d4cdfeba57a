"""
Best-effort content extraction from fetched markup.

Reduces a page to a text excerpt plus a metadata dict according to an
extraction profile. Selectors are tried in priority order; a missing
container for a non-generic profile yields a short placeholder instead
of an error.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from .types import ExtractionProfile

logger = logging.getLogger(__name__)

NON_CONTENT_TAGS = ["script", "style", "meta", "link", "noscript"]
ARTICLE_NOISE = "nav, .nav, .navigation, .ads, .advertisement, .comments, aside"

PRICE_SELECTORS = (
    '[itemprop="price"]',
    ".price",
    ".product-price",
    '[class*="price"]',
)
IMAGE_SELECTORS = (
    '[itemprop="image"]',
    ".product-image img",
    '[id*="main-image"]',
)
SPEC_TABLE_SELECTORS = (
    ".product-specs",
    ".specifications",
    'table[class*="spec"]',
)
DESCRIPTION_SELECTORS = (
    ".product-description",
    '[id*="description"]',
    '[class*="description"]',
)
ARTICLE_SELECTORS = ("article", ".article", ".post", '[role="main"]', "main")
REVIEW_SELECTORS = (".reviews", "#reviews", '[id*="review"]', '[class*="review"]')
RATING_SELECTORS = ('[itemprop="ratingValue"]', '[class*="rating"]')
REVIEW_COUNT_SELECTORS = ('[itemprop="reviewCount"]', '[class*="review-count"]')

PLACEHOLDERS = {
    ExtractionProfile.PRODUCT: "Product information could not be extracted precisely",
    ExtractionProfile.ARTICLE: "Article content could not be extracted precisely",
    ExtractionProfile.REVIEW: "Review content could not be extracted precisely",
}

_ASIN_ATTR_PATTERN = re.compile(r"^[A-Z0-9]{10}$")


def _text(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return node.get_text(" ", strip=True)


def _first(soup: BeautifulSoup | Tag, selectors: tuple[str, ...]) -> Optional[Tag]:
    for selector in selectors:
        node = soup.select_one(selector)
        if node is not None:
            return node
    return None


def _meta_content(soup: BeautifulSoup, name: str) -> str:
    node = soup.find("meta", attrs={"name": name}) or soup.find(
        "meta", attrs={"property": f"og:{name}"}
    )
    if node is None:
        return ""
    return (node.get("content") or "").strip()


def _host(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def _on_site(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


class ContentExtractor:
    """
    Profile-driven text and metadata extraction.

    Args:
        clock: Returns the current instant for the extraction timestamp
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def extract(
        self,
        html: str,
        url: str,
        profile: ExtractionProfile | str = ExtractionProfile.GENERIC,
    ) -> tuple[str, dict[str, Any]]:
        """
        Extract content from a page.

        Args:
            html: Raw (already sanitized) markup
            url: Page URL, used for site-specific overrides
            profile: Extraction profile

        Returns:
            Tuple of (content, metadata)
        """
        profile = ExtractionProfile.parse(profile)
        soup = BeautifulSoup(html or "", "html.parser")

        canonical = soup.find("link", rel="canonical")
        metadata: dict[str, Any] = {
            "title": _text(soup.title) if soup.title else "",
            "description": _meta_content(soup, "description"),
            "url": (canonical.get("href") if canonical else None) or url,
            "extracted_at": self._clock().isoformat(),
        }

        if profile == ExtractionProfile.PRODUCT:
            content = self._extract_product(soup, url, metadata)
        elif profile == ExtractionProfile.ARTICLE:
            content = self._extract_article(soup)
        elif profile == ExtractionProfile.REVIEW:
            content = self._extract_review(soup, metadata)
        else:
            content = self._extract_generic(soup)

        logger.debug(f"Extracted {len(content)} chars from {url} [{profile.value}]")
        return content, metadata

    def _extract_generic(self, soup: BeautifulSoup) -> str:
        for node in soup(NON_CONTENT_TAGS):
            node.decompose()
        body = soup.body or soup
        return _text(body)

    def _extract_article(self, soup: BeautifulSoup) -> str:
        container = _first(soup, ARTICLE_SELECTORS)
        if container is None:
            return PLACEHOLDERS[ExtractionProfile.ARTICLE]
        for node in container.select(ARTICLE_NOISE):
            node.decompose()
        return _text(container) or PLACEHOLDERS[ExtractionProfile.ARTICLE]

    def _extract_review(self, soup: BeautifulSoup, metadata: dict) -> str:
        container = _first(soup, REVIEW_SELECTORS)
        if container is None:
            return PLACEHOLDERS[ExtractionProfile.REVIEW]
        metadata["rating"] = _text(_first(soup, RATING_SELECTORS))
        metadata["review_count"] = _text(_first(soup, REVIEW_COUNT_SELECTORS))
        return _text(container) or PLACEHOLDERS[ExtractionProfile.REVIEW]

    def _extract_product(self, soup: BeautifulSoup, url: str, metadata: dict) -> str:
        metadata["price"] = _text(_first(soup, PRICE_SELECTORS))
        image = _first(soup, IMAGE_SELECTORS)
        metadata["image_url"] = (image.get("src") or "") if image else ""
        metadata["specifications"] = self._spec_table(soup)

        host = _host(url)
        if _on_site(host, "amazon.com"):
            return self._extract_amazon(soup, metadata)
        if _on_site(host, "bestbuy.com"):
            return self._extract_bestbuy(soup)

        description = _first(soup, DESCRIPTION_SELECTORS)
        if description is not None:
            return _text(description) or PLACEHOLDERS[ExtractionProfile.PRODUCT]
        return PLACEHOLDERS[ExtractionProfile.PRODUCT]

    def _spec_table(self, soup: BeautifulSoup) -> dict[str, str]:
        details: dict[str, str] = {}
        table = _first(soup, SPEC_TABLE_SELECTORS)
        if table is None:
            return details
        for row in table.select("tr"):
            cells = row.find_all(["th", "td"])
            if len(cells) < 2:
                continue
            label, value = _text(cells[0]), _text(cells[-1])
            if label:
                details[label] = value
        return details

    def _extract_amazon(self, soup: BeautifulSoup, metadata: dict) -> str:
        title = _first(soup, ("#productTitle", ".product-title"))
        features = _first(soup, ("#feature-bullets", ".feature-bullets"))
        description = _first(soup, ("#productDescription", ".product-description"))

        metadata["product_title"] = _text(title)
        amazon_price = _text(soup.select_one(".a-price .a-offscreen"))
        if amazon_price:
            metadata["price"] = amazon_price
        landing = soup.select_one("#landingImage")
        if landing is not None:
            metadata["image_url"] = landing.get("data-old-hires") or landing.get("src") or ""
        rating = soup.select_one("#acrPopover")
        if rating is not None:
            metadata["rating"] = (rating.get("title") or _text(rating)).strip()
        metadata["review_count"] = _text(soup.select_one("#acrCustomerReviewText"))
        metadata["features"] = [
            _text(li) for li in soup.select("#feature-bullets li") if _text(li)
        ]
        details_table = soup.select_one("#productDetails_techSpec_section_1, #prodDetails table")
        if details_table is not None:
            for row in details_table.select("tr"):
                cells = row.find_all(["th", "td"])
                if len(cells) >= 2 and _text(cells[0]):
                    metadata["specifications"][_text(cells[0])] = _text(cells[-1])

        # Search result pages list products as data-asin containers
        asins = []
        for node in soup.select("[data-asin]"):
            asin = (node.get("data-asin") or "").strip().upper()
            if _ASIN_ATTR_PATTERN.match(asin) and asin not in asins:
                asins.append(asin)
        metadata["asins"] = asins

        parts = []
        if title is not None:
            parts.append(_text(title))
        if features is not None:
            parts.append("Key Features:\n" + _text(features))
        if description is not None:
            parts.append("Description:\n" + _text(description))
        return "\n\n".join(parts) or "Amazon product information extracted"

    def _extract_bestbuy(self, soup: BeautifulSoup) -> str:
        title = _first(soup, (".sku-title", ".heading-5"))
        description = _first(soup, (".product-description", ".pd-description"))

        parts = []
        if title is not None:
            parts.append(_text(title))
        if description is not None:
            parts.append("Description:\n" + _text(description))
        return "\n\n".join(parts) or "Best Buy product information extracted"
