"""
Amazon product lookup built on the web fetch core.

Search pages and product pages are fetched through WebScraper, so the
allowlist, rate limits and URL cache all apply. Resolved products are
additionally held in a per-ASIN cache.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional
from urllib.parse import urlencode

from augmentation.scraper import WebScraper
from augmentation.types import ExtractionProfile
from utils.errors import ErrorKind

from .product_cache import ProductCache

logger = logging.getLogger(__name__)

AMAZON_BASE_URL = "https://www.amazon.com"
# One search page plus this many detail pages fits amazon.com's 5/min ceiling
DEFAULT_MAX_RESULTS = 4
SEARCH_CACHE_TTL = 1800  # 30 minutes
PRODUCT_PAGE_CACHE_TTL = 3600  # 1 hour

ASIN_PATTERN = re.compile(r"^[A-Z0-9]{10}$")

CURRENCY_SYMBOLS = {
    "$": "USD",
    "£": "GBP",
    "€": "EUR",
    "¥": "JPY",
    "₹": "INR",
}

_AMOUNT_PATTERN = re.compile(r"\d[\d,]*(?:\.\d+)?")
_RATING_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*out\s+of\s+5", re.IGNORECASE)


@dataclass
class Price:
    amount: float
    currency: str
    formatted: str


@dataclass
class Rating:
    value: float
    count: int


@dataclass
class AmazonProduct:
    """A product resolved from its Amazon detail page."""

    asin: str
    title: str
    description: str
    url: str
    price: Optional[Price] = None
    images: list[str] = field(default_factory=list)
    rating: Optional[Rating] = None
    features: list[str] = field(default_factory=list)
    specifications: dict[str, str] = field(default_factory=dict)
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "asin": self.asin,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "price": (
                {
                    "amount": self.price.amount,
                    "currency": self.price.currency,
                    "formatted": self.price.formatted,
                }
                if self.price
                else None
            ),
            "images": self.images,
            "rating": (
                {"value": self.rating.value, "count": self.rating.count}
                if self.rating
                else None
            ),
            "features": self.features,
            "specifications": self.specifications,
            "last_updated": self.last_updated.isoformat(),
        }


@dataclass
class ProductSearchResult:
    success: bool
    query: str
    url: str = ""
    products: list[AmazonProduct] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)  # listed ASINs that failed
    total_results: int = 0
    page_title: str = ""
    excerpt: str = ""  # search page text, for when no product resolved
    source: str = "live"
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


@dataclass
class ProductDetailsResult:
    success: bool
    product: Optional[AmazonProduct] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


@dataclass
class PriceComparison:
    """Our price against Amazon's. ``is_cheaper`` means ours is lower."""

    success: bool
    amazon_price: Optional[float] = None
    price_difference: Optional[float] = None
    percentage_difference: Optional[float] = None
    is_cheaper: Optional[bool] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


def build_search_url(keywords: str, category: Optional[str] = None) -> str:
    params = {"k": keywords}
    if category:
        params["i"] = category
    return f"{AMAZON_BASE_URL}/s?{urlencode(params)}"


def build_product_url(asin: str) -> str:
    return f"{AMAZON_BASE_URL}/dp/{asin}"


def normalize_asin(asin: str) -> Optional[str]:
    """Upper-cased ASIN, or None if it is not a 10-character ASIN."""
    if not asin:
        return None
    candidate = asin.strip().upper()
    return candidate if ASIN_PATTERN.match(candidate) else None


def parse_price(text: str) -> Optional[Price]:
    """Parse a displayed price such as ``$1,299.99``."""
    if not text:
        return None
    match = _AMOUNT_PATTERN.search(text)
    if not match:
        return None
    amount = float(match.group(0).replace(",", ""))
    currency = "USD"
    for symbol, code in CURRENCY_SYMBOLS.items():
        if symbol in text:
            currency = code
            break
    return Price(amount=amount, currency=currency, formatted=text.strip())


def parse_rating(value_text: str, count_text: str) -> Optional[Rating]:
    match = _RATING_PATTERN.search(value_text or "")
    if not match:
        return None
    count_match = _AMOUNT_PATTERN.search(count_text or "")
    count = int(count_match.group(0).replace(",", "").split(".")[0]) if count_match else 0
    return Rating(value=float(match.group(1)), count=count)


class AmazonService:
    """
    Product search, details and price comparison.

    Args:
        scraper: Fetch core used for every page request
        product_cache: Per-ASIN cache (one-hour lifetime)
        clock: Returns the retrieval instant stamped on products
    """

    def __init__(
        self,
        scraper: WebScraper,
        product_cache: Optional[ProductCache] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.scraper = scraper
        self.product_cache = (
            product_cache if product_cache is not None else ProductCache()
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def search_products(
        self,
        keywords: str,
        category: Optional[str] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> ProductSearchResult:
        """
        Search Amazon and resolve the listed products.

        Products are only reported when their detail page could be
        fetched; nothing is invented when the search page lists none.
        """
        keywords = (keywords or "").strip()
        if not keywords:
            return ProductSearchResult(
                success=False,
                query=keywords,
                error="Search keywords cannot be empty",
                error_kind=ErrorKind.VALIDATION,
            )

        url = build_search_url(keywords, category)
        page = self.scraper.fetch(
            url, ExtractionProfile.PRODUCT, cache_ttl=SEARCH_CACHE_TTL
        )
        if not page.success:
            logger.warning(f"Amazon search failed for '{keywords}': {page.error}")
            return ProductSearchResult(
                success=False,
                query=keywords,
                url=url,
                error=page.error,
                error_kind=page.error_kind,
            )

        asins = page.metadata.get("asins", [])
        products = []
        unresolved = []
        for asin in asins[: max(max_results, 0)]:
            details = self.get_product_details(asin)
            if details.success and details.product:
                products.append(details.product)
            else:
                logger.warning(f"Could not resolve {asin}: {details.error}")
                unresolved.append(asin)

        logger.info(
            f"Amazon search '{keywords}': {len(asins)} listed, {len(products)} resolved"
        )
        return ProductSearchResult(
            success=True,
            query=keywords,
            url=url,
            products=products,
            unresolved=unresolved,
            total_results=len(asins),
            page_title=page.metadata.get("title", ""),
            excerpt=page.content or "",
            source=page.source,
        )

    def get_product_details(self, asin: str) -> ProductDetailsResult:
        normalized = normalize_asin(asin)
        if normalized is None:
            return ProductDetailsResult(
                success=False,
                error=f"Invalid ASIN: {asin!r}",
                error_kind=ErrorKind.VALIDATION,
            )

        cached = self.product_cache.get(normalized)
        if cached is not None:
            return ProductDetailsResult(success=True, product=cached)

        url = build_product_url(normalized)
        page = self.scraper.fetch(
            url, ExtractionProfile.PRODUCT, cache_ttl=PRODUCT_PAGE_CACHE_TTL
        )
        if not page.success:
            return ProductDetailsResult(
                success=False,
                error=page.error or "Failed to retrieve product details",
                error_kind=page.error_kind,
            )

        meta = page.metadata
        product = AmazonProduct(
            asin=normalized,
            title=meta.get("product_title") or meta.get("title") or "Unknown Product",
            description=page.content or "No description available",
            url=url,
            price=parse_price(meta.get("price", "")),
            images=[meta["image_url"]] if meta.get("image_url") else [],
            rating=parse_rating(meta.get("rating", ""), meta.get("review_count", "")),
            features=list(meta.get("features", [])),
            specifications=dict(meta.get("specifications", {})),
            last_updated=self._clock(),
        )
        self.product_cache.put(product)
        return ProductDetailsResult(success=True, product=product)

    def compare_price(self, asin: str, our_price: float) -> PriceComparison:
        if our_price is None or our_price < 0:
            return PriceComparison(
                success=False,
                error="Our price must be a non-negative number",
                error_kind=ErrorKind.VALIDATION,
            )

        details = self.get_product_details(asin)
        if not details.success or details.product is None:
            return PriceComparison(
                success=False,
                error=details.error
                or "Failed to retrieve product for price comparison",
                error_kind=details.error_kind,
            )

        price = details.product.price
        if price is None or price.amount <= 0:
            return PriceComparison(
                success=False,
                error="Amazon price not available for comparison",
                error_kind=ErrorKind.NOT_FOUND,
            )

        difference = our_price - price.amount
        return PriceComparison(
            success=True,
            amazon_price=price.amount,
            price_difference=round(difference, 2),
            percentage_difference=round(difference / price.amount * 100, 2),
            is_cheaper=difference < 0,
        )
