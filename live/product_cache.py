"""
Per-ASIN product cache with a fixed one-hour lifetime.

Independent of the URL response cache: a product resolved from a search
page stays cached even when the page entry expires.
"""

import logging
import threading
import time
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from .amazon import AmazonProduct

logger = logging.getLogger(__name__)

PRODUCT_CACHE_TTL = 3600  # 1 hour in seconds


class ProductCache:
    def __init__(
        self,
        ttl: float = PRODUCT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self._products: dict[str, tuple["AmazonProduct", float]] = {}
        self._lock = threading.Lock()

    def get(self, asin: str) -> Optional["AmazonProduct"]:
        with self._lock:
            cached = self._products.get(asin)
            if cached is None:
                return None
            product, expires_at = cached
            if self._clock() >= expires_at:
                del self._products[asin]
                return None
            return product

    def put(self, product: "AmazonProduct") -> None:
        with self._lock:
            self._products[product.asin] = (product, self._clock() + self.ttl)
        logger.info(f"Cached product {product.asin} for {self.ttl / 3600:g} hour(s)")

    def clear(self) -> None:
        with self._lock:
            self._products.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._products)
