"""
Retailer product lookup.
"""

from .amazon import (
    AmazonProduct,
    AmazonService,
    PriceComparison,
    ProductDetailsResult,
    ProductSearchResult,
    build_product_url,
    build_search_url,
)
from .product_cache import ProductCache

__all__ = [
    "AmazonProduct",
    "AmazonService",
    "PriceComparison",
    "ProductCache",
    "ProductDetailsResult",
    "ProductSearchResult",
    "build_product_url",
    "build_search_url",
]
