"""
Normalization helpers for scraped values.
"""

from app.scraping.normalization.price import (
    BARE_DECIMAL_PATTERN,
    CURRENCY_AMOUNT_PATTERN,
    has_currency_amount,
    is_bare_decimal,
    parse_price,
    price_remainder,
)
from app.scraping.normalization.urls import (
    absolutize_url,
    build_search_url,
    first_srcset_url,
    is_http_url,
    looks_like_product_url,
)

__all__ = [
    "BARE_DECIMAL_PATTERN",
    "CURRENCY_AMOUNT_PATTERN",
    "absolutize_url",
    "build_search_url",
    "first_srcset_url",
    "has_currency_amount",
    "is_bare_decimal",
    "is_http_url",
    "looks_like_product_url",
    "parse_price",
    "price_remainder",
]
