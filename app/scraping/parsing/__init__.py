"""
Page parsing helpers.
"""

from app.scraping.parsing.product_parser import (
    PRODUCT_FIELDS,
    ExtractionOutcome,
    ProductNodeParser,
    image_source,
    locate_field,
)

__all__ = [
    "PRODUCT_FIELDS",
    "ExtractionOutcome",
    "ProductNodeParser",
    "image_source",
    "locate_field",
]
