"""
Selector-driven extraction of product entries from a rendered search page.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.compare import ProductMatch
from app.scraping.config.models import CompetitorConfig
from app.scraping.dom import QueryableDocument, QueryableNode
from app.scraping.normalization import absolutize_url, first_srcset_url, parse_price

IMAGE_SOURCE_ATTRIBUTES = ("src", "data-src", "data-lazy-src", "data-original")
MAX_NAME_LENGTH = 300
PRODUCT_FIELDS = ("name", "price", "image", "url")


def locate_field(node: QueryableNode, field: str, selector: str) -> QueryableNode | None:
    """
    Resolve one field selector against a product container.

    Links may wrap the whole card, so `url` looks at ancestor-or-self first.
    """

    if field == "url":
        return node.closest(selector) or node.select_first(selector)
    return node.select_first(selector)


def image_source(node: QueryableNode, *, base_url: str) -> str | None:
    """
    First usable image address on an img-like element.
    """

    for attribute in IMAGE_SOURCE_ATTRIBUTES:
        resolved = absolutize_url(node.attr(attribute), base_url)
        if resolved is not None:
            return resolved
    return absolutize_url(first_srcset_url(node.attr("srcset")), base_url)


@dataclass(frozen=True)
class ExtractionOutcome:
    """
    Products kept from one page plus how many container nodes were examined.
    """

    products: list[ProductMatch]
    nodes_found: int
    nodes_processed: int

    @property
    def dropped(self) -> int:
        return self.nodes_processed - len(self.products)


class ProductNodeParser:
    """
    Applies a competitor's five selectors to a rendered page.
    """

    @classmethod
    def extract(
        cls,
        *,
        document: QueryableDocument,
        config: CompetitorConfig,
        search_url: str,
    ) -> ExtractionOutcome:
        nodes = document.select_all(config.selectors.container)
        processed = nodes[: config.max_results]

        products: list[ProductMatch] = []
        for node in processed:
            product = cls.extract_product(
                node=node,
                config=config,
                search_url=search_url,
            )
            if product is not None:
                products.append(product)
        return ExtractionOutcome(
            products=products,
            nodes_found=len(nodes),
            nodes_processed=len(processed),
        )

    @classmethod
    def extract_product(
        cls,
        *,
        node: QueryableNode,
        config: CompetitorConfig,
        search_url: str,
    ) -> ProductMatch | None:
        """
        Build one entry, or None when the node lacks a name or a parsable price.
        """

        selectors = config.selectors
        name = cls._extract_name(node, selectors.name)
        if not name:
            return None

        price_text = cls._extract_text(node, selectors.price)
        price = parse_price(price_text)
        if price is None:
            return None

        return ProductMatch(
            competitor_name=config.name,
            product_name=name,
            price=price,
            price_text=price_text,
            image_url=cls._extract_image(node, selectors.image, base_url=config.base_url),
            product_url=cls._extract_url(node, selectors.url, base_url=config.base_url)
            or search_url,
            source_search_url=search_url,
        )

    @staticmethod
    def _extract_text(node: QueryableNode, selector: str) -> str:
        found = locate_field(node, "price", selector)
        if found is None:
            return ""
        return found.text()

    @staticmethod
    def _extract_name(node: QueryableNode, selector: str) -> str:
        found = locate_field(node, "name", selector)
        if found is None:
            return ""
        text = found.text() or (found.attr("title") or "").strip()
        return text[:MAX_NAME_LENGTH]

    @staticmethod
    def _extract_image(node: QueryableNode, selector: str, *, base_url: str) -> str | None:
        found = locate_field(node, "image", selector)
        if found is None:
            return None
        if found.tag not in {"img", "source"}:
            found = found.select_first("img")
            if found is None:
                return None
        return image_source(found, base_url=base_url)

    @staticmethod
    def _extract_url(node: QueryableNode, selector: str, *, base_url: str) -> str | None:
        found = locate_field(node, "url", selector)
        if found is None:
            return None
        href = found.attr("href")
        if href is None:
            anchor = found.select_first("a[href]")
            href = anchor.attr("href") if anchor is not None else None
        return absolutize_url(href, base_url)
