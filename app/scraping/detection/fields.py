"""
Per-card field location used by selector detection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from app.scraping.detection.signatures import (
    NON_CONTENT_TAGS,
    ancestor_selector,
    relative_selector,
)
from app.scraping.dom import QueryableNode
from app.scraping.normalization import has_currency_amount, looks_like_product_url, price_remainder
from app.scraping.parsing import image_source

MAX_PRICE_TEXT_LENGTH = 60
MAX_PRICE_LABEL_CHARS = 16
NAME_WINDOW = 8
MIN_NAME_LENGTH = 3
HEADING_OR_ANCHOR = frozenset({"h1", "h2", "h3", "h4", "h5", "h6", "a"})
HEADING_BONUS = 2.0
LINK_ANCESTOR_DEPTH = 3
NON_NAME_TAGS = frozenset({"button", "label", "small", "del", "s", "strike"})

_LETTERS = re.compile(r"[^\W\d_]{2,}")


@dataclass
class CardFindings:
    """
    Elements and relative selectors located inside one sampled card.
    """

    nodes: dict[str, QueryableNode] = field(default_factory=dict)
    selectors: dict[str, str] = field(default_factory=dict)

    @property
    def found_count(self) -> int:
        return len(self.selectors)


def _content_descendants(card: QueryableNode) -> list[QueryableNode]:
    found: list[QueryableNode] = []
    for node in card.descendants():
        if node.tag in NON_CONTENT_TAGS:
            continue
        if any(ancestor.tag in NON_CONTENT_TAGS for ancestor in _ancestors_within(node, card)):
            continue
        found.append(node)
    return found


def _ancestors_within(node: QueryableNode, card: QueryableNode) -> list[QueryableNode]:
    chain: list[QueryableNode] = []
    for ancestor in node.ancestors():
        if ancestor == card:
            break
        chain.append(ancestor)
    return chain


def find_price(card: QueryableNode, *, currency_marked: bool) -> QueryableNode | None:
    """
    Shallowest descendant whose text is (almost) only a price.
    """

    best: QueryableNode | None = None
    best_depth: int | None = None
    for node in _content_descendants(card):
        text = node.text()
        if not text or len(text) > MAX_PRICE_TEXT_LENGTH:
            continue
        remainder = price_remainder(text, currency_marked=currency_marked)
        if remainder is None or remainder > MAX_PRICE_LABEL_CHARS:
            continue
        depth = node.depth_from(card)
        if depth is None:
            continue
        if best_depth is None or depth < best_depth:
            best, best_depth = node, depth
    return best


def find_name(card: QueryableNode, *, price: QueryableNode | None) -> QueryableNode | None:
    """
    Longest non-numeric text near the top of the card, headings and anchors preferred.
    """

    candidates: list[tuple[float, QueryableNode]] = []
    for node in _content_descendants(card):
        if len(candidates) >= NAME_WINDOW:
            break
        if node.tag in NON_NAME_TAGS:
            continue
        text = node.own_text()
        if len(text) < MIN_NAME_LENGTH or not _LETTERS.search(text):
            continue
        if has_currency_amount(text):
            continue
        if price is not None and (node == price or price in _ancestors_within(node, card)):
            continue
        weight = 1.0
        if node.tag in HEADING_OR_ANCHOR or any(
            ancestor.tag in HEADING_OR_ANCHOR for ancestor in _ancestors_within(node, card)
        ):
            weight = HEADING_BONUS
        candidates.append((len(text) * weight, node))

    if not candidates:
        return None
    best_score = max(score for score, _ in candidates)
    for score, node in candidates:
        if score == best_score:
            return node
    return None


def find_image(card: QueryableNode, *, page_url: str) -> QueryableNode | None:
    for node in card.select_all("img"):
        if image_source(node, base_url=page_url) is not None:
            return node
    return None


def find_link(card: QueryableNode, *, page_url: str) -> tuple[QueryableNode, bool] | None:
    """
    Product-detail anchor for the card and whether it is ancestor-or-self.
    """

    wrapper = card.closest("a[href]")
    if wrapper is not None:
        depth = card.depth_from(wrapper)
        if (
            depth is not None
            and depth <= LINK_ANCESTOR_DEPTH
            and looks_like_product_url(wrapper.attr("href"), page_url=page_url)
        ):
            return wrapper, True

    for anchor in card.select_all("a[href]"):
        if looks_like_product_url(anchor.attr("href"), page_url=page_url):
            return anchor, False
    return None


def inspect_card(card: QueryableNode, *, page_url: str, currency_marked: bool) -> CardFindings:
    """
    Locate price, name, image and link in one card and derive reusable selectors.
    """

    findings = CardFindings()

    price = find_price(card, currency_marked=currency_marked)
    if price is not None:
        pattern = relative_selector(card, price)
        if pattern:
            findings.nodes["price"] = price
            findings.selectors["price"] = pattern

    name = find_name(card, price=price)
    if name is not None:
        pattern = relative_selector(card, name)
        if pattern:
            findings.nodes["name"] = name
            findings.selectors["name"] = pattern

    image = find_image(card, page_url=page_url)
    if image is not None:
        pattern = relative_selector(card, image)
        if pattern:
            findings.nodes["image"] = image
            findings.selectors["image"] = pattern

    link = find_link(card, page_url=page_url)
    if link is not None:
        anchor, is_ancestor = link
        pattern = ancestor_selector(card, anchor) if is_ancestor else relative_selector(card, anchor)
        if pattern:
            findings.nodes["url"] = anchor
            findings.selectors["url"] = pattern

    return findings
