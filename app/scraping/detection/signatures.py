"""
Structural signatures and reusable selector construction.
"""

from __future__ import annotations

import re

from app.scraping.dom import QueryableNode

NON_CONTENT_TAGS = frozenset(
    {
        "script",
        "style",
        "noscript",
        "template",
        "head",
        "meta",
        "link",
        "svg",
        "path",
        "g",
        "use",
        "iframe",
        "br",
        "hr",
        "input",
        "select",
        "option",
        "textarea",
    }
)
MAX_SELECTOR_CLASSES = 3

_CSS_IDENTIFIER = re.compile(r"^-?[A-Za-z_][A-Za-z0-9_-]*$")
# Generated or state-dependent class names do not survive across page loads.
_UNSTABLE_CLASS = re.compile(
    r"\d{3,}"
    r"|^(?:css|sc|jsx|emotion|svelte)-"
    r"|^_"
    r"|(?:^|[-_])(?:active|selected|hover|focus|loaded|lazy|lazyload|lazyloaded|"
    r"visible|hidden|open|current|first|last|odd|even)$",
    flags=re.IGNORECASE,
)

Signature = tuple[str, frozenset[str]]


def stable_classes(node: QueryableNode) -> tuple[str, ...]:
    seen: list[str] = []
    for name in node.classes:
        if name in seen:
            continue
        if not _CSS_IDENTIFIER.match(name) or _UNSTABLE_CLASS.search(name):
            continue
        seen.append(name)
    return tuple(seen)


def signature(node: QueryableNode) -> Signature:
    return node.tag, frozenset(stable_classes(node))


def compound_selector(node: QueryableNode) -> str:
    """
    `tag.class1.class2` pattern for one element, limited to stable classes.
    """

    classes = stable_classes(node)[:MAX_SELECTOR_CLASSES]
    return node.tag + "".join(f".{name}" for name in classes)


def _nth_of_type(node: QueryableNode) -> int:
    parent = node.parent()
    if parent is None:
        return 1
    index = 0
    for sibling in parent.children():
        if sibling.tag == node.tag:
            index += 1
        if sibling == node:
            return index
    return 1


def relative_selector(card: QueryableNode, element: QueryableNode) -> str | None:
    """
    Shortest descendant pattern that, queried from `card`, finds `element` first.

    Tries the element's own compound selector, then prepends ancestors
    (child combinators) up to the card, then falls back to a positional path.
    """

    path: list[QueryableNode] = []
    node: QueryableNode | None = element
    while node is not None and node != card:
        path.append(node)
        node = node.parent()
    if node is None or not path:
        return None
    path.reverse()

    for size in range(1, len(path) + 1):
        parts = [compound_selector(item) for item in path[-size:]]
        pattern = " > ".join(parts)
        if size == len(path):
            pattern = f":scope > {pattern}"
        if card.select_first(pattern) == element:
            return pattern

    positional = " > ".join(
        f"{compound_selector(item)}:nth-of-type({_nth_of_type(item)})" for item in path
    )
    pattern = f":scope > {positional}"
    if card.select_first(pattern) == element:
        return pattern
    return None


def ancestor_selector(card: QueryableNode, element: QueryableNode) -> str | None:
    """
    Pattern whose nearest ancestor-or-self match from `card` is `element`.
    """

    for pattern in (compound_selector(element), f"{element.tag}[href]"):
        if card.closest(pattern) == element:
            return pattern
    return None
