"""
Queryable DOM abstraction used by the scraper and the selector detector.

Engine code only talks to `QueryableNode`/`QueryableDocument`; the concrete
BeautifulSoup-backed implementation lives at the bottom of this module.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator

import soupsieve
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

_WHITESPACE = re.compile(r"\s+")


class SelectorSyntaxError(ValueError):
    """Raised when a structural pattern cannot be compiled."""


def clean_text(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip()


class QueryableNode(ABC):
    """
    One element of a rendered page that can be queried with CSS patterns.
    """

    @property
    @abstractmethod
    def tag(self) -> str:
        """Lower-case element name."""

    @property
    @abstractmethod
    def classes(self) -> tuple[str, ...]:
        """Class attribute tokens in document order."""

    @property
    @abstractmethod
    def identity(self) -> int:
        """Stable identity of the underlying element for the page lifetime."""

    @abstractmethod
    def select_all(self, pattern: str) -> list[QueryableNode]:
        """All descendants matching `pattern`, in document order."""

    @abstractmethod
    def select_first(self, pattern: str) -> QueryableNode | None:
        """First descendant matching `pattern`."""

    @abstractmethod
    def closest(self, pattern: str) -> QueryableNode | None:
        """Nearest ancestor-or-self matching `pattern`."""

    @abstractmethod
    def text(self) -> str:
        """Whitespace-collapsed text of the element and its descendants."""

    @abstractmethod
    def own_text(self) -> str:
        """Whitespace-collapsed text held directly by the element."""

    @abstractmethod
    def attr(self, name: str) -> str | None:
        """Attribute value, or None when absent."""

    @abstractmethod
    def parent(self) -> QueryableNode | None:
        """Parent element, or None at the document root."""

    @abstractmethod
    def children(self) -> list[QueryableNode]:
        """Direct child elements."""

    @abstractmethod
    def descendants(self) -> Iterator[QueryableNode]:
        """All descendant elements in document order."""

    def ancestors(self) -> Iterator[QueryableNode]:
        node = self.parent()
        while node is not None:
            yield node
            node = node.parent()

    def depth_from(self, ancestor: QueryableNode) -> int | None:
        """
        Number of parent hops from `ancestor` down to this node.
        """

        if self == ancestor:
            return 0
        for depth, node in enumerate(self.ancestors(), start=1):
            if node == ancestor:
                return depth
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryableNode):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    def __repr__(self) -> str:
        suffix = "".join(f".{name}" for name in self.classes)
        return f"<{type(self).__name__} {self.tag}{suffix}>"


class QueryableDocument(QueryableNode):
    """
    A rendered page snapshot.
    """

    url: str

    @abstractmethod
    def body(self) -> QueryableNode:
        """The `<body>` element, or the root when the page has none."""


class SoupNode(QueryableNode):
    """
    BeautifulSoup/soupsieve implementation of `QueryableNode`.
    """

    def __init__(self, tag: Tag) -> None:
        self._tag = tag

    @property
    def tag(self) -> str:
        return (self._tag.name or "").lower()

    @property
    def classes(self) -> tuple[str, ...]:
        raw = self._tag.get("class")
        if raw is None:
            return ()
        if isinstance(raw, str):
            raw = raw.split()
        return tuple(name for name in raw if name)

    @property
    def identity(self) -> int:
        return id(self._tag)

    def select_all(self, pattern: str) -> list[QueryableNode]:
        try:
            found = self._tag.select(pattern)
        except soupsieve.SelectorSyntaxError as exc:
            raise SelectorSyntaxError(f"Invalid selector {pattern!r}: {exc}") from exc
        return [SoupNode(item) for item in found]

    def select_first(self, pattern: str) -> QueryableNode | None:
        try:
            found = self._tag.select_one(pattern)
        except soupsieve.SelectorSyntaxError as exc:
            raise SelectorSyntaxError(f"Invalid selector {pattern!r}: {exc}") from exc
        return SoupNode(found) if found is not None else None

    def closest(self, pattern: str) -> QueryableNode | None:
        try:
            found = soupsieve.closest(pattern, self._tag)
        except soupsieve.SelectorSyntaxError as exc:
            raise SelectorSyntaxError(f"Invalid selector {pattern!r}: {exc}") from exc
        if found is None or isinstance(found, BeautifulSoup):
            return None
        return SoupNode(found)

    def text(self) -> str:
        return clean_text(self._tag.get_text(" ", strip=True))

    def own_text(self) -> str:
        parts = [
            str(child)
            for child in self._tag.children
            if isinstance(child, NavigableString) and not isinstance(child, PreformattedString)
        ]
        return clean_text(" ".join(parts))

    def attr(self, name: str) -> str | None:
        value = self._tag.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def parent(self) -> QueryableNode | None:
        parent = self._tag.parent
        if parent is None or isinstance(parent, BeautifulSoup):
            return None
        return SoupNode(parent)

    def children(self) -> list[QueryableNode]:
        return [SoupNode(child) for child in self._tag.children if isinstance(child, Tag)]

    def descendants(self) -> Iterator[QueryableNode]:
        for child in self._tag.descendants:
            if isinstance(child, Tag):
                yield SoupNode(child)


class SoupDocument(SoupNode, QueryableDocument):
    """
    Page snapshot parsed with BeautifulSoup's `html.parser`.
    """

    def __init__(self, soup: BeautifulSoup, *, url: str) -> None:
        super().__init__(soup)
        self.url = url

    @classmethod
    def from_html(cls, html: str, *, url: str) -> SoupDocument:
        return cls(BeautifulSoup(html, "html.parser"), url=url)

    @property
    def tag(self) -> str:
        return "#document"

    def body(self) -> QueryableNode:
        body = self._tag.find("body")
        if isinstance(body, Tag):
            return SoupNode(body)
        return self
