"""
Page fetcher abstraction: render a URL and return a queryable snapshot.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from app.scraping.dom import QueryableDocument
from app.scraping.errors import PageFetchTimeout


@dataclass(frozen=True)
class RenderSettle:
    """
    Bounded wait for dynamic content: a fixed delay, then scroll-and-settle cycles.
    """

    settle_delay_ms: int = 3000
    scroll_cycles: int = 1
    scroll_delay_ms: int = 1500


class PageFetcher(ABC):
    """
    Capability that turns a URL into a `QueryableDocument`.
    """

    @abstractmethod
    def fetch(
        self,
        url: str,
        *,
        timeout_seconds: float,
        settle: RenderSettle | None = None,
    ) -> QueryableDocument:
        """
        Render `url` within `timeout_seconds`.

        Raises PageFetchTimeout when the allowance runs out and
        PageFetchError for any other rendering failure.
        """

    def close(self) -> None:
        """Release long-lived resources, if any."""


def remaining_seconds(deadline: float, *, url: str) -> float:
    """
    Seconds left before `deadline` (a `time.monotonic()` value).
    """

    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise PageFetchTimeout(f"Time allowance exhausted for url={url}")
    return remaining
