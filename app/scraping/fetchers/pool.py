"""
Bounded pool of concurrent render contexts.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager

from app.scraping.dom import QueryableDocument
from app.scraping.errors import PageFetchTimeout
from app.scraping.fetchers.base import PageFetcher, RenderSettle
from app.scraping.logging_utils import elapsed_ms, log_event

logger = logging.getLogger(__name__)


class RenderSlotPool:
    """
    Caps how many renders run at once. Callers beyond the cap queue for a
    slot until their own timeout instead of failing immediately.
    """

    def __init__(self, *, max_slots: int) -> None:
        if max_slots < 1:
            raise ValueError("max_slots must be at least 1.")
        self._max_slots = max_slots
        self._semaphore = threading.BoundedSemaphore(max_slots)
        self._lock = threading.Lock()
        self._in_use = 0

    @property
    def max_slots(self) -> int:
        return self._max_slots

    @property
    def in_use(self) -> int:
        with self._lock:
            return self._in_use

    @contextmanager
    def slot(self, *, timeout_seconds: float, label: str = "") -> Iterator[None]:
        started_at = time.monotonic()
        if not self._semaphore.acquire(timeout=max(0.0, timeout_seconds)):
            raise PageFetchTimeout(
                f"No render slot became free within {timeout_seconds:.2f}s for {label or 'request'}"
            )
        waited = elapsed_ms(started_at)
        with self._lock:
            self._in_use += 1
        if waited > 0:
            log_event(logger, logging.DEBUG, "render_slot_acquired", label=label, waited_ms=waited)
        try:
            yield
        finally:
            with self._lock:
                self._in_use -= 1
            self._semaphore.release()


class PooledPageFetcher(PageFetcher):
    """
    Routes every fetch through a `RenderSlotPool`; queue time counts
    against the caller's timeout.
    """

    def __init__(self, fetcher: PageFetcher, pool: RenderSlotPool) -> None:
        self._fetcher = fetcher
        self._pool = pool

    @property
    def pool(self) -> RenderSlotPool:
        return self._pool

    def fetch(
        self,
        url: str,
        *,
        timeout_seconds: float,
        settle: RenderSettle | None = None,
    ) -> QueryableDocument:
        started_at = time.monotonic()
        with self._pool.slot(timeout_seconds=timeout_seconds, label=url):
            remaining = timeout_seconds - (time.monotonic() - started_at)
            if remaining <= 0:
                raise PageFetchTimeout(f"Time allowance spent waiting for a render slot: {url}")
            return self._fetcher.fetch(url, timeout_seconds=remaining, settle=settle)

    def close(self) -> None:
        self._fetcher.close()
