"""
requests-based fetcher for server-rendered search pages.
"""

from __future__ import annotations

import logging
import time

import requests

from app.scraping.dom import QueryableDocument, SoupDocument
from app.scraping.errors import PageFetchError, PageFetchTimeout
from app.scraping.fetchers.base import PageFetcher, RenderSettle, remaining_seconds
from app.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class HttpPageFetcher(PageFetcher):
    """
    Plain HTTP fetcher with retry and exponential backoff. Does not run
    JavaScript, so settle instructions are ignored.
    """

    def __init__(
        self,
        *,
        user_agent: str,
        max_retries: int = 2,
        backoff_initial_seconds: float = 0.5,
        backoff_multiplier: float = 2.0,
        session: requests.Session | None = None,
    ) -> None:
        self._session = session or requests.Session()
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml",
        }
        self._max_retries = max_retries
        self._backoff_initial_seconds = backoff_initial_seconds
        self._backoff_multiplier = backoff_multiplier

    def fetch(
        self,
        url: str,
        *,
        timeout_seconds: float,
        settle: RenderSettle | None = None,
    ) -> QueryableDocument:
        deadline = time.monotonic() + timeout_seconds
        response = self._request_with_retry(url, deadline=deadline)
        return SoupDocument.from_html(response.text, url=response.url or url)

    def close(self) -> None:
        self._session.close()

    def _request_with_retry(self, url: str, *, deadline: float) -> requests.Response:
        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            try:
                response = self._session.get(
                    url,
                    headers=self._headers,
                    timeout=remaining_seconds(deadline, url=url),
                    allow_redirects=True,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable status={response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.Timeout as exc:
                raise PageFetchTimeout(f"Timed out fetching {url}: {exc}") from exc
            except (requests.ConnectionError, requests.HTTPError) as exc:
                last_error = exc
                if isinstance(exc, requests.HTTPError):
                    status_code = exc.response.status_code if exc.response is not None else None
                    if status_code not in RETRYABLE_STATUS_CODES:
                        raise PageFetchError(f"Failed to fetch {url}: {exc}") from exc
            except requests.RequestException as exc:
                # Redirect loops and malformed URLs do not improve on retry.
                raise PageFetchError(f"Failed to fetch {url}: {exc}") from exc

            if attempt >= self._max_retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            if backoff_seconds >= remaining_seconds(deadline, url=url):
                raise PageFetchTimeout(f"No time left to retry {url}: {last_error}")
            log_event(
                logger,
                logging.WARNING,
                "page_fetch_retry",
                url=url,
                attempt=attempt + 1,
                backoff_seconds=backoff_seconds,
                error=str(last_error),
            )
            time.sleep(backoff_seconds)

        raise PageFetchError(f"Failed to fetch {url} after retries: {last_error}")
