"""
URL helpers for search URL construction and scraped link resolution.
"""

from __future__ import annotations

import re
from urllib.parse import parse_qsl, quote, urlencode, urljoin, urlparse, urlunparse

QUERY_PLACEHOLDER = "{query}"
QUERY_PARAM = "q"

NON_PRODUCT_PATH = re.compile(
    r"(login|register|signin|sign-in|cart|checkout|account|wishlist|compare|contact|"
    r"privacy|terms|blog|news|about|faq|help|warranty)",
    flags=re.IGNORECASE,
)


def build_search_url(template: str, query: str) -> str:
    """
    Substitute `query` into a competitor search URL template.

    Templates without a `{query}` placeholder get the term as the `q`
    parameter unless one is already filled in.
    """

    template = template.strip()
    if QUERY_PLACEHOLDER in template:
        return template.replace(QUERY_PLACEHOLDER, quote(query.strip(), safe=""))

    parsed = urlparse(template)
    params = parse_qsl(parsed.query, keep_blank_values=True)
    existing = dict(params)
    if existing.get(QUERY_PARAM):
        return template
    params = [(key, value) for key, value in params if key != QUERY_PARAM]
    params.append((QUERY_PARAM, query.strip()))
    return urlunparse(parsed._replace(query=urlencode(params)))


def is_http_url(value: str) -> bool:
    """
    True for an absolute http(s) URL that `urlparse` accepts.
    """

    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def absolutize_url(value: str | None, base_url: str) -> str | None:
    """
    Resolve a scraped href/src against the page base. Blank, script and
    inline `data:` values resolve to None.
    """

    if value is None:
        return None
    candidate = value.strip()
    if not candidate or candidate.startswith(("data:", "javascript:", "mailto:", "#")):
        return None
    if candidate.startswith("//"):
        scheme = urlparse(base_url).scheme or "https"
        return f"{scheme}:{candidate}"
    if candidate.startswith(("http://", "https://")):
        return candidate
    return urljoin(base_url, candidate)


def first_srcset_url(srcset: str | None) -> str | None:
    if not srcset:
        return None
    first = srcset.split(",")[0].strip().split(" ")[0]
    return first or None


def looks_like_product_url(href: str | None, *, page_url: str) -> bool:
    """
    Heuristic check that `href` points at a product detail page rather than
    navigation, account pages or the search page itself.
    """

    resolved = absolutize_url(href, page_url)
    if resolved is None:
        return False
    target = urlparse(resolved)
    page = urlparse(page_url)
    if target.scheme not in {"http", "https"}:
        return False
    path = target.path.rstrip("/")
    if not path:
        return False
    if path == page.path.rstrip("/") and target.netloc == page.netloc:
        return False
    if NON_PRODUCT_PATH.search(path):
        return False
    return True
