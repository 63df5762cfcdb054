"""
Price text normalization shared by scraping and selector detection.
"""

from __future__ import annotations

import re

# Symbol or ISO code followed by an amount, or an amount followed by a trailing symbol/code.
CURRENCY_AMOUNT_PATTERN = re.compile(
    r"(?:(?:US|A|C|NZ|HK|S|R)?\$|€|£|¥|₹|₩|₽|₺|₫|₱|(?<![A-Za-z])(?:Rs\.?|INR|USD|EUR|GBP|JPY|AUD|CAD)(?![A-Za-z]))"
    r"\s*\d[\d,]*(?:\.\d+)?"
    r"|\d[\d,.]*\s*(?:€|£|zł|kr|(?<![A-Za-z])(?:EUR|USD|INR|GBP)(?![A-Za-z]))",
    flags=re.IGNORECASE,
)
BARE_DECIMAL_PATTERN = re.compile(r"\d{1,3}(?:,\d{3})*\.\d{2}|\d+\.\d{2}")

_DISALLOWED = re.compile(r"[^\d.,+\-]")
_AMOUNT = re.compile(r"[-+]?(?:\d+(?:,\d+)*(?:\.\d+)?|\.\d+)")


def parse_price(text: str | None) -> float | None:
    """
    Parse the first amount in `text`, or None when no usable amount exists.

    Everything except digits, separators and sign is discarded first, so
    currency symbols, codes and labels never leak into the number.
    """

    if not text:
        return None
    compact = _DISALLOWED.sub(" ", text)
    match = _AMOUNT.search(compact)
    if match is None:
        return None
    try:
        value = float(match.group(0).replace(",", ""))
    except ValueError:
        return None
    if value < 0:
        return None
    return value


def has_currency_amount(text: str) -> bool:
    return bool(text) and CURRENCY_AMOUNT_PATTERN.search(text) is not None


def is_bare_decimal(text: str) -> bool:
    return bool(text) and BARE_DECIMAL_PATTERN.fullmatch(text.strip()) is not None


def price_remainder(text: str, *, currency_marked: bool = True) -> int | None:
    """
    Characters of `text` left over once the price token is removed.

    Returns None when `text` holds no price in the requested style.
    """

    stripped = text.strip()
    if currency_marked:
        match = CURRENCY_AMOUNT_PATTERN.search(stripped)
        if match is None:
            return None
        return len(stripped) - len(match.group(0))
    if not is_bare_decimal(stripped):
        return None
    return 0
