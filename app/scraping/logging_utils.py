"""
Structured logging helpers for scraping and detection workflows.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True, ensure_ascii=False))


def elapsed_ms(started_at: float) -> int:
    """
    Milliseconds since a `time.monotonic()` reading.
    """

    return max(0, int((time.monotonic() - started_at) * 1000))
