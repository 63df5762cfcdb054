"""
Environment + JSON config loader for competitor comparison.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path

from db.config import load_env_files

from app.scraping.config.models import (
    DEFAULT_MAX_RESULTS,
    DEFAULT_TIMEOUT_MS,
    CompetitorConfig,
    CompetitorSelectors,
    ComparisonSettings,
    DetectionSettings,
)

SUPPORTED_PAGE_FETCHERS = {"playwright", "http"}


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    stripped = raw.strip()
    return stripped if stripped else default


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _resolve_config_path(raw_path: str) -> Path:
    candidate = Path(raw_path)
    if candidate.is_absolute():
        return candidate
    return (_project_root() / candidate).resolve()


@lru_cache(maxsize=1)
def get_comparison_settings() -> ComparisonSettings:
    """
    Return cached comparison settings from environment variables.
    """

    load_env_files()
    page_fetcher = _get_str_env("COMPARE_PAGE_FETCHER", "playwright").lower()
    if page_fetcher not in SUPPORTED_PAGE_FETCHERS:
        page_fetcher = "playwright"

    overall_budget_ms = max(0, _get_int_env("COMPARE_OVERALL_BUDGET_MS", 120000))
    config_path = _get_str_env(
        "COMPETITOR_CONFIG_PATH",
        "app/scraping/config/competitors.json",
    )
    return ComparisonSettings(
        page_fetcher=page_fetcher,
        user_agent=_get_str_env(
            "COMPARE_USER_AGENT",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        ),
        headless=_get_bool_env("COMPARE_HEADLESS", True),
        max_render_contexts=max(1, _get_int_env("COMPARE_MAX_RENDER_CONTEXTS", 4)),
        overall_budget_ms=overall_budget_ms or None,
        settle_delay_ms=max(0, _get_int_env("COMPARE_SETTLE_DELAY_MS", 3000)),
        scroll_cycles=max(0, _get_int_env("COMPARE_SCROLL_CYCLES", 3)),
        scroll_delay_ms=max(0, _get_int_env("COMPARE_SCROLL_DELAY_MS", 1500)),
        http_max_retries=max(0, _get_int_env("COMPARE_HTTP_MAX_RETRIES", 2)),
        http_backoff_seconds=max(0.1, _get_float_env("COMPARE_HTTP_BACKOFF_SECONDS", 0.5)),
        config_path=str(_resolve_config_path(config_path)),
    )


@lru_cache(maxsize=1)
def get_detection_settings() -> DetectionSettings:
    """
    Return cached selector detection thresholds from environment variables.
    """

    load_env_files()
    defaults = DetectionSettings()
    return DetectionSettings(
        timeout_ms=max(1000, _get_int_env("SELECTOR_DETECT_TIMEOUT_MS", defaults.timeout_ms)),
        settle_delay_ms=max(
            0,
            _get_int_env("SELECTOR_DETECT_SETTLE_DELAY_MS", defaults.settle_delay_ms),
        ),
        scroll_delay_ms=max(
            0,
            _get_int_env("SELECTOR_DETECT_SCROLL_DELAY_MS", defaults.scroll_delay_ms),
        ),
        sample_size=max(2, _get_int_env("SELECTOR_DETECT_SAMPLE_SIZE", defaults.sample_size)),
        min_repetitions=max(
            2,
            _get_int_env("SELECTOR_DETECT_MIN_REPETITIONS", defaults.min_repetitions),
        ),
        min_usable_samples=max(
            2,
            _get_int_env("SELECTOR_DETECT_MIN_USABLE_SAMPLES", defaults.min_usable_samples),
        ),
        accept_confidence=min(
            100,
            max(0, _get_int_env("SELECTOR_DETECT_ACCEPT_CONFIDENCE", defaults.accept_confidence)),
        ),
        near_equal_ratio=min(
            1.0,
            max(0.1, _get_float_env("SELECTOR_DETECT_NEAR_EQUAL_RATIO", defaults.near_equal_ratio)),
        ),
        max_candidate_groups=max(
            1,
            _get_int_env("SELECTOR_DETECT_MAX_CANDIDATES", defaults.max_candidate_groups),
        ),
        completeness_weight=max(
            0.0,
            _get_float_env("SELECTOR_DETECT_COMPLETENESS_WEIGHT", defaults.completeness_weight),
        ),
        consistency_weight=max(
            0.0,
            _get_float_env("SELECTOR_DETECT_CONSISTENCY_WEIGHT", defaults.consistency_weight),
        ),
        repetition_weight=max(
            0.0,
            _get_float_env("SELECTOR_DETECT_REPETITION_WEIGHT", defaults.repetition_weight),
        ),
        repetition_saturation=max(
            2,
            _get_int_env("SELECTOR_DETECT_REPETITION_SATURATION", defaults.repetition_saturation),
        ),
    )


def load_competitor_configs(*, config_path: str) -> list[CompetitorConfig]:
    """
    Load competitor configurations from a JSON file.
    """

    path = _resolve_config_path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Competitor config file not found: {path}")

    raw_data = json.loads(path.read_text(encoding="utf-8"))
    competitors = raw_data.get("competitors", []) if isinstance(raw_data, dict) else raw_data
    if not isinstance(competitors, list):
        raise ValueError("Invalid competitor config: 'competitors' must be a list.")

    parsed: list[CompetitorConfig] = []
    for entry in competitors:
        if not isinstance(entry, dict):
            continue
        config = competitor_config_from_mapping(entry)
        if config is not None:
            parsed.append(config)
    return parsed


def competitor_config_from_mapping(entry: dict[str, object]) -> CompetitorConfig | None:
    """
    Build one config from a loosely-typed mapping, applying registry defaults.

    Returns None when name, base URL or search URL is missing.
    """

    name = str(entry.get("name", "") or "").strip()
    base_url = str(entry.get("base_url", "") or "").strip()
    search_url = str(
        entry.get("search_url_template", "") or entry.get("search_url", "") or ""
    ).strip()
    if not name or not base_url or not search_url:
        return None

    max_results = _optional_int(entry.get("max_results"))
    timeout_ms = _optional_int(entry.get("timeout_ms"))
    return CompetitorConfig(
        name=name,
        base_url=base_url.rstrip("/"),
        search_url_template=search_url,
        selectors=normalize_selectors(entry.get("selectors")),
        max_results=max_results if max_results and max_results > 0 else DEFAULT_MAX_RESULTS,
        timeout_ms=timeout_ms if timeout_ms and timeout_ms > 0 else DEFAULT_TIMEOUT_MS,
        is_active=_optional_bool(entry.get("is_active"), True),
    )


def normalize_selectors(selectors: object) -> CompetitorSelectors:
    """
    Merge user-supplied selectors over the registry defaults.
    """

    defaults = CompetitorSelectors()
    if not isinstance(selectors, dict):
        return defaults

    values = defaults.as_dict()
    for key in values:
        value = selectors.get(key)
        if isinstance(value, str) and value.strip():
            values[key] = value.strip()
    return CompetitorSelectors(**values)


def _optional_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _optional_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default
