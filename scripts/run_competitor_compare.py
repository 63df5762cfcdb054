"""
Run live competitor comparison, selector detection, or registry seeding from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from dataclasses import asdict

from app.scraping.config import get_comparison_settings, load_competitor_configs
from app.scraping.errors import CompareEngineError
from app.scraping.registry import (
    CompetitorRegistry,
    DatabaseCompetitorRegistry,
    StaticCompetitorRegistry,
)
from app.services.compare_service import CompareService
from db.session import SessionLocal


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Competitor price comparison tools.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser("search", help="Compare one product across competitors.")
    search.add_argument("product_name", help="Product name to search for.")
    search.add_argument(
        "--config-file",
        dest="config_file",
        default=None,
        help="Read competitors from a JSON file instead of the database.",
    )

    detect = subparsers.add_parser("detect", help="Infer selectors for a search results URL.")
    detect.add_argument("search_url", help="Competitor search results URL.")

    seed = subparsers.add_parser("seed", help="Upsert competitors from a JSON file into the database.")
    seed.add_argument(
        "config_file",
        nargs="?",
        default=None,
        help="Path to a competitors JSON file (defaults to COMPETITOR_CONFIG_PATH).",
    )
    return parser


def _run_search(service: CompareService, product_name: str, config_file: str | None) -> dict:
    if config_file:
        registry: CompetitorRegistry = StaticCompetitorRegistry(
            load_competitor_configs(config_path=config_file)
        )
        result = service.search(product_name, registry)
    else:
        with SessionLocal() as db:
            result = service.search(product_name, DatabaseCompetitorRegistry(db))

    return {
        "product_name": result.product_name,
        "total_results": result.total_results,
        "duration_ms": result.duration_ms,
        "results": [asdict(match) for match in result.results],
        "competitors": [
            {**asdict(summary), "state": summary.state.value} for summary in result.summaries
        ],
    }


def _run_detect(service: CompareService, search_url: str) -> dict:
    result = service.detect_selectors(search_url)
    return {
        "selectors": result.selectors.as_dict(),
        "confidence": result.confidence,
        "accepted": service.is_accepted(result),
        "container_count": result.container_count,
        "sampled": result.sampled,
    }


def _run_seed(config_file: str | None) -> dict:
    from app.repositories import CompetitorConfigRepository

    path = config_file or get_comparison_settings().config_path
    configs = load_competitor_configs(config_path=path)
    with SessionLocal() as db:
        repository = CompetitorConfigRepository(db)
        for config in configs:
            repository.upsert_by_name(config)
        db.commit()
    return {"seeded": [config.name for config in configs]}


def main() -> int:
    args = _build_parser().parse_args()
    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    service = CompareService()
    try:
        if args.command == "search":
            payload = _run_search(service, args.product_name, args.config_file)
        elif args.command == "detect":
            payload = _run_detect(service, args.search_url)
        else:
            payload = _run_seed(args.config_file)
    except (CompareEngineError, FileNotFoundError, ValueError, RuntimeError) as exc:
        print(json.dumps({"error": str(exc)}, indent=2))
        return 1
    finally:
        service.close()

    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
