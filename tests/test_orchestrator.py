from __future__ import annotations

import time

import pytest

from app.domain.compare import CompetitorJobState
from app.scraping.config.models import CompetitorConfig
from app.scraping.errors import PageFetchError, PageFetchTimeout
from app.scraping.fetchers import PooledPageFetcher, RenderSlotPool
from app.scraping.orchestrator import ScrapeOrchestrator
from compare_fakes import FakePageFetcher, make_config, product_card, results_page


def _states(result) -> dict[str, CompetitorJobState]:
    return {summary.competitor: summary.state for summary in result.summaries}


# ---------------------------------------------------------------------------
# Merge and ordering
# ---------------------------------------------------------------------------


class TestMerge:
    def test_results_are_merged_and_sorted_by_price(self) -> None:
        fetcher = FakePageFetcher(
            {
                "alpha.example": results_page([product_card(1, "$30.00"), product_card(2, "$10.00")]),
                "beta.example": results_page([product_card(3, "$20.00"), product_card(4, "$10.00")]),
            }
        )
        configs = [make_config("Alpha", "alpha.example"), make_config("Beta", "beta.example")]

        result = ScrapeOrchestrator(fetcher=fetcher).compare("widget", configs)

        assert [product.price for product in result.results] == [10.0, 10.0, 20.0, 30.0]
        # equal prices keep encounter order: Alpha's entries come before Beta's
        assert [product.competitor_name for product in result.results[:2]] == ["Alpha", "Beta"]
        assert result.total_results == 4
        assert set(_states(result).values()) == {CompetitorJobState.SUCCEEDED}

    def test_each_competitor_is_capped_at_max_results(self) -> None:
        fetcher = FakePageFetcher(
            {"alpha.example": results_page([product_card(i, f"${i}.00") for i in range(1, 12)])}
        )

        result = ScrapeOrchestrator(fetcher=fetcher).compare(
            "widget", [make_config("Alpha", "alpha.example", max_results=4)]
        )

        assert result.total_results == 4
        assert result.summaries[0].results_count == 4

    def test_inactive_competitors_are_never_queried(self) -> None:
        fetcher = FakePageFetcher(
            {
                "alpha.example": results_page([product_card(1, "$5.00")]),
                "gamma.example": results_page([product_card(2, "$1.00")]),
            }
        )
        configs = [
            make_config("Alpha", "alpha.example"),
            make_config("Gamma", "gamma.example", is_active=False),
        ]

        result = ScrapeOrchestrator(fetcher=fetcher).compare("widget", configs)

        assert fetcher.calls == ["alpha.example"]
        assert [summary.competitor for summary in result.summaries] == ["Alpha"]
        assert [product.competitor_name for product in result.results] == ["Alpha"]

    def test_no_active_competitors_is_an_empty_success(self) -> None:
        fetcher = FakePageFetcher({})

        result = ScrapeOrchestrator(fetcher=fetcher).compare(
            "widget", [make_config("Gamma", "gamma.example", is_active=False)]
        )

        assert result.results == []
        assert result.summaries == []
        assert fetcher.calls == []


# ---------------------------------------------------------------------------
# Failure isolation
# ---------------------------------------------------------------------------


class TestFailureIsolation:
    def test_one_failing_competitor_does_not_affect_others(self) -> None:
        fetcher = FakePageFetcher(
            {
                "alpha.example": results_page([product_card(1, "$5.00")]),
                "beta.example": PageFetchError("connection refused"),
                "gamma.example": RuntimeError("renderer crashed"),
                "delta.example": "<html><body><p>No results</p></body></html>",
            }
        )
        configs = [
            make_config("Alpha", "alpha.example"),
            make_config("Beta", "beta.example"),
            make_config("Gamma", "gamma.example"),
            make_config("Delta", "delta.example"),
        ]

        result = ScrapeOrchestrator(fetcher=fetcher).compare("widget", configs)

        states = _states(result)
        assert states["Alpha"] is CompetitorJobState.SUCCEEDED
        assert states["Beta"] is CompetitorJobState.FAILED_ERROR
        assert states["Gamma"] is CompetitorJobState.FAILED_ERROR
        assert states["Delta"] is CompetitorJobState.FAILED_ERROR
        assert [product.competitor_name for product in result.results] == ["Alpha"]
        errors = {summary.competitor: summary.error for summary in result.summaries}
        assert "connection refused" in errors["Beta"]
        assert "renderer crashed" in errors["Gamma"]
        assert errors["Alpha"] is None

    def test_malformed_search_template_fails_only_its_competitor(self) -> None:
        fetcher = FakePageFetcher({"alpha.example": results_page([product_card(1, "$5.00")])})
        broken = CompetitorConfig(
            name="Broken",
            base_url="https://broken.example",
            search_url_template="https://[broken/search",
        )

        result = ScrapeOrchestrator(fetcher=fetcher).compare(
            "widget", [make_config("Alpha", "alpha.example"), broken]
        )

        states = _states(result)
        assert states["Alpha"] is CompetitorJobState.SUCCEEDED
        assert states["Broken"] is CompetitorJobState.FAILED_ERROR
        assert [product.competitor_name for product in result.results] == ["Alpha"]
        errors = {summary.competitor: summary.error for summary in result.summaries}
        assert "invalid search URL template" in errors["Broken"]
        assert fetcher.calls == ["alpha.example"]

    def test_fetch_timeout_is_reported_as_timeout(self) -> None:
        fetcher = FakePageFetcher(
            {"alpha.example": PageFetchTimeout("navigation timed out")}
        )

        result = ScrapeOrchestrator(fetcher=fetcher).compare(
            "widget", [make_config("Alpha", "alpha.example")]
        )

        assert _states(result)["Alpha"] is CompetitorJobState.FAILED_TIMEOUT
        assert result.results == []


# ---------------------------------------------------------------------------
# Deadlines
# ---------------------------------------------------------------------------


class TestDeadlines:
    def test_hung_jobs_are_abandoned_concurrently(self) -> None:
        fetcher = FakePageFetcher(
            {
                "alpha.example": results_page([product_card(1, "$5.00")]),
                "beta.example": results_page([product_card(2, "$6.00")]),
                "gamma.example": results_page([product_card(3, "$7.00")]),
                "delta.example": results_page([product_card(4, "$8.00")]),
            },
            hangs={"beta.example": 1.5, "gamma.example": 1.5, "delta.example": 1.5},
        )
        configs = [
            make_config("Alpha", "alpha.example"),
            make_config("Beta", "beta.example", timeout_ms=400),
            make_config("Gamma", "gamma.example", timeout_ms=400),
            make_config("Delta", "delta.example", timeout_ms=400),
        ]

        started = time.monotonic()
        result = ScrapeOrchestrator(fetcher=fetcher).compare("widget", configs)
        wall_seconds = time.monotonic() - started

        # bounded by the largest timeout, not the 1.2s sum
        assert wall_seconds < 1.0
        assert result.duration_ms < 1000
        states = _states(result)
        assert states["Alpha"] is CompetitorJobState.SUCCEEDED
        for name in ("Beta", "Gamma", "Delta"):
            assert states[name] is CompetitorJobState.FAILED_TIMEOUT
        assert [product.price for product in result.results] == [5.0]

    def test_overall_budget_abandons_remaining_jobs(self) -> None:
        fetcher = FakePageFetcher(
            {"alpha.example": results_page([product_card(1, "$5.00")])},
            hangs={"alpha.example": 1.5},
        )

        started = time.monotonic()
        result = ScrapeOrchestrator(fetcher=fetcher, overall_budget_ms=300).compare(
            "widget", [make_config("Alpha", "alpha.example", timeout_ms=10000)]
        )

        assert time.monotonic() - started < 1.0
        summary = result.summaries[0]
        assert summary.state is CompetitorJobState.FAILED_TIMEOUT
        assert "budget" in (summary.error or "")


# ---------------------------------------------------------------------------
# Render pool
# ---------------------------------------------------------------------------


class TestRenderPool:
    def test_jobs_queue_for_a_render_slot(self) -> None:
        pages = {
            host: results_page([product_card(index, f"${index}.00")])
            for index, host in enumerate(("alpha.example", "beta.example", "gamma.example"), start=1)
        }
        inner = FakePageFetcher(pages, delays={host: 0.15 for host in pages})
        pooled = PooledPageFetcher(inner, RenderSlotPool(max_slots=1))
        configs = [
            make_config("Alpha", "alpha.example"),
            make_config("Beta", "beta.example"),
            make_config("Gamma", "gamma.example"),
        ]

        result = ScrapeOrchestrator(fetcher=pooled).compare("widget", configs)

        assert inner.peak_concurrency == 1
        assert set(_states(result).values()) == {CompetitorJobState.SUCCEEDED}
        assert result.duration_ms >= 400
        assert pooled.pool.in_use == 0

    def test_slot_wait_counts_against_timeout(self) -> None:
        pool = RenderSlotPool(max_slots=1)

        with pool.slot(timeout_seconds=1.0, label="holder"):
            assert pool.in_use == 1
            with pytest.raises(PageFetchTimeout):
                with pool.slot(timeout_seconds=0.05, label="waiter"):
                    pass

        assert pool.in_use == 0

    def test_pool_requires_a_slot(self) -> None:
        with pytest.raises(ValueError):
            RenderSlotPool(max_slots=0)
