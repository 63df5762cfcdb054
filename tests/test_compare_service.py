from __future__ import annotations

import pytest

from app.domain.compare import CompetitorJobState
from app.scraping.config.models import ComparisonSettings, DetectionSettings
from app.scraping.errors import (
    CompareValidationError,
    DetectionFailure,
    RegistryUnavailableError,
)
from app.scraping.registry import CompetitorRegistry, StaticCompetitorRegistry
from app.services.compare_service import CompareService
from compare_fakes import FakePageFetcher, make_config, product_card, results_page


class UnavailableRegistry(CompetitorRegistry):
    def list_active(self):
        raise RegistryUnavailableError("database is down")


@pytest.fixture()
def fetcher() -> FakePageFetcher:
    return FakePageFetcher(
        {
            "alpha.example": results_page([product_card(1, "$12.00"), product_card(2, "$8.00")]),
            "shop.example": results_page([product_card(i, f"${i}.00") for i in range(1, 4)]),
            "empty.example": "<html><body><p>Nothing here</p></body></html>",
        }
    )


@pytest.fixture()
def service(fetcher: FakePageFetcher, comparison_settings: ComparisonSettings) -> CompareService:
    return CompareService(
        fetcher=fetcher,
        comparison_settings=comparison_settings,
        detection_settings=DetectionSettings(accept_confidence=90),
    )


class TestSearch:
    def test_search_trims_query_and_compares(self, service: CompareService) -> None:
        registry = StaticCompetitorRegistry([make_config("Alpha", "alpha.example")])

        result = service.search("  widget  ", registry)

        assert result.product_name == "widget"
        assert [product.price for product in result.results] == [8.0, 12.0]
        assert result.summaries[0].state is CompetitorJobState.SUCCEEDED

    @pytest.mark.parametrize("product_name", ["", "   "])
    def test_blank_query_is_rejected(self, service: CompareService, product_name: str) -> None:
        with pytest.raises(CompareValidationError):
            service.search(product_name, StaticCompetitorRegistry([]))

    def test_registry_failure_propagates(self, service: CompareService) -> None:
        with pytest.raises(RegistryUnavailableError):
            service.search("widget", UnavailableRegistry())


class TestDetectSelectors:
    def test_low_confidence_result_is_returned_but_not_accepted(
        self, service: CompareService
    ) -> None:
        result = service.detect_selectors("https://shop.example/search?q=widget")

        assert result.selectors.container == "div.product"
        assert result.confidence < 90
        assert service.is_accepted(result) is False

    @pytest.mark.parametrize(
        "search_url",
        ["", "  ", "ftp://shop.example/x", "shop.example/search", "http://[shop.example/search"],
    )
    def test_invalid_urls_are_rejected(self, service: CompareService, search_url: str) -> None:
        with pytest.raises(CompareValidationError):
            service.detect_selectors(search_url)

    def test_nothing_detected(self, service: CompareService) -> None:
        with pytest.raises(DetectionFailure):
            service.detect_selectors("https://empty.example/search?q=widget")
