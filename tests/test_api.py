from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.api.dependencies import get_competitor_registry, get_registry_session
from app.main import app
from app.scraping.config.models import ComparisonSettings, DetectionSettings
from app.scraping.errors import PageFetchError, RegistryUnavailableError
from app.scraping.registry import CompetitorRegistry, StaticCompetitorRegistry
from app.services.compare_service import CompareService, get_compare_service
from compare_fakes import FakePageFetcher, make_config, product_card, results_page


class UnavailableRegistry(CompetitorRegistry):
    def list_active(self):
        raise RegistryUnavailableError("database is down")


@pytest.fixture()
def fetcher() -> FakePageFetcher:
    return FakePageFetcher(
        {
            "alpha.example": results_page([product_card(1, "$25.00"), product_card(2, "$15.00")]),
            "beta.example": results_page([product_card(3, "$20.00")]),
            "shop.example": results_page([product_card(i, f"${i}.49") for i in range(1, 13)]),
            "few.example": results_page([product_card(i, f"${i}.49") for i in range(1, 4)]),
            "empty.example": "<html><body><p>Nothing here</p></body></html>",
            "loop.example": PageFetchError("Exceeded 30 redirects."),
        }
    )


@pytest.fixture()
def client(
    fetcher: FakePageFetcher,
    comparison_settings: ComparisonSettings,
    sqlite_engine: Engine,
) -> Generator[TestClient, None, None]:
    service = CompareService(
        fetcher=fetcher,
        comparison_settings=comparison_settings,
        detection_settings=DetectionSettings(),
    )
    factory = sessionmaker(bind=sqlite_engine, autoflush=False, expire_on_commit=False)

    def _session() -> Generator[Session, None, None]:
        db = factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_compare_service] = lambda: service
    app.dependency_overrides[get_registry_session] = _session
    app.dependency_overrides[get_competitor_registry] = lambda: StaticCompetitorRegistry(
        [
            make_config("Alpha", "alpha.example"),
            make_config("Beta", "beta.example"),
            make_config("Gamma", "gamma.example", is_active=False),
        ]
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# POST /compare/search
# ---------------------------------------------------------------------------


class TestSearchEndpoint:
    def test_returns_sorted_camel_case_payload(self, client: TestClient) -> None:
        response = client.post("/compare/search", json={"productName": "widget"})

        assert response.status_code == 200
        payload = response.json()
        assert payload["success"] is True
        assert payload["productName"] == "widget"
        assert payload["totalResults"] == 3
        assert [item["price"] for item in payload["results"]] == [15.0, 20.0, 25.0]
        assert payload["results"][0]["competitorName"] == "Alpha"
        assert payload["results"][0]["productUrl"] == "https://alpha.example/p/2"
        assert payload["duration"].endswith("s")
        assert isinstance(payload["durationMs"], int)
        assert {item["competitor"] for item in payload["competitors"]} == {"Alpha", "Beta"}
        assert {item["state"] for item in payload["competitors"]} == {"succeeded"}

    @pytest.mark.parametrize("body", [{}, {"productName": ""}, {"productName": "   "}])
    def test_blank_product_name_is_bad_request(self, client: TestClient, body: dict) -> None:
        response = client.post("/compare/search", json=body)

        assert response.status_code == 400

    def test_unavailable_registry_is_service_unavailable(self, client: TestClient) -> None:
        app.dependency_overrides[get_competitor_registry] = UnavailableRegistry

        response = client.post("/compare/search", json={"productName": "widget"})

        assert response.status_code == 503


# ---------------------------------------------------------------------------
# POST /compare/detect-selectors
# ---------------------------------------------------------------------------


class TestDetectSelectorsEndpoint:
    def test_confident_detection(self, client: TestClient) -> None:
        response = client.post(
            "/compare/detect-selectors",
            json={"searchUrl": "https://shop.example/search?q=widget"},
        )

        assert response.status_code == 200
        payload = response.json()
        assert payload["success"] is True
        assert payload["accepted"] is True
        assert payload["confidence"] >= 80
        assert payload["selectors"]["container"] == "div.product"
        assert payload["containerCount"] == 12
        assert "warning" not in payload

    def test_low_confidence_detection_carries_warning(
        self, client: TestClient, fetcher: FakePageFetcher, comparison_settings: ComparisonSettings
    ) -> None:
        strict = CompareService(
            fetcher=fetcher,
            comparison_settings=comparison_settings,
            detection_settings=DetectionSettings(accept_confidence=95),
        )
        app.dependency_overrides[get_compare_service] = lambda: strict

        response = client.post(
            "/compare/detect-selectors",
            json={"searchUrl": "https://few.example/search?q=widget"},
        )

        assert response.status_code == 200
        payload = response.json()
        assert payload["accepted"] is False
        assert payload["warning"] == "Low confidence detection"

    @pytest.mark.parametrize(
        "search_url",
        [
            "",
            "not a url",
            "http://[shop.example/search",
            "https://empty.example/search?q=widget",
            "https://loop.example/search?q=widget",
        ],
    )
    def test_failures_are_bad_request(self, client: TestClient, search_url: str) -> None:
        response = client.post("/compare/detect-selectors", json={"searchUrl": search_url})

        assert response.status_code == 400


# ---------------------------------------------------------------------------
# /compare/competitors
# ---------------------------------------------------------------------------


class TestCompetitorsEndpoint:
    def test_upsert_list_and_delete(self, client: TestClient) -> None:
        created = client.post(
            "/compare/competitors",
            json={
                "name": "Zeta",
                "baseUrl": "https://zeta.example/",
                "searchUrl": "https://zeta.example/search?q={query}",
            },
        )
        assert created.status_code == 200
        competitor = created.json()["competitor"]
        assert competitor["baseUrl"] == "https://zeta.example"
        assert competitor["maxResults"] == 10
        assert competitor["timeoutMs"] == 30000
        assert competitor["isActive"] is True
        assert competitor["selectors"]["container"] == ".product-item"

        updated = client.post(
            "/compare/competitors",
            json={
                "name": "Zeta",
                "baseUrl": "https://zeta.example",
                "searchUrl": "https://zeta.example/search?q={query}",
                "selectors": {"container": ".card"},
                "maxResults": 3,
                "isActive": False,
            },
        )
        assert updated.status_code == 200
        assert updated.json()["competitor"]["id"] == competitor["id"]

        client.post(
            "/compare/competitors",
            json={
                "name": "Eta",
                "baseUrl": "https://eta.example",
                "searchUrl": "https://eta.example/search",
            },
        )
        listed = client.get("/compare/competitors").json()["competitors"]
        assert [item["name"] for item in listed] == ["Eta", "Zeta"]
        assert listed[1]["selectors"]["container"] == ".card"
        assert listed[1]["selectors"]["name"] == ".product-name"
        assert listed[1]["isActive"] is False

        deleted = client.delete("/compare/competitors", params={"id": competitor["id"]})
        assert deleted.status_code == 200
        assert deleted.json()["success"] is True
        names = [item["name"] for item in client.get("/compare/competitors").json()["competitors"]]
        assert names == ["Eta"]

    @pytest.mark.parametrize(
        "body",
        [
            {"baseUrl": "https://x.example", "searchUrl": "https://x.example/s"},
            {"name": "X", "searchUrl": "https://x.example/s"},
            {"name": "X", "baseUrl": "https://x.example"},
            {"name": "X", "baseUrl": "https://x.example", "searchUrl": "https://x.example/s", "maxResults": 0},
            {"name": "X", "baseUrl": "https://x.example", "searchUrl": "https://x.example/s", "timeoutMs": -1},
            {"name": "X", "baseUrl": "https://x.example", "searchUrl": "https://[bad/search"},
            {"name": "X", "baseUrl": "x.example", "searchUrl": "https://x.example/s"},
            {"name": "X", "baseUrl": "https://x.example", "searchUrl": "/search?q={query}"},
            {"name": "X" * 121, "baseUrl": "https://x.example", "searchUrl": "https://x.example/s"},
        ],
    )
    def test_invalid_configuration_is_bad_request(self, client: TestClient, body: dict) -> None:
        response = client.post("/compare/competitors", json=body)

        assert response.status_code == 400

    def test_delete_validation(self, client: TestClient) -> None:
        assert client.delete("/compare/competitors").status_code == 400
        assert client.delete("/compare/competitors", params={"id": "abc"}).status_code == 400
        missing = client.delete(
            "/compare/competitors",
            params={"id": "00000000-0000-0000-0000-000000000000"},
        )
        assert missing.status_code == 404
