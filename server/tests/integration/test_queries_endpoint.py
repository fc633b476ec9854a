from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from qalc.core.config import get_settings
from qalc.main import create_app
from qalc.models.calculator import EvaluationResult


class StubCalculatorHttpService:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def evaluate(self, expression: str) -> EvaluationResult:
        self.calls.append(expression)
        return EvaluationResult.ok(25)


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setenv("CALC_TOOL_MODE", "local")
    get_settings.cache_clear()

    with TestClient(create_app()) as test_client:
        yield test_client

    get_settings.cache_clear()


def test_submit_query_stores_result(client: TestClient) -> None:
    response = client.post("/queries", json={"query": "2 ^ 10"})

    assert response.status_code == 200
    assert response.json() == {"query": "2 ^ 10", "result": "1024", "pending": False, "error": False}


def test_submit_query_records_errors(client: TestClient) -> None:
    response = client.post("/queries", json={"query": "1 / 0"})

    assert response.status_code == 200
    assert response.json() == {"query": "1 / 0", "result": "", "pending": False, "error": True}


def test_submit_rejects_non_expressions(client: TestClient) -> None:
    response = client.post("/queries", json={"query": "firefox"})

    assert response.status_code == 422
    payload = response.json()
    assert payload["error"]["type"] == "NOT_AN_EXPRESSION"
    assert payload["error"]["details"] == {"query": "firefox"}


def test_submit_requires_query_text(client: TestClient) -> None:
    response = client.post("/queries", json={"query": ""})

    assert response.status_code == 422


def test_get_query_returns_cached_state(client: TestClient) -> None:
    client.post("/queries", json={"query": "0.1 + 0.2"})

    response = client.get("/queries", params={"query": "0.1 + 0.2"})

    assert response.status_code == 200
    assert response.json()["result"] == "0.3"


def test_get_unknown_query_returns_not_found(client: TestClient) -> None:
    response = client.get("/queries", params={"query": "7 * 6"})

    assert response.status_code == 404
    assert response.json()["error"]["type"] == "QUERY_NOT_FOUND"


def test_reset_clears_cached_queries(client: TestClient) -> None:
    client.post("/queries", json={"query": "1 + 1"})

    reset_response = client.delete("/queries")

    assert reset_response.status_code == 204
    assert client.get("/queries", params={"query": "1 + 1"}).status_code == 404


def test_each_app_owns_its_cache(client: TestClient) -> None:
    client.post("/queries", json={"query": "3 * 3"})

    with TestClient(create_app()) as other_client:
        response = other_client.get("/queries", params={"query": "3 * 3"})

    assert response.status_code == 404


def test_queries_use_http_calculator_in_http_mode(monkeypatch) -> None:
    monkeypatch.setenv("CALC_TOOL_MODE", "http")
    monkeypatch.setenv("CALC_HTTP_BASE_URL", "http://calc.internal")
    get_settings.cache_clear()

    stub_service = StubCalculatorHttpService()
    monkeypatch.setattr(
        "qalc.services.calculator_http.CalculatorHttpService.from_settings",
        lambda: stub_service,
    )

    try:
        with TestClient(create_app()) as test_client:
            response = test_client.post("/queries", json={"query": "5 * 5"})
    finally:
        get_settings.cache_clear()

    assert response.status_code == 200
    assert response.json()["result"] == "25"
    assert stub_service.calls == ["5 * 5"]
