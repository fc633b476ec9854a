from __future__ import annotations

import pytest

from qalc.models.calculator import ErrorKind, EvaluationResult
from qalc.services.calculator import CalculatorError, CalculatorService
from qalc.services.query_cache import QueryController, QueryResultCache


class CountingCalculator:
    def __init__(self, outcome: EvaluationResult | None = None) -> None:
        self.calls: list[str] = []
        self._service = CalculatorService()
        self._outcome = outcome

    def evaluate(self, expression: str) -> EvaluationResult:
        self.calls.append(expression)
        if self._outcome is not None:
            return self._outcome
        return self._service.evaluate(expression)


class UnavailableCalculator:
    def evaluate(self, expression: str) -> EvaluationResult:
        raise CalculatorError("Calculator service is unavailable.")


@pytest.fixture()
def cache() -> QueryResultCache:
    return QueryResultCache()


def test_unknown_query_has_empty_defaults(cache: QueryResultCache) -> None:
    assert cache.get("1+1") is None
    assert cache.get_result("1+1") == ""
    assert cache.is_pending("1+1") is False
    assert cache.has_error("1+1") is False


def test_set_result_clears_pending_and_error(cache: QueryResultCache) -> None:
    cache.set_pending("1+1")
    cache.set_error("1+1")
    assert cache.is_pending("1+1") is False

    cache.set_pending("1+1")
    assert cache.is_pending("1+1") is True

    state = cache.set_result("1+1", "2")

    assert state.result == "2"
    assert state.pending is False
    assert state.error is False


def test_set_error_keeps_previous_result(cache: QueryResultCache) -> None:
    cache.set_result("2*3", "6")
    cache.set_pending("2*3")

    state = cache.set_error("2*3")

    assert state.error is True
    assert state.pending is False
    assert state.result == "6"


def test_reset_clears_every_entry(cache: QueryResultCache) -> None:
    cache.set_result("1+1", "2")
    cache.set_error("1/0")

    assert len(cache) == 2
    assert cache.reset() == 2
    assert len(cache) == 0
    assert cache.get("1+1") is None


def test_controller_ignores_non_candidates(cache: QueryResultCache) -> None:
    calculator = CountingCalculator()
    controller = QueryController(calculator, cache)

    assert controller.submit("firefox") is None
    assert controller.submit("+") is None
    assert calculator.calls == []
    assert len(cache) == 0


@pytest.mark.parametrize(
    ("query", "display"),
    [
        ("1 + 2", "3"),
        ("0.1 + 0.2", "0.3"),
        ("999999999999999999 + 1", "1000000000000000000"),
        ("100 / 3", "33.3333333333333"),
    ],
)
def test_controller_stores_display_result(cache: QueryResultCache, query: str, display: str) -> None:
    controller = QueryController(CountingCalculator(), cache)

    state = controller.submit(query)

    assert state.result == display
    assert state.pending is False
    assert state.error is False
    assert cache.get_result(query) == display


def test_controller_stores_error_for_failed_evaluation(cache: QueryResultCache) -> None:
    controller = QueryController(CountingCalculator(), cache)

    state = controller.submit("1 / 0")

    assert state.error is True
    assert state.pending is False
    assert state.result == ""


def test_controller_serves_settled_entries_from_cache(cache: QueryResultCache) -> None:
    calculator = CountingCalculator()
    controller = QueryController(calculator, cache)

    first = controller.submit("2 ^ 10")
    second = controller.submit("2 ^ 10")

    assert first == second
    assert calculator.calls == ["2 ^ 10"]


def test_controller_reevaluates_pending_entries(cache: QueryResultCache) -> None:
    calculator = CountingCalculator(outcome=EvaluationResult.failure(ErrorKind.evaluation_failed))
    controller = QueryController(calculator, cache)
    cache.set_pending("1++")

    state = controller.submit("1++")

    assert calculator.calls == ["1++"]
    assert state.error is True


def test_controller_records_unavailable_calculator_as_error(cache: QueryResultCache) -> None:
    controller = QueryController(UnavailableCalculator(), cache)

    state = controller.submit("5 + 5")

    assert state.error is True
    assert state.pending is False


class BrokenCalculator:
    def evaluate(self, expression: str) -> EvaluationResult:
        raise RuntimeError("calculator crashed")


def test_controller_settles_entry_when_calculator_raises(cache: QueryResultCache) -> None:
    controller = QueryController(BrokenCalculator(), cache)

    state = controller.submit("5 + 5")

    assert state.error is True
    assert state.pending is False
    assert cache.is_pending("5 + 5") is False
