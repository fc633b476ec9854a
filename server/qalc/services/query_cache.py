from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional, Protocol

from qalc.models.calculator import EvaluationResult, QueryState
from qalc.services.calculator import CalculatorError, format_result
from qalc.services.validator import is_candidate_expression

logger = logging.getLogger("qalc.queries")


class Evaluator(Protocol):
    def evaluate(self, expression: Any) -> EvaluationResult:
        ...


class QueryResultCache:
    """
    In-memory evaluation state keyed by query text.

    Entries live until ``reset`` is called; there is no expiry or eviction.
    The owner (the FastAPI app, a launcher controller) decides the lifetime.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._states: Dict[str, QueryState] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def get(self, query: str) -> Optional[QueryState]:
        with self._lock:
            return self._states.get(query)

    def get_result(self, query: str) -> str:
        state = self.get(query)
        return state.result if state else ""

    def is_pending(self, query: str) -> bool:
        state = self.get(query)
        return state.pending if state else False

    def has_error(self, query: str) -> bool:
        state = self.get(query)
        return state.error if state else False

    def set_pending(self, query: str, pending: bool = True) -> QueryState:
        return self._update(query, pending=pending)

    def set_result(self, query: str, result: str) -> QueryState:
        return self._update(query, result=result, pending=False, error=False)

    def set_error(self, query: str, error: bool = True) -> QueryState:
        return self._update(query, error=error, pending=False)

    def reset(self) -> int:
        with self._lock:
            cleared = len(self._states)
            self._states = {}
            return cleared

    def _update(self, query: str, **changes: Any) -> QueryState:
        with self._lock:
            current = self._states.get(query) or QueryState(query=query)
            updated = current.model_copy(update=changes)
            self._states[query] = updated
            return updated


class QueryController:
    def __init__(self, calculator: Evaluator, cache: QueryResultCache) -> None:
        self.calculator = calculator
        self.cache = cache

    def submit(self, query: str) -> Optional[QueryState]:
        """
        Evaluate a launcher query once and remember the outcome.

        Returns ``None`` when the text is not a candidate expression. Settled
        entries are served from the cache without re-evaluating.
        """
        if not is_candidate_expression(query):
            return None

        cached = self.cache.get(query)
        if cached is not None and not cached.pending:
            return cached

        self.cache.set_pending(query)
        try:
            outcome = self.calculator.evaluate(query)
        except CalculatorError as exc:
            logger.warning("queries.calculator_unavailable", extra={"query": query, "error": exc.message})
            return self.cache.set_error(query)
        except Exception:
            logger.exception("queries.evaluation_failed", extra={"query": query})
            return self.cache.set_error(query)

        if outcome.success:
            return self.cache.set_result(query, format_result(outcome.result))

        logger.info("queries.no_result", extra={"query": query, "kind": outcome.error.value})
        return self.cache.set_error(query)
