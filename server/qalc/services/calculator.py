from __future__ import annotations

import logging
import math
from functools import cached_property
from typing import Any

from langchain_core.tools import tool

from qalc.core.config import get_settings
from qalc.core.exceptions import AppError
from qalc.models.calculator import CalculatorResult, ErrorKind, EvaluationResult, ResultValue
from qalc.services.strategies import evaluate_exact_integer, evaluate_precise_decimal
from qalc.services.validator import has_allowed_characters, looks_like_expression

logger = logging.getLogger("qalc.calculator")


class CalculatorError(AppError):
    status_code = 400
    error_type = "CALCULATOR_ERROR"

    @classmethod
    def from_result(cls, outcome: EvaluationResult) -> "CalculatorError":
        details = {"kind": outcome.error.value}
        if outcome.detail:
            details["detail"] = outcome.detail
        return cls(outcome.message or "Invalid arithmetic expression.", details=details)


def format_result(value: ResultValue) -> str:
    """Render an evaluated value the way the launcher displays it."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return str(value)


def _uses_exact_path(expression: str) -> bool:
    return "." not in expression and "/" not in expression


class CalculatorService:
    MAX_EXPRESSION_LENGTH = 200

    def __init__(self, max_expression_length: int | None = None) -> None:
        self.max_expression_length = max_expression_length or self.MAX_EXPRESSION_LENGTH

    @classmethod
    def from_settings(cls) -> "CalculatorService":
        settings = get_settings()
        return cls(max_expression_length=settings.max_expression_length)

    def evaluate(self, expression: Any) -> EvaluationResult:
        """
        Evaluate arithmetic text into a result envelope.

        Integer-only expressions without division are computed exactly; anything
        else is computed in double precision and rounded to 15 significant digits.
        Failures are reported through ``EvaluationResult.error`` and never raised.
        """
        if not isinstance(expression, str) or not expression:
            return EvaluationResult.failure(ErrorKind.invalid_input)

        cleaned = expression.strip()
        if not cleaned:
            return EvaluationResult.failure(ErrorKind.empty_input)

        if len(cleaned) > self.max_expression_length:
            return EvaluationResult.failure(
                ErrorKind.invalid_input,
                detail=f"Expression exceeds {self.max_expression_length} characters.",
            )

        if not has_allowed_characters(cleaned):
            return EvaluationResult.failure(ErrorKind.invalid_characters)

        if not looks_like_expression(cleaned):
            return EvaluationResult.failure(ErrorKind.not_an_expression)

        try:
            value = self._compute(cleaned)
        except Exception as exc:
            logger.exception("calculator.evaluation_error", extra={"expression": cleaned})
            return EvaluationResult.failure(ErrorKind.evaluation_error, detail=str(exc) or type(exc).__name__)

        if value is None:
            return EvaluationResult.failure(ErrorKind.evaluation_failed)

        if isinstance(value, float) and not math.isfinite(value):
            return EvaluationResult.failure(ErrorKind.invalid_result)

        return EvaluationResult.ok(value)

    def evaluate_strict(self, expression: str) -> CalculatorResult:
        outcome = self.evaluate(expression)
        if not outcome.success:
            raise CalculatorError.from_result(outcome)
        return CalculatorResult(expression=expression, result=outcome.result)

    @cached_property
    def langchain_tool(self):
        service = self

        @tool("calculator", return_direct=True)
        def _calculator(expression: str) -> int | float | str:
            """Evaluate an arithmetic expression (+ - * / % ^ and parentheses) and return the result."""
            return service.evaluate_strict(expression).result

        return _calculator

    def _compute(self, cleaned: str) -> ResultValue | None:
        if _uses_exact_path(cleaned):
            value = evaluate_exact_integer(cleaned)
            if value is not None:
                return value
            logger.debug("calculator.fallback", extra={"expression": cleaned})
        return evaluate_precise_decimal(cleaned)
