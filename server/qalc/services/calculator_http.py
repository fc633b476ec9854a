from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from qalc.core.config import get_settings
from qalc.models.calculator import ErrorKind, EvaluationResult
from qalc.services.calculator import CalculatorError


class CalculatorHttpServiceError(CalculatorError):
    status_code = 502
    error_type = "CALCULATOR_HTTP_ERROR"


@dataclass
class CalculatorHttpService:
    base_url: str
    timeout: float = 5.0

    @classmethod
    def from_settings(cls) -> "CalculatorHttpService":
        settings = get_settings()
        if not settings.calc_http_base_url:
            raise CalculatorHttpServiceError("CALC_HTTP_BASE_URL is not configured.")
        return cls(
            base_url=settings.calc_http_base_url.rstrip("/"),
            timeout=float(settings.calc_http_timeout_sec),
        )

    def evaluate(self, expression: Any) -> EvaluationResult:
        """
        Evaluate through a remote calculator's ``/evaluate`` endpoint.

        Evaluation failures come back inside the envelope; transport problems
        raise ``CalculatorHttpServiceError``.
        """
        if not isinstance(expression, str) or not expression:
            return EvaluationResult.failure(ErrorKind.invalid_input)
        query = expression.strip()
        if not query:
            return EvaluationResult.failure(ErrorKind.empty_input)

        url = f"{self.base_url}/evaluate"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url, params={"query": query})
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise CalculatorHttpServiceError("Calculator service is unavailable.") from exc

        if response.status_code != 200:
            message = "Calculator request failed."
            try:
                payload = response.json()
            except ValueError:
                payload = None
            if isinstance(payload, dict):
                error = payload.get("error")
                if isinstance(error, dict):
                    message = error.get("message", message)
            raise CalculatorHttpServiceError(message, details={"status": response.status_code})

        try:
            payload = response.json()
        except ValueError as exc:
            raise CalculatorHttpServiceError("Calculator response was not valid JSON.") from exc

        try:
            return EvaluationResult.model_validate(payload)
        except ValidationError as exc:
            raise CalculatorHttpServiceError("Calculator response did not match the result envelope.") from exc
