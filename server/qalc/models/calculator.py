from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator

ResultValue = int | float | str


class ErrorKind(str, Enum):
    invalid_input = "InvalidInput"
    empty_input = "EmptyInput"
    invalid_characters = "InvalidCharacters"
    not_an_expression = "NotAnExpression"
    evaluation_failed = "EvaluationFailed"
    invalid_result = "InvalidResult"
    evaluation_error = "EvaluationError"


ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.invalid_input: "Invalid expression.",
    ErrorKind.empty_input: "Empty expression.",
    ErrorKind.invalid_characters: "Invalid characters in expression.",
    ErrorKind.not_an_expression: "Not a valid mathematical expression.",
    ErrorKind.evaluation_failed: "Expression evaluation failed.",
    ErrorKind.invalid_result: "Expression produced an invalid result.",
    ErrorKind.evaluation_error: "Expression evaluation error.",
}


class EvaluationResult(BaseModel):
    success: bool = Field(..., description="Whether the expression produced a value.")
    result: ResultValue | None = Field(
        default=None,
        description="Evaluated value; large exact integers are returned as digit strings.",
    )
    error: ErrorKind | None = Field(default=None, description="Failure classification when success is false.")
    detail: str | None = Field(default=None, description="Diagnostic text for unexpected evaluation faults.")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_outcome(self) -> "EvaluationResult":
        if self.success and (self.result is None or self.error is not None):
            raise ValueError("A successful evaluation carries a result and no error.")
        if not self.success and (self.error is None or self.result is not None):
            raise ValueError("A failed evaluation carries an error and no result.")
        return self

    @classmethod
    def ok(cls, value: ResultValue) -> "EvaluationResult":
        return cls(success=True, result=value)

    @classmethod
    def failure(cls, kind: ErrorKind, detail: str | None = None) -> "EvaluationResult":
        return cls(success=False, error=kind, detail=detail)

    @property
    def message(self) -> str | None:
        if self.error is None:
            return None
        text = ERROR_MESSAGES[self.error]
        if self.detail:
            return f"{text.rstrip('.')}: {self.detail}"
        return text


class CalculatorResult(BaseModel):
    expression: str = Field(..., description="The arithmetic expression that was evaluated.")
    result: ResultValue = Field(..., description="The evaluated numerical result.")


class CandidateCheck(BaseModel):
    query: str = Field(..., description="Text that was checked.")
    candidate: bool = Field(..., description="Whether the text looks like an arithmetic expression.")


class QueryRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Launcher query text to evaluate.")


class QueryState(BaseModel):
    query: str = Field(..., description="Query text the state is cached under.")
    result: str = Field(default="", description="Display text of the evaluated value.")
    pending: bool = Field(default=False, description="Evaluation has started but not settled.")
    error: bool = Field(default=False, description="Evaluation settled without a displayable value.")
