from fastapi import APIRouter, Depends, Query

from qalc.models.calculator import CalculatorResult, CandidateCheck, EvaluationResult
from qalc.services.calculator import CalculatorService
from qalc.services.validator import is_candidate_expression

router = APIRouter(tags=["calculator"])


def get_calculator_service() -> CalculatorService:
    return CalculatorService.from_settings()


@router.get("/calc", response_model=CalculatorResult)
async def evaluate_calculator_expression(
    query: str = Query(..., description="Arithmetic expression to evaluate."),
    service: CalculatorService = Depends(get_calculator_service),
) -> CalculatorResult:
    return service.evaluate_strict(query)


@router.get("/calc/candidate", response_model=CandidateCheck)
async def check_calculator_candidate(
    query: str = Query(..., description="Launcher text to classify."),
) -> CandidateCheck:
    return CandidateCheck(query=query, candidate=is_candidate_expression(query))


@router.get("/evaluate", response_model=EvaluationResult)
async def evaluate_expression_envelope(
    query: str = Query(..., description="Arithmetic expression to evaluate."),
    service: CalculatorService = Depends(get_calculator_service),
) -> EvaluationResult:
    return service.evaluate(query)
