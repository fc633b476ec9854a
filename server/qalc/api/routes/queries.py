from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response

from qalc.core.config import get_settings
from qalc.core.exceptions import AppError
from qalc.models.calculator import QueryRequest, QueryState
from qalc.services.calculator import CalculatorService
from qalc.services.calculator_http import CalculatorHttpService
from qalc.services.query_cache import QueryController, QueryResultCache

router = APIRouter(prefix="/queries", tags=["queries"])


class QueryNotFoundError(AppError):
    status_code = 404
    error_type = "QUERY_NOT_FOUND"


class NotAnExpressionError(AppError):
    status_code = 422
    error_type = "NOT_AN_EXPRESSION"


def get_query_cache(request: Request) -> QueryResultCache:
    return request.app.state.query_cache


def get_query_controller(cache: QueryResultCache = Depends(get_query_cache)) -> QueryController:
    settings = get_settings()
    if settings.calc_tool_mode.lower() == "http":
        calculator = CalculatorHttpService.from_settings()
    else:
        calculator = CalculatorService.from_settings()
    return QueryController(calculator=calculator, cache=cache)


@router.post("", response_model=QueryState)
async def submit_query(
    request: QueryRequest,
    controller: QueryController = Depends(get_query_controller),
) -> QueryState:
    state = controller.submit(request.query)
    if state is None:
        raise NotAnExpressionError(
            "Query does not look like an arithmetic expression.",
            details={"query": request.query},
        )
    return state


@router.get("", response_model=QueryState)
async def get_query_state(
    query: str = Query(..., description="Query text previously submitted."),
    cache: QueryResultCache = Depends(get_query_cache),
) -> QueryState:
    state = cache.get(query)
    if state is None:
        raise QueryNotFoundError("No cached state for query.", details={"query": query})
    return state


@router.delete("", status_code=204)
async def reset_queries(cache: QueryResultCache = Depends(get_query_cache)) -> Response:
    cache.reset()
    return Response(status_code=204)
