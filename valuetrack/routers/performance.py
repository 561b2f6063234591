# valuetrack/routers/performance.py
"""
Performance endpoints.

- GET /performance/portfolio          - Portfolio change over a period
- GET /performance/accounts/{id}      - One account's change over a period
- GET /performance/summary            - Every period at once

Responses always succeed; when there is nothing meaningful to compare the
result carries has_data=false and zeros.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from valuetrack.database import get_db
from valuetrack.dependencies import get_performance_service
from valuetrack.schemas.performance import PerformanceResponse, PerformanceSummaryResponse
from valuetrack.services.performance import PerformanceResult, PerformanceService
from valuetrack.services.periods import TimePeriod

router = APIRouter(
    prefix="/performance",
    tags=["Performance"],
)


def _map_result(result: PerformanceResult) -> PerformanceResponse:
    return PerformanceResponse.model_validate(result)


@router.get(
    "/portfolio",
    response_model=PerformanceResponse,
    summary="Portfolio performance",
)
def get_portfolio_performance(
        period: TimePeriod = Query(default=TimePeriod.ONE_MONTH),
        account_ids: list[int] | None = Query(default=None, description="Restrict to these accounts"),
        db: Session = Depends(get_db),
        service: PerformanceService = Depends(get_performance_service),
) -> PerformanceResponse:
    """
    Change of the summed value of active accounts.

    The baseline is the portfolio total at the start of the period, or the
    earliest total after it when the history is shorter than the period.
    """
    return _map_result(service.calculate_portfolio_performance(db, period, account_ids))


@router.get(
    "/accounts/{account_id}",
    response_model=PerformanceResponse,
    summary="Account performance",
)
def get_account_performance(
        account_id: int,
        period: TimePeriod = Query(default=TimePeriod.ONE_MONTH),
        db: Session = Depends(get_db),
        service: PerformanceService = Depends(get_performance_service),
) -> PerformanceResponse:
    return _map_result(service.calculate_account_performance(db, account_id, period))


@router.get(
    "/summary",
    response_model=PerformanceSummaryResponse,
    summary="Performance for every period",
)
def get_performance_summary(
        account_id: int | None = Query(default=None, description="Account, or omit for the portfolio"),
        db: Session = Depends(get_db),
        service: PerformanceService = Depends(get_performance_service),
) -> PerformanceSummaryResponse:
    results = service.calculate_all_periods(db, account_id)
    return PerformanceSummaryResponse(
        account_id=account_id,
        results=[_map_result(results[p]) for p in TimePeriod],
    )
