# valuetrack/routers/charts.py
"""
Chart timeline endpoints.

- GET /charts/portfolio         - Portfolio total replayed from every update
- GET /charts/accounts/{id}     - One account's values

`period` slices the timeline: last_update keeps the final two points, the
fixed windows keep points since the cutoff plus the last point before it.
"""

from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from valuetrack.database import get_db
from valuetrack.dependencies import get_session_factory, get_timeline_service
from valuetrack.schemas.charts import ChartPoint, ChartResponse
from valuetrack.services.periods import TimePeriod
from valuetrack.services.timeline import ChartDataPoint, TimelineService, timeline_for_period

router = APIRouter(
    prefix="/charts",
    tags=["Charts"],
)


def _map_points(points: list[ChartDataPoint]) -> list[ChartPoint]:
    return [ChartPoint(date=p.date, value=p.value, chart_value=p.chart_value) for p in points]


@router.get(
    "/portfolio",
    response_model=ChartResponse,
    summary="Portfolio value timeline",
)
async def get_portfolio_chart(
        period: TimePeriod = Query(default=TimePeriod.ALL_TIME),
        account_ids: list[int] | None = Query(default=None, description="Restrict to these accounts"),
        service: TimelineService = Depends(get_timeline_service),
        session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> ChartResponse:
    """
    One point per update across active accounts, each carrying the
    portfolio total right after that update.
    """
    timeline = await service.build_timeline_async(session_factory, account_ids)
    points = timeline_for_period(timeline, period, datetime.now())
    return ChartResponse(
        period=period,
        display_name=period.display_name,
        points=_map_points(points),
        count=len(points),
    )


@router.get(
    "/accounts/{account_id}",
    response_model=ChartResponse,
    summary="Account value timeline",
)
def get_account_chart(
        account_id: int,
        period: TimePeriod = Query(default=TimePeriod.ALL_TIME),
        db: Session = Depends(get_db),
        service: TimelineService = Depends(get_timeline_service),
) -> ChartResponse:
    points = service.get_account_chart(db, account_id, period)
    return ChartResponse(
        period=period,
        display_name=period.display_name,
        account_id=account_id,
        points=_map_points(points),
        count=len(points),
    )
