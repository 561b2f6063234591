# valuetrack/schemas/charts.py
"""Pydantic schemas for chart timelines."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from valuetrack.services.periods import TimePeriod


class ChartPoint(BaseModel):
    date: datetime
    value: Decimal = Field(..., description="Exact value")
    chart_value: float = Field(..., description="Finite float for plotting")


class ChartResponse(BaseModel):
    """A timeline sliced to a period."""

    period: TimePeriod
    display_name: str = Field(..., description="Short period name (e.g. '1M')")
    account_id: int | None = Field(
        default=None,
        description="Account charted, or null for the portfolio"
    )
    points: list[ChartPoint]
    count: int
