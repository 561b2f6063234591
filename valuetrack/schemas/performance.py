# valuetrack/schemas/performance.py
"""Pydantic schemas for performance results."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from valuetrack.services.periods import TimePeriod


class PerformanceResponse(BaseModel):
    """Change over one period for an account or the portfolio."""

    model_config = ConfigDict(from_attributes=True)

    period: TimePeriod
    percentage: float = Field(..., description="Change in percent of the baseline")
    absolute: Decimal = Field(..., description="Current minus baseline value")
    is_positive: bool
    has_data: bool = Field(..., description="False when there is nothing meaningful to compare")
    period_label: str = Field(..., description="e.g. 'Past month' or 'Since Mar 5, 2024'")
    baseline_date: datetime | None = None
    current_date: datetime | None = None
    baseline_value: Decimal | None = None
    current_value: Decimal | None = None


class PerformanceSummaryResponse(BaseModel):
    """Every period at once."""

    account_id: int | None = None
    results: list[PerformanceResponse]
