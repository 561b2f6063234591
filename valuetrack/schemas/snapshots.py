# valuetrack/schemas/snapshots.py
"""Pydantic schemas for snapshot maintenance and background rebuilds."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from valuetrack.services.snapshots.types import JobStatus


class CoverageRequest(BaseModel):
    account_id: int | None = Field(
        default=None,
        description="Account to fill; omit for every account plus portfolio totals"
    )


class MaintenanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    created: int
    updated: int
    deleted: int
    days_processed: int
    cancelled: bool
    error: str | None = None


class CoverageReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_id: int
    start_day: date
    end_day: date
    expected_count: int
    actual_count: int
    missing_days: list[date]
    duplicate_days: list[date]
    is_complete: bool


class RecalculateRequest(BaseModel):
    from_date: date = Field(..., description="First day of portfolio totals to rebuild")


class JobResponse(BaseModel):
    job_id: str
    status: JobStatus
    from_date: date
    submitted_at: datetime
    started_at: datetime | None = None
    finished_at: datetime | None = None
    result: MaintenanceResponse | None = None
    error: str | None = None
