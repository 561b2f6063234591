# valuetrack/schemas/__init__.py
"""
Pydantic schemas for API request/response validation:
- accounts: Account and update CRUD
- charts: Timelines for charts
- errors: Error response formats
- performance: Period performance results
- snapshots: Snapshot maintenance and rebuild jobs
- validation: Input validation endpoints
"""

from valuetrack.schemas.accounts import (
    AccountCreate,
    AccountListResponse,
    AccountResponse,
    AccountUpdateCreate,
    AccountUpdateResponse,
    UpdateDeletedResponse,
)
from valuetrack.schemas.charts import ChartPoint, ChartResponse
from valuetrack.schemas.errors import ErrorDetail, ValidationErrorDetail
from valuetrack.schemas.performance import PerformanceResponse, PerformanceSummaryResponse
from valuetrack.schemas.snapshots import (
    CoverageReportResponse,
    CoverageRequest,
    JobResponse,
    MaintenanceResponse,
    RecalculateRequest,
)
from valuetrack.schemas.validation import (
    AccountNameValidationRequest,
    MonetaryValidationRequest,
    ValidationResponse,
)

__all__ = [
    "AccountCreate",
    "AccountListResponse",
    "AccountResponse",
    "AccountUpdateCreate",
    "AccountUpdateResponse",
    "UpdateDeletedResponse",
    "ChartPoint",
    "ChartResponse",
    "ErrorDetail",
    "ValidationErrorDetail",
    "PerformanceResponse",
    "PerformanceSummaryResponse",
    "CoverageReportResponse",
    "CoverageRequest",
    "JobResponse",
    "MaintenanceResponse",
    "RecalculateRequest",
    "AccountNameValidationRequest",
    "MonetaryValidationRequest",
    "ValidationResponse",
]
