# valuetrack/routers/snapshots.py
"""
Snapshot maintenance endpoints.

- POST   /snapshots/coverage                  - Fill missing snapshots (idempotent)
- GET    /snapshots/accounts/{id}/coverage    - Report gaps and duplicates
- POST   /snapshots/portfolio/recalculate     - Queue a portfolio rebuild (202)
- GET    /snapshots/jobs/{job_id}             - Rebuild job status
- DELETE /snapshots/jobs/{job_id}             - Cancel a rebuild job

Rebuilds run on the recalculation worker thread; a request only gets the
job id back and polls the job endpoint.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from valuetrack.database import get_db
from valuetrack.dependencies import get_recalculation_worker, get_snapshot_maintainer
from valuetrack.middleware.rate_limit import RATE_LIMIT_RECALCULATE, RATE_LIMIT_WRITE, limiter
from valuetrack.schemas.snapshots import (
    CoverageReportResponse,
    CoverageRequest,
    JobResponse,
    MaintenanceResponse,
    RecalculateRequest,
)
from valuetrack.services.snapshots import (
    CoverageReport,
    MaintenanceResult,
    RecalculationJob,
    RecalculationWorker,
    SnapshotMaintainer,
)

router = APIRouter(
    prefix="/snapshots",
    tags=["Snapshots"],
)


def _map_result(result: MaintenanceResult) -> MaintenanceResponse:
    return MaintenanceResponse.model_validate(result)


def _map_report(report: CoverageReport) -> CoverageReportResponse:
    return CoverageReportResponse(
        account_id=report.account_id,
        start_day=report.start_day,
        end_day=report.end_day,
        expected_count=report.expected_count,
        actual_count=report.actual_count,
        missing_days=report.missing_days,
        duplicate_days=report.duplicate_days,
        is_complete=report.is_complete,
    )


def _map_job(job: RecalculationJob) -> JobResponse:
    return JobResponse(
        job_id=job.job_id,
        status=job.status,
        from_date=job.from_day,
        submitted_at=job.submitted_at,
        started_at=job.started_at,
        finished_at=job.finished_at,
        result=_map_result(job.result) if job.result is not None else None,
        error=job.error,
    )


# =============================================================================
# COVERAGE
# =============================================================================

@router.post(
    "/coverage",
    response_model=MaintenanceResponse,
    summary="Fill missing snapshots",
)
@limiter.limit(RATE_LIMIT_WRITE)
def ensure_coverage(
        request: Request,  # Required for rate limiting
        payload: CoverageRequest,
        db: Session = Depends(get_db),
        maintainer: SnapshotMaintainer = Depends(get_snapshot_maintainer),
) -> MaintenanceResponse:
    """
    Forward-fill every missing day up to today.

    Safe to call repeatedly; a second call creates nothing.
    """
    return _map_result(maintainer.ensure_snapshot_coverage(db, payload.account_id))


@router.get(
    "/accounts/{account_id}/coverage",
    response_model=CoverageReportResponse,
    summary="Verify an account's snapshot coverage",
)
def verify_coverage(
        account_id: int,
        db: Session = Depends(get_db),
        maintainer: SnapshotMaintainer = Depends(get_snapshot_maintainer),
) -> CoverageReportResponse:
    return _map_report(maintainer.verify_snapshot_coverage(db, account_id))


# =============================================================================
# PORTFOLIO REBUILDS
# =============================================================================

@router.post(
    "/portfolio/recalculate",
    response_model=JobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Rebuild portfolio totals in the background",
)
@limiter.limit(RATE_LIMIT_RECALCULATE)
def recalculate_portfolio(
        request: Request,  # Required for rate limiting
        payload: RecalculateRequest,
        worker: RecalculationWorker = Depends(get_recalculation_worker),
) -> JobResponse:
    job_id = worker.submit(payload.from_date)
    return _map_job(worker.get_job(job_id))


@router.get(
    "/jobs/{job_id}",
    response_model=JobResponse,
    summary="Rebuild job status",
)
def get_job(
        job_id: str,
        worker: RecalculationWorker = Depends(get_recalculation_worker),
) -> JobResponse:
    return _map_job(worker.get_job(job_id))


@router.delete(
    "/jobs/{job_id}",
    response_model=JobResponse,
    summary="Cancel a rebuild job",
)
def cancel_job(
        job_id: str,
        worker: RecalculationWorker = Depends(get_recalculation_worker),
) -> JobResponse:
    """
    Pending jobs are dropped; a running job stops after the day it is
    writing, keeping the days already rebuilt.
    """
    return _map_job(worker.cancel(job_id))
