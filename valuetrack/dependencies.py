# valuetrack/dependencies.py
"""
Dependency injection for FastAPI routes.

Services are process-wide singletons created lazily on first use, so the
performance cache and the recalculation worker are shared by every
request.

Order matters: define dependencies before dependents
1. get_timeline_service, get_snapshot_maintainer (no deps)
2. get_performance_service (timeline service)
3. get_recalculation_worker (maintainer)
4. get_account_service (maintainer, performance cache, worker)

Usage in routers:
    @router.get("/")
    def list_accounts(
        db: Session = Depends(get_db),
        service: AccountService = Depends(get_account_service),
    ):
        ...
"""

import logging
from collections.abc import Callable
from functools import lru_cache

from sqlalchemy.orm import Session

from valuetrack.database import SessionLocal
from valuetrack.services.accounts import AccountService
from valuetrack.services.performance import PerformanceService
from valuetrack.services.snapshots import RecalculationWorker, SnapshotMaintainer
from valuetrack.services.timeline import TimelineService

logger = logging.getLogger(__name__)


def get_session_factory() -> Callable[[], Session]:
    """Session factory for work that runs off the request thread."""
    return SessionLocal


@lru_cache(maxsize=1)
def get_timeline_service() -> TimelineService:
    return TimelineService()


@lru_cache(maxsize=1)
def get_snapshot_maintainer() -> SnapshotMaintainer:
    return SnapshotMaintainer()


@lru_cache(maxsize=1)
def get_performance_service() -> PerformanceService:
    """Singleton so cached results survive across requests."""
    return PerformanceService(timeline_service=get_timeline_service())


@lru_cache(maxsize=1)
def get_recalculation_worker() -> RecalculationWorker:
    """Singleton worker; its thread starts on the first submitted job."""
    return RecalculationWorker(get_snapshot_maintainer())


@lru_cache(maxsize=1)
def get_account_service() -> AccountService:
    """Account writes invalidate the shared cache and queue rebuilds on the worker."""
    return AccountService(
        maintainer=get_snapshot_maintainer(),
        performance_cache=get_performance_service().cache,
        scheduler=get_recalculation_worker(),
    )
