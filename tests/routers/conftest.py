# tests/routers/conftest.py
"""
API test fixtures.

The client runs the real application against the in-memory test database.
Services are replaced with fresh instances per test so cached results and
queued jobs never leak between tests. Account writes rebuild portfolio
totals inline; the recalculation worker is only used by the snapshot
endpoints.
"""

from datetime import datetime, timedelta
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from valuetrack.database import get_db
from valuetrack.dependencies import (
    get_account_service,
    get_performance_service,
    get_recalculation_worker,
    get_session_factory,
    get_snapshot_maintainer,
    get_timeline_service,
)
from valuetrack.main import app
from valuetrack.services.accounts import AccountService
from valuetrack.services.performance import PerformanceService
from valuetrack.services.snapshots import RecalculationWorker, SnapshotMaintainer
from valuetrack.services.timeline import TimelineService


@pytest.fixture(scope="function")
def worker(session_factory) -> Iterator[RecalculationWorker]:
    worker = RecalculationWorker(SnapshotMaintainer(), session_factory=session_factory)
    yield worker
    worker.stop()


@pytest.fixture(scope="function")
def client(db: Session, session_factory, worker: RecalculationWorker) -> Iterator[TestClient]:
    """TestClient with database and service overrides."""
    maintainer = SnapshotMaintainer()
    timeline_service = TimelineService()
    performance_service = PerformanceService(timeline_service=timeline_service)
    account_service = AccountService(
        maintainer=maintainer,
        performance_cache=performance_service.cache,
        maintain_snapshots=True,
    )

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_snapshot_maintainer] = lambda: maintainer
    app.dependency_overrides[get_timeline_service] = lambda: timeline_service
    app.dependency_overrides[get_performance_service] = lambda: performance_service
    app.dependency_overrides[get_account_service] = lambda: account_service
    app.dependency_overrides[get_recalculation_worker] = lambda: worker

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# =============================================================================
# HELPERS
# =============================================================================

def days_ago(n: int, hour: int = 12) -> datetime:
    """A timestamp n days before today at the given hour."""
    base = datetime.now().replace(hour=hour, minute=0, second=0, microsecond=0)
    return base - timedelta(days=n)


def create_account_via_api(
        client: TestClient,
        name: str = "Savings",
        initial_value: str = "1000",
        created_days_ago: int = 10,
) -> dict:
    response = client.post(
        "/accounts",
        json={
            "name": name,
            "initial_value": initial_value,
            "created_at": days_ago(created_days_ago).isoformat(),
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def record_update_via_api(client: TestClient, account_id: int, value: str, n_days_ago: int) -> dict:
    response = client.post(
        f"/accounts/{account_id}/updates",
        json={"value": value, "date": days_ago(n_days_ago).isoformat()},
    )
    assert response.status_code == 201, response.text
    return response.json()
