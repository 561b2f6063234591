# tests/routers/test_snapshots_api.py
"""
Integration tests for the snapshot maintenance endpoints.

Rows are seeded directly (no snapshot maintenance) so the endpoints have
gaps to report and fill.
"""

from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from valuetrack.models import PortfolioSnapshot
from valuetrack.services.snapshots import RecalculationWorker
from tests.conftest import create_account, create_update
from tests.routers.conftest import days_ago


def seed_account(db: Session, name: str, value: str, created_days_ago: int):
    account = create_account(db, name=name, created_at=days_ago(created_days_ago, hour=9))
    create_update(db, account, value, days_ago(created_days_ago, hour=9))
    return account


class TestCoverage:
    """Tests for the coverage endpoints."""

    def test_verify_reports_missing_days(self, client: TestClient, db: Session):
        account = seed_account(db, "Savings", "100", 3)

        response = client.get(f"/snapshots/accounts/{account.id}/coverage")

        assert response.status_code == 200
        data = response.json()
        assert data["expected_count"] == 4
        assert data["actual_count"] == 0
        assert len(data["missing_days"]) == 4
        assert data["is_complete"] is False

    def test_fill_is_idempotent(self, client: TestClient, db: Session):
        account = seed_account(db, "Savings", "100", 3)

        first = client.post("/snapshots/coverage", json={"account_id": account.id})
        second = client.post("/snapshots/coverage", json={"account_id": account.id})

        assert first.status_code == 200
        assert first.json()["created"] == 4
        assert second.json()["created"] == 0
        report = client.get(f"/snapshots/accounts/{account.id}/coverage").json()
        assert report["is_complete"] is True

    def test_fill_everything_includes_portfolio(self, client: TestClient, db: Session):
        seed_account(db, "A", "100", 2)
        seed_account(db, "B", "50", 1)

        response = client.post("/snapshots/coverage", json={})

        assert response.status_code == 200
        db.expire_all()
        totals = [s.total_value for s in db.scalars(select(PortfolioSnapshot).order_by(PortfolioSnapshot.date))]
        assert totals == [Decimal("100"), Decimal("150"), Decimal("150")]

    def test_unknown_account_returns_404(self, client: TestClient):
        response = client.get("/snapshots/accounts/404/coverage")

        assert response.status_code == 404


class TestRecalculationJobs:
    """Tests for the background rebuild endpoints."""

    def test_recalculate_runs_in_background(
            self,
            client: TestClient,
            db: Session,
            worker: RecalculationWorker,
    ):
        seed_account(db, "A", "100", 2)
        seed_account(db, "B", "50", 1)

        response = client.post(
            "/snapshots/portfolio/recalculate",
            json={"from_date": days_ago(2).date().isoformat()},
        )

        assert response.status_code == 202
        data = response.json()
        assert data["status"] in {"pending", "running", "completed"}
        assert data["from_date"] == days_ago(2).date().isoformat()

        worker.wait(data["job_id"], timeout=10)
        job = client.get(f"/snapshots/jobs/{data['job_id']}").json()
        assert job["status"] == "completed"
        assert job["result"]["days_processed"] == 3
        assert job["finished_at"] is not None

        db.expire_all()
        totals = [s.total_value for s in db.scalars(select(PortfolioSnapshot).order_by(PortfolioSnapshot.date))]
        assert totals == [Decimal("100"), Decimal("150"), Decimal("150")]

    def test_cancel_finished_job_is_a_no_op(self, client: TestClient, db: Session, worker: RecalculationWorker):
        seed_account(db, "A", "100", 1)
        job_id = client.post(
            "/snapshots/portfolio/recalculate",
            json={"from_date": days_ago(1).date().isoformat()},
        ).json()["job_id"]
        worker.wait(job_id, timeout=10)

        response = client.delete(f"/snapshots/jobs/{job_id}")

        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    def test_unknown_job_returns_404(self, client: TestClient):
        response = client.get("/snapshots/jobs/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == "JobNotFoundError"

    def test_missing_from_date_returns_422(self, client: TestClient):
        response = client.post("/snapshots/portfolio/recalculate", json={})

        assert response.status_code == 422
