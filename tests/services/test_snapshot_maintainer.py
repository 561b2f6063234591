# tests/services/test_snapshot_maintainer.py
"""
Tests for SnapshotMaintainer.

Every call passes an explicit `today` so the fixture calendar
(day 0 = 2024-01-01) is independent of the real date.
"""

import logging
import threading
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from valuetrack.models import Account, AccountSnapshot, AccountUpdate, PortfolioSnapshot
from valuetrack.services.exceptions import OrphanUpdateError, PersistenceError, UpdateNotFoundError
from valuetrack.services.snapshots import SnapshotMaintainer
from valuetrack.services.store import ValueStore
from tests.conftest import at, create_account, create_update, day


@pytest.fixture
def maintainer() -> SnapshotMaintainer:
    return SnapshotMaintainer(chunk_days=2)


def snapshot_values(db: Session, account: Account) -> dict[date, Decimal]:
    rows = db.scalars(
        select(AccountSnapshot)
        .where(AccountSnapshot.account_id == account.id)
        .order_by(AccountSnapshot.date)
    )
    return {s.date: s.value for s in rows}


def portfolio_values(db: Session) -> dict[date, Decimal]:
    rows = db.scalars(select(PortfolioSnapshot).order_by(PortfolioSnapshot.date))
    return {s.date: s.total_value for s in rows}


# =============================================================================
# GAP FILLING / COVERAGE
# =============================================================================

class TestSnapshotCoverage:
    """Tests for fill_missing_snapshots() and ensure_snapshot_coverage()."""

    def test_one_snapshot_per_day_after_ensure(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db, created_at=at(0, hour=9))
        create_update(db, account, "100", at(0))
        create_update(db, account, "200", at(5))

        maintainer.ensure_snapshot_coverage(db, today=day(10))

        report = maintainer.verify_snapshot_coverage(db, account.id, today=day(10))
        assert report.is_complete
        assert report.actual_count == report.expected_count == 11
        values = snapshot_values(db, account)
        assert sorted(values) == [day(n) for n in range(11)]
        assert all(values[day(n)] == Decimal("100") for n in range(5))
        assert all(values[day(n)] == Decimal("200") for n in range(5, 11))

    def test_fill_is_idempotent(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        create_update(db, account, "100", at(0))

        first = maintainer.fill_missing_snapshots(db, account.id, day(6))
        second = maintainer.fill_missing_snapshots(db, account.id, day(6))

        assert first.created == 7
        assert second.created == 0
        assert len(snapshot_values(db, account)) == 7

    def test_fill_keeps_existing_snapshots(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        create_update(db, account, "100", at(0))
        db.add(AccountSnapshot(account_id=account.id, date=day(2), value=Decimal("175")))
        db.commit()

        maintainer.fill_missing_snapshots(db, account.id, day(4))

        values = snapshot_values(db, account)
        assert values[day(2)] == Decimal("175")
        # Days after a snapshot with no newer update carry the update value
        assert values[day(3)] == Decimal("100")

    def test_account_without_updates_gets_no_snapshots(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)

        result = maintainer.fill_missing_snapshots(db, account.id, day(3))

        assert result.created == 0
        assert not maintainer.verify_snapshot_coverage(db, account.id, today=day(3)).is_complete

    def test_ensure_adds_portfolio_days(self, db: Session, maintainer: SnapshotMaintainer):
        a = create_account(db, "A")
        create_update(db, a, "1000", at(0))

        result = maintainer.ensure_snapshot_coverage(db, today=day(3))

        assert result.error is None
        assert portfolio_values(db) == {day(n): Decimal("1000") for n in range(4)}
        assert maintainer.ensure_snapshot_coverage(db, today=day(3)).created == 0

    def test_verify_reports_missing_days(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        for n in (0, 1, 3):
            db.add(AccountSnapshot(account_id=account.id, date=day(n), value=Decimal("1")))
        db.commit()

        report = maintainer.verify_snapshot_coverage(db, account.id, today=day(3))

        assert report.missing_days == [day(2)]
        assert report.expected_count == 4
        assert report.actual_count == 3
        assert not report.is_complete

    def test_save_failure_is_reported_not_raised(self, db: Session, maintainer: SnapshotMaintainer, monkeypatch):
        account = create_account(db)
        create_update(db, account, "100", at(0))

        def failing_commit(self):
            raise PersistenceError("disk full", operation="commit")

        monkeypatch.setattr(ValueStore, "commit", failing_commit)
        result = maintainer.fill_missing_snapshots(db, account.id, day(2))

        assert result.error == "disk full"
        assert not result.succeeded
        db.rollback()


# =============================================================================
# UPDATES
# =============================================================================

class TestUpdateAccountSnapshot:
    """Tests for update_account_snapshot()."""

    def test_upserts_the_update_day(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        create_update(db, account, "100", at(0))
        maintainer.fill_missing_snapshots(db, account.id, day(3))

        create_update(db, account, "150", at(3))
        result = maintainer.update_account_snapshot(db, account.id, Decimal("150"), at(3), today=day(3))

        assert result.updated == 1
        assert snapshot_values(db, account)[day(3)] == Decimal("150")

    def test_fills_gap_before_update(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        create_update(db, account, "100", at(0))
        create_update(db, account, "300", at(4))

        maintainer.update_account_snapshot(db, account.id, Decimal("300"), at(4), today=day(4))

        values = snapshot_values(db, account)
        assert sorted(values) == [day(n) for n in range(5)]
        assert values[day(3)] == Decimal("100")
        assert values[day(4)] == Decimal("300")

    def test_backdated_update_carries_forward_to_next_update(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        create_update(db, account, "100", at(0))
        create_update(db, account, "400", at(4))
        maintainer.fill_missing_snapshots(db, account.id, day(5))

        create_update(db, account, "250", at(2))
        maintainer.update_account_snapshot(db, account.id, Decimal("250"), at(2), today=day(5))

        values = snapshot_values(db, account)
        assert [values[day(n)] for n in range(6)] == [
            Decimal("100"), Decimal("100"), Decimal("250"), Decimal("250"), Decimal("400"), Decimal("400"),
        ]

    def test_latest_update_of_the_day_wins(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        create_update(db, account, "100", at(1, hour=9))
        create_update(db, account, "150", at(1, hour=18))

        maintainer.update_account_snapshot(db, account.id, Decimal("100"), at(1, hour=9), today=day(1))

        assert snapshot_values(db, account)[day(1)] == Decimal("150")


# =============================================================================
# DELETION
# =============================================================================

class TestDeleteAccountUpdate:
    """Tests for delete_account_update() and the values read back afterwards."""

    def test_deleting_middle_update_forward_fills_previous_value(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        create_update(db, account, "100", at(0))
        middle = create_update(db, account, "200", at(1))
        create_update(db, account, "300", at(2))
        maintainer.fill_missing_snapshots(db, account.id, day(4))

        result = maintainer.delete_account_update(db, middle.id, today=day(4))

        values = snapshot_values(db, account)
        assert values[day(1)] == Decimal("100")
        assert values[day(2)] == Decimal("300")
        assert result.deleted == 2
        assert result.created == 2
        assert db.get(AccountUpdate, middle.id) is None

    def test_values_in_window_match_remaining_updates(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        create_update(db, account, "100", at(0))
        removed = create_update(db, account, "200", at(2))
        create_update(db, account, "500", at(6))
        maintainer.fill_missing_snapshots(db, account.id, day(8))

        maintainer.delete_account_update(db, removed.id, today=day(8))

        expected = {n: Decimal("100") for n in range(6)} | {n: Decimal("500") for n in (6, 7, 8)}
        for n, value in expected.items():
            assert maintainer.get_account_value_at(db, account.id, day(n)) == value

    def test_deleting_first_update_carries_earliest_remaining(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        first = create_update(db, account, "100", at(0))
        create_update(db, account, "400", at(3))
        maintainer.fill_missing_snapshots(db, account.id, day(3))

        maintainer.delete_account_update(db, first.id, today=day(3))

        assert set(snapshot_values(db, account).values()) == {Decimal("400")}

    def test_deleting_only_update_falls_back_to_zero(self, db: Session, maintainer: SnapshotMaintainer, caplog):
        account = create_account(db)
        only = create_update(db, account, "100", at(0))
        maintainer.fill_missing_snapshots(db, account.id, day(2))

        with caplog.at_level(logging.WARNING):
            maintainer.delete_account_update(db, only.id, today=day(2))

        assert snapshot_values(db, account) == {day(n): Decimal("0") for n in range(3)}
        assert "no remaining updates" in caplog.text

    def test_unknown_update(self, db: Session, maintainer: SnapshotMaintainer):
        with pytest.raises(UpdateNotFoundError):
            maintainer.delete_account_update(db, 12345, today=day(1))

    def test_orphan_update(self, db: Session, maintainer: SnapshotMaintainer):
        orphan = AccountUpdate(account_id=999, value=Decimal("10"), date=at(0))
        db.add(orphan)
        db.commit()

        with pytest.raises(OrphanUpdateError) as exc_info:
            maintainer.delete_account_update(db, orphan.id, today=day(1))

        assert exc_info.value.account_id == 999


# =============================================================================
# READS
# =============================================================================

class TestValueReads:
    """Tests for get_value_for_date() and get_account_value_at()."""

    def test_value_for_date_forward_fills(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        create_update(db, account, "100", at(0))
        create_update(db, account, "300", at(3))

        assert maintainer.get_value_for_date(db, account.id, day(2)) == Decimal("100")
        assert maintainer.get_value_for_date(db, account.id, day(3)) == Decimal("300")

    def test_value_at_without_snapshots_uses_updates(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        create_update(db, account, "100", at(1))

        assert maintainer.get_account_value_at(db, account.id, day(0)) is None
        assert maintainer.get_account_value_at(db, account.id, day(1)) == Decimal("100")
        assert maintainer.get_account_value_at(db, account.id, at(1, hour=6)) is None

    def test_value_at_prefers_snapshot(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        create_update(db, account, "100", at(0))
        db.add(AccountSnapshot(account_id=account.id, date=day(0), value=Decimal("90")))
        db.commit()

        assert maintainer.get_account_value_at(db, account.id, day(0)) == Decimal("90")
        assert maintainer.get_account_value_at(db, account.id, day(5)) == Decimal("90")

    def test_current_snapshot_value(self, db: Session, maintainer: SnapshotMaintainer):
        account = create_account(db)
        assert maintainer.get_current_snapshot_value(db, account.id) == Decimal("0")

        create_update(db, account, "100", at(0))
        assert maintainer.get_current_snapshot_value(db, account.id) == Decimal("100")


# =============================================================================
# PORTFOLIO
# =============================================================================

class TestPortfolioSnapshots:
    """Tests for update_portfolio_snapshot() and recalculate_portfolio_snapshots()."""

    @pytest.fixture
    def two_accounts(self, db: Session, maintainer: SnapshotMaintainer):
        a = create_account(db, "A", created_at=at(0, hour=9))
        b = create_account(db, "B", created_at=at(2, hour=9))
        create_update(db, a, "1000", at(0))
        create_update(db, b, "500", at(2))
        create_update(db, b, "200", at(4))
        maintainer.fill_missing_snapshots(db, a.id, day(5))
        maintainer.fill_missing_snapshots(db, b.id, day(5))
        return a, b

    def test_recalculate_sums_active_accounts(self, db: Session, maintainer: SnapshotMaintainer, two_accounts):
        result = maintainer.recalculate_portfolio_snapshots(db, day(0), today=day(5))

        assert result.days_processed == 6
        assert result.succeeded
        assert portfolio_values(db) == {
            day(0): Decimal("1000"),
            day(1): Decimal("1000"),
            day(2): Decimal("1500"),
            day(3): Decimal("1500"),
            day(4): Decimal("1200"),
            day(5): Decimal("1200"),
        }

    def test_recalculate_overwrites_existing_totals(self, db: Session, maintainer: SnapshotMaintainer, two_accounts):
        db.add(PortfolioSnapshot(date=day(3), total_value=Decimal("1")))
        db.commit()

        result = maintainer.recalculate_portfolio_snapshots(db, day(3), today=day(5))

        assert result.updated == 1
        assert result.created == 2
        assert portfolio_values(db)[day(3)] == Decimal("1500")

    def test_recalculate_skips_closed_accounts(self, db: Session, maintainer: SnapshotMaintainer, two_accounts):
        _, b = two_accounts
        b.is_active = False
        db.commit()

        maintainer.recalculate_portfolio_snapshots(db, day(0), today=day(5))

        assert set(portfolio_values(db).values()) == {Decimal("1000")}

    def test_recalculate_removes_days_before_any_account(self, db: Session, maintainer: SnapshotMaintainer,
                                                         two_accounts):
        db.add(PortfolioSnapshot(date=day(-3), total_value=Decimal("5")))
        db.commit()

        result = maintainer.recalculate_portfolio_snapshots(db, day(-5), today=day(5))

        assert result.deleted == 1
        assert min(portfolio_values(db)) == day(0)

    def test_cancellation_stops_between_days(self, db: Session, maintainer: SnapshotMaintainer, two_accounts):
        cancel = threading.Event()
        progress_calls = []

        def on_progress(last_day, done, total):
            progress_calls.append((last_day, done, total))
            cancel.set()

        result = maintainer.recalculate_portfolio_snapshots(
            db, day(0), today=day(5), cancel_event=cancel, progress=on_progress
        )

        assert result.cancelled
        assert result.days_processed == 2
        assert progress_calls == [(day(1), 2, 6)]
        assert sorted(portfolio_values(db)) == [day(0), day(1)]

    def test_portfolio_write_between_chunks_is_not_duplicated(self, db: Session, two_accounts):
        maintainer = SnapshotMaintainer(chunk_days=1)

        def write_last_day(last_day, done, total):
            if done == 1:
                maintainer.update_portfolio_snapshot(db, day(5))

        result = maintainer.recalculate_portfolio_snapshots(db, day(0), today=day(5), progress=write_last_day)

        assert result.error is None
        assert result.days_processed == 6
        days = [s.date for s in db.scalars(select(PortfolioSnapshot).order_by(PortfolioSnapshot.date))]
        assert days == [day(n) for n in range(6)]
        assert portfolio_values(db)[day(5)] == Decimal("1200")

    def test_account_write_between_chunks_is_not_overwritten(self, db: Session, two_accounts):
        a, _ = two_accounts
        maintainer = SnapshotMaintainer(chunk_days=1)

        def record_new_value(last_day, done, total):
            if done == 1:
                create_update(db, a, "3000", at(4, hour=18))
                maintainer.update_account_snapshot(db, a.id, Decimal("3000"), at(4, hour=18), today=day(5))

        result = maintainer.recalculate_portfolio_snapshots(db, day(0), today=day(5), progress=record_new_value)

        assert result.error is None
        totals = portfolio_values(db)
        assert totals[day(3)] == Decimal("1500")
        assert totals[day(4)] == Decimal("3200")
        assert totals[day(5)] == Decimal("3200")

    def test_update_portfolio_snapshot_single_day(self, db: Session, maintainer: SnapshotMaintainer, two_accounts):
        assert maintainer.update_portfolio_snapshot(db, day(1)) == Decimal("1000")
        assert maintainer.update_portfolio_snapshot(db, day(4)) == Decimal("1200")
        assert portfolio_values(db) == {day(1): Decimal("1000"), day(4): Decimal("1200")}

    def test_recalculate_without_accounts(self, db: Session, maintainer: SnapshotMaintainer):
        result = maintainer.recalculate_portfolio_snapshots(db, day(0), today=day(3))

        assert result.days_processed == 0
        assert portfolio_values(db) == {}
