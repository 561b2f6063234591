# valuetrack/services/snapshots/maintainer.py
"""
Snapshot Maintainer - materialized per-day values for accounts and portfolio.

Keeps one forward-filled snapshot per (account, calendar day) from the
account's creation day to today, plus one portfolio total per day, so that
"value on day X" reads do not need a full timeline replay.

Forward-fill rule for an account on day D:
    1. latest update on D (exact day)
    2. else latest update strictly before D
    3. else latest snapshot before D
    4. else no snapshot

Consistency:
    - Recording an update fills gaps up to its day, upserts that day and
      re-derives the following days up to the next update.
    - Deleting an update rebuilds [day(update), day(next update) or today].
    - Portfolio totals are rebuilt day by day from a start day; a running
      rebuild can be cancelled between days.

Failure handling:
    Saves that fail are logged and reported in MaintenanceResult.error.
    Every entry point is idempotent, so repeating the call after a failure
    is the recovery path. Deleting the update itself is the one primary
    write and propagates PersistenceError.

All writes hold SNAPSHOT_WRITE_LOCK so gap filling never interleaves with
another writer reading the same rows.
"""

from __future__ import annotations

import logging
import threading
from bisect import bisect_right
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from valuetrack.config import settings
from valuetrack.models import Account, AccountSnapshot, AccountUpdate, PortfolioSnapshot
from valuetrack.services.exceptions import OrphanUpdateError, PersistenceError
from valuetrack.services.snapshots.types import CoverageReport, MaintenanceResult
from valuetrack.services.store import ValueStore
from valuetrack.utils.date_utils import (
    days_between,
    end_of_day,
    iter_days,
    start_of_day,
    to_day,
)

logger = logging.getLogger(__name__)

# Serializes every snapshot write in the process
SNAPSHOT_WRITE_LOCK = threading.RLock()

ProgressCallback = Callable[[date, int, int], None]


class _AccountSeries:
    """
    One account's snapshots and updates held in memory for day lookups.

    value_at(day) follows get_account_value_at: latest snapshot on or
    before the day, else latest update on or before the end of the day.
    """

    def __init__(
            self,
            account: Account,
            snapshots: Sequence[AccountSnapshot],
            updates: Sequence[AccountUpdate],
    ) -> None:
        self.account_id = account.id
        self.created_day = to_day(account.created_at)
        self._snapshot_days = [s.date for s in snapshots]
        self._snapshot_values = [s.value for s in snapshots]
        self._update_dates = [u.date for u in updates]
        self._update_values = [u.value for u in updates]

    def value_at(self, day: date) -> Decimal | None:
        i = bisect_right(self._snapshot_days, day)
        if i:
            return self._snapshot_values[i - 1]
        j = bisect_right(self._update_dates, end_of_day(day))
        if j:
            return self._update_values[j - 1]
        return None


class SnapshotMaintainer:
    """
    Maintains AccountSnapshot and PortfolioSnapshot rows.

    Attributes:
        _chunk_days: Portfolio days written per transaction during rebuilds
    """

    def __init__(self, chunk_days: int | None = None) -> None:
        self._chunk_days = chunk_days or settings.recalculation_chunk_days
        logger.info("SnapshotMaintainer initialized")

    # =========================================================================
    # ACCOUNT SNAPSHOTS
    # =========================================================================

    def update_account_snapshot(
            self,
            db: Session,
            account_id: int,
            value: Decimal,
            when: datetime,
            today: date | None = None,
    ) -> MaintenanceResult:
        """
        Bring an account's snapshots in line after an update was recorded.

        Fills any gap up to the update's day, upserts that day's snapshot,
        then re-derives the days after it up to the next later update so a
        backdated update is carried forward.

        Args:
            db: Database session
            account_id: Account that received the update
            value: The recorded value
            when: Timestamp of the recorded update
            today: Reference day (defaults to date.today())
        """
        today = today or date.today()
        day = to_day(when)
        store = ValueStore(db)

        with SNAPSHOT_WRITE_LOCK:
            account = store.get_account(account_id)
            result = self._fill(store, account, day)
            store.flush()

            # A later update on the same day wins over the one just recorded
            latest_that_day = store.latest_update(account_id, at_or_before=end_of_day(day))
            day_value = value
            if latest_that_day is not None and to_day(latest_that_day.date) == day:
                day_value = latest_that_day.value

            existing = store.get_account_snapshot(account_id, day)
            if existing is None:
                store.insert(AccountSnapshot(account_id=account_id, date=day, value=day_value))
                result.created += 1
            elif existing.value != day_value:
                existing.value = day_value
                result.updated += 1

            next_update = self._next_update_after_day(store, account_id, day)
            window_end = to_day(next_update.date) - timedelta(days=1) if next_update else today
            if window_end > day:
                stale = store.fetch_account_snapshots(account_id, day + timedelta(days=1), window_end)
                for snapshot in stale:
                    if snapshot.value != day_value:
                        snapshot.value = day_value
                        result.updated += 1

            self._save(store, result, f"snapshot update for account {account_id}")

        logger.debug(
            f"Account {account_id} snapshot for {day}: "
            f"created={result.created}, updated={result.updated}"
        )
        return result

    def fill_missing_snapshots(
            self,
            db: Session,
            account_id: int,
            up_to: date | None = None,
    ) -> MaintenanceResult:
        """
        Create any missing daily snapshots from account creation to up_to.

        Existing snapshots are left untouched, so calling this repeatedly is
        safe and never produces duplicates.
        """
        store = ValueStore(db)
        with SNAPSHOT_WRITE_LOCK:
            account = store.get_account(account_id)
            result = self._fill(store, account, up_to or date.today())
            self._save(store, result, f"gap fill for account {account_id}")
        if result.created:
            logger.info(f"Filled {result.created} missing snapshots for account {account_id}")
        return result

    def delete_account_update(
            self,
            db: Session,
            update_id: int,
            today: date | None = None,
    ) -> MaintenanceResult:
        """
        Delete an update and rebuild the snapshots it influenced.

        The affected window runs from the update's day to the day of the
        next remaining update (or today). Snapshots in the window are
        deleted and recomputed from the remaining updates.

        Raises:
            UpdateNotFoundError: If the update does not exist
            OrphanUpdateError: If the update's account is missing
            PersistenceError: If deleting the update itself fails
        """
        today = today or date.today()
        store = ValueStore(db)

        with SNAPSHOT_WRITE_LOCK:
            update = store.get_update(update_id)
            account = db.get(Account, update.account_id)
            if account is None:
                raise OrphanUpdateError(update_id, update.account_id)

            deleted_at = update.date
            store.delete(update)
            store.commit()
            logger.info(f"Deleted update {update_id} of account {account.id}")

            remaining = store.fetch_updates([account.id], start=deleted_at)
            window_start = to_day(deleted_at)
            window_end = to_day(remaining[0].date) if remaining else today
            window_end = max(window_end, window_start)

            result = self._rebuild_window(store, account, window_start, window_end)
            self._save(store, result, f"snapshot rebuild for account {account.id}")

        logger.info(
            f"Rebuilt snapshots {window_start}..{window_end} for account {account.id}: "
            f"deleted={result.deleted}, created={result.created}"
        )
        return result

    def rebuild_account_snapshots(
            self,
            db: Session,
            account_id: int,
            today: date | None = None,
    ) -> MaintenanceResult:
        """Delete and regenerate every snapshot of an account up to today."""
        today = today or date.today()
        store = ValueStore(db)
        with SNAPSHOT_WRITE_LOCK:
            account = store.get_account(account_id)
            created_day = to_day(account.created_at)
            result = self._rebuild_window(store, account, created_day, max(today, created_day))
            self._save(store, result, f"full snapshot rebuild for account {account_id}")
        return result

    # =========================================================================
    # ACCOUNT READS
    # =========================================================================

    def get_value_for_date(self, db: Session, account_id: int, day: date) -> Decimal | None:
        """
        Forward-fill value of an account for a day.

        Latest update on or before the day, else latest snapshot before it,
        else None.
        """
        store = ValueStore(db)
        update = store.latest_update(account_id, at_or_before=end_of_day(day))
        if update is not None:
            return update.value
        snapshot = store.latest_account_snapshot(account_id, before_day=day)
        return snapshot.value if snapshot is not None else None

    def get_account_value_at(self, db: Session, account_id: int, when: date | datetime) -> Decimal | None:
        """
        Value of an account on a day, preferring materialized snapshots.

        Same-day snapshot, else latest snapshot strictly before the day,
        else latest update on or before `when`. None if nothing exists.
        """
        store = ValueStore(db)
        day = to_day(when)

        snapshot = store.get_account_snapshot(account_id, day)
        if snapshot is None:
            snapshot = store.latest_account_snapshot(account_id, before_day=day)
        if snapshot is not None:
            return snapshot.value

        cutoff = when if isinstance(when, datetime) else end_of_day(when)
        update = store.latest_update(account_id, at_or_before=cutoff)
        return update.value if update is not None else None

    def get_current_snapshot_value(self, db: Session, account_id: int) -> Decimal:
        """Latest snapshot value, else latest update value, else zero."""
        store = ValueStore(db)
        snapshot = store.latest_account_snapshot(account_id)
        if snapshot is not None:
            return snapshot.value
        update = store.latest_update(account_id)
        return update.value if update is not None else Decimal("0")

    # =========================================================================
    # PORTFOLIO SNAPSHOTS
    # =========================================================================

    def update_portfolio_snapshot(self, db: Session, day: date) -> Decimal:
        """
        Upsert the portfolio total for one day.

        The total sums get_account_value_at over active accounts that
        existed on that day.

        Returns:
            The total written
        """
        store = ValueStore(db)
        with SNAPSHOT_WRITE_LOCK:
            total = Decimal("0")
            for account in store.fetch_accounts(active_only=True):
                if to_day(account.created_at) > day:
                    continue
                value = self.get_account_value_at(db, account.id, day)
                if value is not None:
                    total += value

            result = MaintenanceResult(days_processed=1)
            existing = store.get_portfolio_snapshot(day)
            if existing is None:
                store.insert(PortfolioSnapshot(date=day, total_value=total))
                result.created = 1
            else:
                existing.total_value = total
                result.updated = 1
            self._save(store, result, f"portfolio snapshot for {day}")

        return total

    def recalculate_portfolio_snapshots(
            self,
            db: Session,
            from_day: date,
            today: date | None = None,
            cancel_event: threading.Event | None = None,
            progress: ProgressCallback | None = None,
    ) -> MaintenanceResult:
        """
        Rebuild portfolio totals for every day from from_day to today.

        Days are written in chunks, one transaction per chunk, taking the
        write lock per chunk so interactive writes can interleave. Account
        values and existing portfolio rows are re-read at the start of every
        chunk, so a write made between chunks is neither duplicated nor
        overwritten with older totals. Readers keep seeing the previous
        totals until a day is overwritten.

        Args:
            db: Database session (owned by the caller's thread)
            from_day: First day to rebuild
            today: Last day to rebuild (defaults to date.today())
            cancel_event: Checked before each day; set it to stop early
            progress: Called after each chunk with (last_day, done, total)
        """
        today = today or date.today()
        store = ValueStore(db)
        result = MaintenanceResult()

        with SNAPSHOT_WRITE_LOCK:
            series = self._load_portfolio_series(store, today)
            first_day = min((s.created_day for s in series), default=None)
            start = from_day if first_day is None else max(from_day, first_day)

            # Days before any active account existed carry no total
            stale_end = today if first_day is None else min(today, first_day - timedelta(days=1))
            if from_day <= stale_end:
                result.deleted += store.delete_portfolio_snapshots(from_day, stale_end)
            self._save(store, result, "portfolio snapshot cleanup")

        if first_day is None or start > today:
            return result

        days = list(iter_days(start, today))
        total_days = len(days)

        for offset in range(0, total_days, self._chunk_days):
            chunk = days[offset:offset + self._chunk_days]
            with SNAPSHOT_WRITE_LOCK:
                # Other writers may have run between chunks
                series = self._load_portfolio_series(store, today)
                existing = {s.date: s for s in store.fetch_portfolio_snapshots(chunk[0], chunk[-1])}
                for day in chunk:
                    if cancel_event is not None and cancel_event.is_set():
                        result.cancelled = True
                        break
                    self._write_portfolio_day(store, series, existing, day, result)
                    result.days_processed += 1
                self._save(store, result, f"portfolio rebuild chunk ending {chunk[-1]}")

            if result.cancelled or result.error:
                break
            if progress is not None:
                progress(chunk[-1], result.days_processed, total_days)

        if result.cancelled:
            logger.warning(
                f"Portfolio rebuild from {start} cancelled after {result.days_processed}/{total_days} days"
            )
        elif result.error is None:
            logger.info(f"Rebuilt {result.days_processed} portfolio snapshots from {start}")
        return result

    # =========================================================================
    # COVERAGE
    # =========================================================================

    def ensure_snapshot_coverage(
            self,
            db: Session,
            account_id: int | None = None,
            today: date | None = None,
    ) -> MaintenanceResult:
        """
        Idempotent catch-up: fill every missing snapshot up to today.

        With an account id only that account is filled. Without one every
        account is filled and then missing portfolio days are added.
        """
        today = today or date.today()
        if account_id is not None:
            return self.fill_missing_snapshots(db, account_id, today)

        store = ValueStore(db)
        result = MaintenanceResult()
        for account in store.fetch_accounts():
            result.merge(self.fill_missing_snapshots(db, account.id, today))

        with SNAPSHOT_WRITE_LOCK:
            series = self._load_portfolio_series(store, today)
            first_day = min((s.created_day for s in series), default=None)
            if first_day is not None and first_day <= today:
                existing = {s.date: s for s in store.fetch_portfolio_snapshots(first_day, today)}
                portfolio = MaintenanceResult()
                for day in iter_days(first_day, today):
                    if day not in existing:
                        self._write_portfolio_day(store, series, existing, day, portfolio)
                self._save(store, portfolio, "portfolio gap fill")
                result.merge(portfolio)

        logger.info(f"Snapshot coverage ensured: created={result.created}")
        return result

    def verify_snapshot_coverage(
            self,
            db: Session,
            account_id: int,
            today: date | None = None,
    ) -> CoverageReport:
        """Report missing and duplicate snapshot days for one account."""
        today = today or date.today()
        store = ValueStore(db)
        account = store.get_account(account_id)
        start = to_day(account.created_at)

        snapshot_days = [s.date for s in store.fetch_account_snapshots(account_id, start, today)]
        counts = Counter(snapshot_days)
        present = set(snapshot_days)

        report = CoverageReport(
            account_id=account_id,
            start_day=start,
            end_day=today,
            expected_count=max(days_between(start, today) + 1, 0),
            actual_count=len(snapshot_days),
            missing_days=[d for d in iter_days(start, today) if d not in present],
            duplicate_days=sorted(d for d, n in counts.items() if n > 1),
        )
        if not report.is_complete:
            logger.warning(
                f"Account {account_id} snapshot coverage incomplete: "
                f"{report.actual_count}/{report.expected_count}, "
                f"{len(report.missing_days)} missing days"
            )
        return report

    def verify_all_snapshot_coverage(self, db: Session, today: date | None = None) -> list[CoverageReport]:
        store = ValueStore(db)
        return [
            self.verify_snapshot_coverage(db, account.id, today)
            for account in store.fetch_accounts()
        ]

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _fill(self, store: ValueStore, account: Account, up_to: date) -> MaintenanceResult:
        """Insert forward-filled snapshots for missing days (no commit)."""
        result = MaintenanceResult()
        start = to_day(account.created_at)
        if up_to < start:
            return result

        existing = {s.date: s.value for s in store.fetch_account_snapshots(account.id, start, up_to)}
        prior = store.latest_account_snapshot(account.id, before_day=start)
        updates = store.fetch_updates([account.id], end=end_of_day(up_to))

        last_update_value: Decimal | None = None
        last_snapshot_value = prior.value if prior is not None else None
        idx = 0

        for day in iter_days(start, up_to):
            result.days_processed += 1
            boundary = end_of_day(day)
            while idx < len(updates) and updates[idx].date <= boundary:
                last_update_value = updates[idx].value
                idx += 1

            if day in existing:
                last_snapshot_value = existing[day]
                continue

            value = last_update_value if last_update_value is not None else last_snapshot_value
            if value is None:
                continue
            store.insert(AccountSnapshot(account_id=account.id, date=day, value=value))
            last_snapshot_value = value
            result.created += 1

        return result

    def _rebuild_window(
            self,
            store: ValueStore,
            account: Account,
            window_start: date,
            window_end: date,
    ) -> MaintenanceResult:
        """Delete and recompute an account's snapshots in a day range (no commit)."""
        result = MaintenanceResult()
        window_start = max(window_start, to_day(account.created_at))
        if window_end < window_start:
            return result

        result.deleted = store.delete_account_snapshots(account.id, window_start, window_end)

        updates = store.fetch_updates([account.id])
        before = [u for u in updates if u.date < start_of_day(window_start)]
        if before:
            carry = before[-1].value
        elif updates:
            carry = updates[0].value
        else:
            carry = Decimal("0")
            logger.warning(
                f"Account {account.id} has no remaining updates; "
                f"snapshots {window_start}..{window_end} fall back to 0"
            )

        idx = len(before)
        for day in iter_days(window_start, window_end):
            boundary = end_of_day(day)
            while idx < len(updates) and updates[idx].date <= boundary:
                carry = updates[idx].value
                idx += 1
            store.insert(AccountSnapshot(account_id=account.id, date=day, value=carry))
            result.created += 1
            result.days_processed += 1

        return result

    def _next_update_after_day(self, store: ValueStore, account_id: int, day: date) -> AccountUpdate | None:
        later = store.fetch_updates([account_id], start=start_of_day(day + timedelta(days=1)))
        return later[0] if later else None

    def _load_portfolio_series(self, store: ValueStore, today: date) -> list[_AccountSeries]:
        series = []
        for account in store.fetch_accounts(active_only=True):
            series.append(_AccountSeries(
                account,
                store.fetch_account_snapshots(account.id, end_day=today),
                store.fetch_updates([account.id], end=end_of_day(today)),
            ))
        return series

    def _write_portfolio_day(
            self,
            store: ValueStore,
            series: Iterable[_AccountSeries],
            existing: dict[date, PortfolioSnapshot],
            day: date,
            result: MaintenanceResult,
    ) -> None:
        total = Decimal("0")
        for account_series in series:
            if account_series.created_day > day:
                continue
            value = account_series.value_at(day)
            if value is not None:
                total += value

        snapshot = existing.get(day)
        if snapshot is None:
            snapshot = PortfolioSnapshot(date=day, total_value=total)
            store.insert(snapshot)
            existing[day] = snapshot
            result.created += 1
        elif snapshot.total_value != total:
            snapshot.total_value = total
            result.updated += 1

    def _save(self, store: ValueStore, result: MaintenanceResult, what: str) -> None:
        """Commit, recording (not raising) a persistence failure."""
        try:
            store.commit()
        except PersistenceError as e:
            logger.error(f"Failed to save {what}: {e}")
            result.error = e.message
