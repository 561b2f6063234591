# valuetrack/services/accounts.py
"""
Account Service - the write path for accounts and updates.

Every mutation follows the same shape:
    1. validate input (InputValidationError / InvalidDateError)
    2. perform the primary write and commit (PersistenceError propagates)
    3. drop cached performance results for the account
    4. maintain snapshots: account snapshots inline, portfolio totals inline
       for today or through the recalculation scheduler for past days

Snapshot maintenance failures are logged by the maintainer and do not undo
the primary write; ensure_snapshot_coverage repairs them later.

Usage:
    from valuetrack.services.accounts import AccountService

    service = AccountService(maintainer=SnapshotMaintainer())
    account = service.create_account(db, "Savings", "1000")
    service.record_update(db, account.id, "1250.50")
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from valuetrack.config import settings
from valuetrack.models import Account, AccountUpdate
from valuetrack.services.exceptions import InvalidDateError, UpdateNotFoundError, ValidationError
from valuetrack.services.performance.cache import PORTFOLIO_SCOPE, account_scope
from valuetrack.services.snapshots.maintainer import SnapshotMaintainer
from valuetrack.services.snapshots.types import MaintenanceResult
from valuetrack.services.store import ValueStore
from valuetrack.services.validation import (
    ValidationResult,
    validate_account_name,
    validate_monetary_input,
)
from valuetrack.utils.date_utils import to_day, to_naive_local

if TYPE_CHECKING:
    from valuetrack.services.protocols import (
        PerformanceCacheProtocol,
        RecalculationSchedulerProtocol,
    )

logger = logging.getLogger(__name__)


def _validate_value(raw: str | Decimal) -> ValidationResult:
    text = raw if isinstance(raw, str) else format(raw, "f")
    return validate_monetary_input(text)


class AccountService:
    """
    Creates, updates, closes and deletes accounts while keeping derived
    state (snapshots, cached performance) consistent.

    Attributes:
        _maintainer: Snapshot maintenance
        _cache: Performance cache to invalidate on every mutation (optional)
        _scheduler: Queues past-dated portfolio rebuilds (optional; rebuilds
            run inline when absent)
        _maintain_snapshots: Whether snapshots are maintained on writes
    """

    def __init__(
            self,
            maintainer: SnapshotMaintainer | None = None,
            performance_cache: PerformanceCacheProtocol | None = None,
            scheduler: RecalculationSchedulerProtocol | None = None,
            maintain_snapshots: bool | None = None,
    ) -> None:
        self._maintainer = maintainer or SnapshotMaintainer()
        self._cache = performance_cache
        self._scheduler = scheduler
        self._maintain_snapshots = (
            settings.snapshot_maintenance_enabled if maintain_snapshots is None else maintain_snapshots
        )
        logger.info("AccountService initialized")

    # =========================================================================
    # READS
    # =========================================================================

    def list_accounts(self, db: Session, include_inactive: bool = True) -> list[Account]:
        return ValueStore(db).fetch_accounts(active_only=not include_inactive)

    def get_account(self, db: Session, account_id: int) -> Account:
        return ValueStore(db).get_account(account_id)

    def list_updates(self, db: Session, account_id: int) -> list[AccountUpdate]:
        """An account's updates, oldest first."""
        store = ValueStore(db)
        store.get_account(account_id)
        return store.fetch_updates([account_id])

    def get_current_value(self, db: Session, account_id: int) -> Decimal:
        """Latest update value, else latest snapshot value, else zero."""
        store = ValueStore(db)
        store.get_account(account_id)
        update = store.latest_update(account_id)
        if update is not None:
            return update.value
        snapshot = store.latest_account_snapshot(account_id)
        return snapshot.value if snapshot is not None else Decimal("0")

    def get_portfolio_total(self, db: Session) -> Decimal:
        """Sum of current values over active accounts."""
        return sum(
            (self.get_current_value(db, a.id) for a in self.list_accounts(db, include_inactive=False)),
            Decimal("0"),
        )

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    def create_account(
            self,
            db: Session,
            name: str,
            initial_value: str | Decimal,
            created_at: datetime | None = None,
            today: date | None = None,
    ) -> Account:
        """
        Create an account together with its first update.

        Raises:
            InputValidationError: Invalid or duplicate name, invalid value
            InvalidDateError: created_at in the future
            PersistenceError: The write failed
        """
        store = ValueStore(db)
        clean_name = validate_account_name(name, store.account_names()).raise_for_error()
        value = _validate_value(initial_value).raise_for_error()

        created_at = to_naive_local(created_at) if created_at else datetime.now()
        if created_at > datetime.now():
            raise InvalidDateError("Account creation date cannot be in the future")

        account = Account(name=clean_name, created_at=created_at, is_active=True)
        store.insert(account)
        store.flush()
        store.insert(AccountUpdate(account_id=account.id, value=value, date=created_at))
        store.commit()
        logger.info(f"Created account {account.id} ({clean_name!r}) with initial value {value}")

        self._after_update_recorded(db, account.id, value, created_at, today)
        return account

    def close_account(self, db: Session, account_id: int, closed_at: datetime | None = None,
                      today: date | None = None) -> Account:
        """Mark an account inactive; it leaves portfolio totals but keeps its history."""
        return self._set_active(db, account_id, False, closed_at or datetime.now(), today)

    def reopen_account(self, db: Session, account_id: int, today: date | None = None) -> Account:
        return self._set_active(db, account_id, True, None, today)

    def delete_account(self, db: Session, account_id: int, today: date | None = None) -> None:
        """
        Delete an account: snapshots and updates first, then the account.

        Portfolio totals are rebuilt from the account's creation day when
        it was counted in them.
        """
        store = ValueStore(db)
        account = store.get_account(account_id)
        was_active = account.is_active
        created_day = to_day(account.created_at)

        snapshots = store.delete_account_snapshots(account_id)
        updates = store.delete_account_updates(account_id)
        store.delete(account)
        store.commit()
        logger.info(f"Deleted account {account_id} ({updates} updates, {snapshots} snapshots)")

        self._invalidate(account_id)
        if was_active and self._maintain_snapshots:
            self._rebuild_portfolio(db, created_day, today)

    # =========================================================================
    # UPDATES
    # =========================================================================

    def record_update(
            self,
            db: Session,
            account_id: int,
            raw_value: str | Decimal,
            when: datetime | None = None,
            today: date | None = None,
    ) -> AccountUpdate:
        """
        Record a new value for an account.

        Raises:
            AccountNotFoundError: Unknown account
            InputValidationError: Invalid value
            InvalidDateError: Date in the future or before account creation
            ValidationError: Account is closed
            PersistenceError: The write failed
        """
        store = ValueStore(db)
        account = store.get_account(account_id)
        value = _validate_value(raw_value).raise_for_error()

        if not account.is_active:
            raise ValidationError(f"Account {account_id} is closed", field="account_id")

        when = to_naive_local(when) if when else datetime.now()
        if when > datetime.now():
            raise InvalidDateError("Update date cannot be in the future")
        if to_day(when) < to_day(account.created_at):
            raise InvalidDateError("Update date cannot be before the account was created")

        update = AccountUpdate(account_id=account_id, value=value, date=when)
        store.insert(update)
        store.commit()
        logger.info(f"Recorded update {update.id} for account {account_id}: {value} at {when}")

        self._after_update_recorded(db, account_id, value, when, today)
        return update

    def delete_update(
            self,
            db: Session,
            update_id: int,
            account_id: int | None = None,
            today: date | None = None,
    ) -> MaintenanceResult:
        """
        Delete an update and repair everything derived from it.

        Args:
            db: Database session
            update_id: Update to delete
            account_id: When given, the update must belong to this account
            today: Reference day (defaults to date.today())

        Raises:
            UpdateNotFoundError: Unknown update
            OrphanUpdateError: The update's account is missing
            PersistenceError: Deleting the update failed
        """
        store = ValueStore(db)
        update = store.get_update(update_id)
        if account_id is not None and update.account_id != account_id:
            raise UpdateNotFoundError(update_id)
        account_id = update.account_id
        day = to_day(update.date)

        if self._maintain_snapshots:
            result = self._maintainer.delete_account_update(db, update_id, today)
        else:
            store.delete(update)
            store.commit()
            result = MaintenanceResult()
            logger.info(f"Deleted update {update_id} of account {account_id}")

        self._invalidate(account_id)
        if self._maintain_snapshots:
            self._rebuild_portfolio(db, day, today)
        return result

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _set_active(
            self,
            db: Session,
            account_id: int,
            active: bool,
            closed_at: datetime | None,
            today: date | None,
    ) -> Account:
        store = ValueStore(db)
        account = store.get_account(account_id)
        if account.is_active == active:
            return account

        account.is_active = active
        account.closed_at = closed_at
        store.commit()
        logger.info(f"Account {account_id} {'reopened' if active else 'closed'}")

        self._invalidate(account_id)
        if self._maintain_snapshots:
            if active:
                self._maintainer.fill_missing_snapshots(db, account_id, today)
            self._rebuild_portfolio(db, to_day(account.created_at), today)
        return account

    def _after_update_recorded(
            self,
            db: Session,
            account_id: int,
            value: Decimal,
            when: datetime,
            today: date | None,
    ) -> None:
        self._invalidate(account_id)
        if not self._maintain_snapshots:
            return

        today = today or date.today()
        self._maintainer.update_account_snapshot(db, account_id, value, when, today)
        self._maintainer.fill_missing_snapshots(db, account_id, today)

        day = to_day(when)
        if day >= today:
            self._maintainer.update_portfolio_snapshot(db, day)
        else:
            self._rebuild_portfolio(db, day, today)

    def _rebuild_portfolio(self, db: Session, from_day: date, today: date | None) -> None:
        if self._scheduler is not None:
            self._scheduler.submit(from_day, today)
        else:
            self._maintainer.recalculate_portfolio_snapshots(db, from_day, today)

    def _invalidate(self, account_id: int) -> None:
        if self._cache is None:
            return
        self._cache.invalidate(account_scope(account_id))
        self._cache.invalidate(PORTFOLIO_SCOPE)
