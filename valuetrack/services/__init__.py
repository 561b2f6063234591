# valuetrack/services/__init__.py
"""
Service layer for business logic.

Services have no knowledge of HTTP: they receive database sessions as
parameters and raise the domain exceptions from exceptions.py, which
main.py maps to responses.

Architecture:
    services/
    ├── __init__.py      # This file - main exports
    ├── exceptions.py    # Domain exceptions
    ├── constants.py     # Limits, period lengths, rate limits
    ├── protocols.py     # Seams between services (Protocol classes)
    ├── store.py         # ValueStore (all SQL for accounts/updates/snapshots)
    ├── validation.py    # Monetary and account name validation
    ├── periods.py       # TimePeriod
    ├── accounts.py      # AccountService (write path)
    ├── timeline/        # Timeline Builder
    ├── snapshots/       # Snapshot Maintainer + background rebuilds
    └── performance/     # Performance Calculator + result cache
"""

from valuetrack.services.accounts import AccountService
from valuetrack.services.exceptions import (
    AccountNotFoundError,
    InputValidationError,
    InvalidDateError,
    JobNotFoundError,
    NotFoundError,
    OrphanUpdateError,
    PersistenceError,
    ServiceError,
    UpdateNotFoundError,
    ValidationError,
)
from valuetrack.services.performance import PerformanceCache, PerformanceResult, PerformanceService
from valuetrack.services.periods import TimePeriod
from valuetrack.services.snapshots import RecalculationWorker, SnapshotMaintainer
from valuetrack.services.store import ValueStore
from valuetrack.services.timeline import TimelineService
from valuetrack.services.validation import (
    ValidationErrorKind,
    ValidationResult,
    validate_account_name,
    validate_monetary_input,
)

__all__ = [
    # Services
    "AccountService",
    "TimelineService",
    "SnapshotMaintainer",
    "RecalculationWorker",
    "PerformanceService",
    "PerformanceCache",
    "ValueStore",
    # Types
    "TimePeriod",
    "PerformanceResult",
    "ValidationErrorKind",
    "ValidationResult",
    "validate_monetary_input",
    "validate_account_name",
    # Exceptions
    "ServiceError",
    "ValidationError",
    "InputValidationError",
    "InvalidDateError",
    "NotFoundError",
    "AccountNotFoundError",
    "UpdateNotFoundError",
    "JobNotFoundError",
    "OrphanUpdateError",
    "PersistenceError",
]
