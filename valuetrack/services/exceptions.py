# valuetrack/services/exceptions.py
"""
Service layer exceptions.

These exceptions carry NO HTTP knowledge. The FastAPI exception handlers in
main.py map them to responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── InputValidationError
    │   └── InvalidDateError
    ├── NotFoundError
    │   ├── AccountNotFoundError
    │   ├── UpdateNotFoundError
    │   └── JobNotFoundError
    ├── OrphanUpdateError
    └── PersistenceError

Data integrity fallbacks (e.g. an account losing its last update) are logged
as warnings and never raised.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from valuetrack.services.validation import ValidationErrorKind


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when a request cannot be performed because its input is invalid.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InputValidationError(ValidationError):
    """
    A monetary value or account name rejected by the input validator.

    The operation that triggered validation has not been performed.

    Attributes:
        kind: The ValidationErrorKind reported by the validator
    """

    def __init__(self, kind: "ValidationErrorKind", message: str, field: str) -> None:
        self.kind = kind
        super().__init__(message, field=field)


class InvalidDateError(ValidationError):
    """Raised for update dates in the future or before the account existed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, field="date")


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Account", "Update")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class AccountNotFoundError(NotFoundError):
    """Raised when an account id does not resolve."""

    def __init__(self, account_id: int) -> None:
        self.account_id = account_id
        super().__init__(
            f"Account {account_id} not found",
            resource_type="Account",
            resource_id=account_id,
        )


class UpdateNotFoundError(NotFoundError):
    """Raised when an update id does not resolve."""

    def __init__(self, update_id: int) -> None:
        self.update_id = update_id
        super().__init__(
            f"Update {update_id} not found",
            resource_type="Update",
            resource_id=update_id,
        )


class JobNotFoundError(NotFoundError):
    """Raised when a recalculation job id is unknown to the worker."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(
            f"Recalculation job {job_id} not found",
            resource_type="RecalculationJob",
            resource_id=job_id,
        )


# =============================================================================
# INTEGRITY / PERSISTENCE ERRORS
# =============================================================================


class OrphanUpdateError(ServiceError):
    """
    An update references an account that no longer exists.

    Attributes:
        update_id: The orphaned update
        account_id: The missing parent id
    """

    def __init__(self, update_id: int, account_id: int | None) -> None:
        self.update_id = update_id
        self.account_id = account_id
        super().__init__(
            f"Update {update_id} references missing account {account_id}"
        )


class PersistenceError(ServiceError):
    """
    The value store failed to write (I/O error, constraint violation, ...).

    The session has been rolled back when this is raised. Maintenance
    operations are idempotent, so re-invoking them is the recovery path.

    Attributes:
        operation: What was being persisted (e.g., "commit", "insert")
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        self.operation = operation
        super().__init__(message)
