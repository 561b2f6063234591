# valuetrack/routers/validation.py
"""
Input validation endpoints for form feedback.

- POST /validation/monetary      - Check a monetary amount
- POST /validation/account-name  - Check a new account name against existing ones

Both always answer 200; the outcome is in the body.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from valuetrack.database import get_db
from valuetrack.schemas.validation import (
    AccountNameValidationRequest,
    MonetaryValidationRequest,
    ValidationResponse,
)
from valuetrack.services.store import ValueStore
from valuetrack.services.validation import (
    ValidationResult,
    validate_account_name,
    validate_monetary_input,
)

router = APIRouter(
    prefix="/validation",
    tags=["Validation"],
)


def _map_result(result: ValidationResult) -> ValidationResponse:
    return ValidationResponse(
        is_valid=result.is_valid,
        value=None if result.value is None else str(result.value),
        error=result.error,
        message=result.message,
    )


@router.post(
    "/monetary",
    response_model=ValidationResponse,
    summary="Validate a monetary amount",
)
def validate_monetary(payload: MonetaryValidationRequest) -> ValidationResponse:
    return _map_result(validate_monetary_input(payload.value))


@router.post(
    "/account-name",
    response_model=ValidationResponse,
    summary="Validate an account name",
)
def validate_name(
        payload: AccountNameValidationRequest,
        db: Session = Depends(get_db),
) -> ValidationResponse:
    return _map_result(validate_account_name(payload.name, ValueStore(db).account_names()))
