# valuetrack/routers/accounts.py
"""
Account and update endpoints.

- GET    /accounts                               - List accounts with current values
- POST   /accounts                               - Create an account with its first value
- GET    /accounts/{id}                          - Account detail
- DELETE /accounts/{id}                          - Delete account, updates and snapshots
- POST   /accounts/{id}/close | /reopen          - Toggle active state
- GET    /accounts/{id}/updates                  - Update history (oldest first)
- POST   /accounts/{id}/updates                  - Record a value
- DELETE /accounts/{id}/updates/{update_id}      - Delete a value and repair snapshots

Validation failures come back as 400 with the validator's error kind in
`details.kind`.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from valuetrack.database import get_db
from valuetrack.dependencies import get_account_service
from valuetrack.middleware.rate_limit import RATE_LIMIT_WRITE, limiter
from valuetrack.models import Account
from valuetrack.schemas.accounts import (
    AccountCreate,
    AccountListResponse,
    AccountResponse,
    AccountUpdateCreate,
    AccountUpdateResponse,
    UpdateDeletedResponse,
)
from valuetrack.services.accounts import AccountService

router = APIRouter(
    prefix="/accounts",
    tags=["Accounts"],
)


def _map_account(account: Account, db: Session, service: AccountService) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        name=account.name,
        created_at=account.created_at,
        is_active=account.is_active,
        closed_at=account.closed_at,
        current_value=service.get_current_value(db, account.id),
    )


# =============================================================================
# ACCOUNTS
# =============================================================================

@router.get(
    "",
    response_model=AccountListResponse,
    summary="List accounts",
)
def list_accounts(
        include_inactive: bool = Query(default=True, description="Include closed accounts"),
        db: Session = Depends(get_db),
        service: AccountService = Depends(get_account_service),
) -> AccountListResponse:
    accounts = service.list_accounts(db, include_inactive=include_inactive)
    return AccountListResponse(
        accounts=[_map_account(a, db, service) for a in accounts],
        total_value=service.get_portfolio_total(db),
    )


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
@limiter.limit(RATE_LIMIT_WRITE)
def create_account(
        request: Request,  # Required for rate limiting
        payload: AccountCreate,
        db: Session = Depends(get_db),
        service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    """
    Create an account and record its initial value.

    The name must be unique (case-insensitive) among all accounts,
    including closed ones.
    """
    account = service.create_account(db, payload.name, payload.initial_value, payload.created_at)
    return _map_account(account, db, service)


@router.get(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Get an account",
)
def get_account(
        account_id: int,
        db: Session = Depends(get_db),
        service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return _map_account(service.get_account(db, account_id), db, service)


@router.delete(
    "/{account_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an account",
)
@limiter.limit(RATE_LIMIT_WRITE)
def delete_account(
        request: Request,  # Required for rate limiting
        account_id: int,
        db: Session = Depends(get_db),
        service: AccountService = Depends(get_account_service),
) -> None:
    service.delete_account(db, account_id)


@router.post(
    "/{account_id}/close",
    response_model=AccountResponse,
    summary="Close an account",
)
@limiter.limit(RATE_LIMIT_WRITE)
def close_account(
        request: Request,  # Required for rate limiting
        account_id: int,
        db: Session = Depends(get_db),
        service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    """Closed accounts keep their history but leave portfolio totals."""
    return _map_account(service.close_account(db, account_id), db, service)


@router.post(
    "/{account_id}/reopen",
    response_model=AccountResponse,
    summary="Reopen a closed account",
)
@limiter.limit(RATE_LIMIT_WRITE)
def reopen_account(
        request: Request,  # Required for rate limiting
        account_id: int,
        db: Session = Depends(get_db),
        service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return _map_account(service.reopen_account(db, account_id), db, service)


# =============================================================================
# UPDATES
# =============================================================================

@router.get(
    "/{account_id}/updates",
    response_model=list[AccountUpdateResponse],
    summary="List an account's updates",
)
def list_updates(
        account_id: int,
        db: Session = Depends(get_db),
        service: AccountService = Depends(get_account_service),
) -> list[AccountUpdateResponse]:
    return [AccountUpdateResponse.model_validate(u) for u in service.list_updates(db, account_id)]


@router.post(
    "/{account_id}/updates",
    response_model=AccountUpdateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a value",
)
@limiter.limit(RATE_LIMIT_WRITE)
def record_update(
        request: Request,  # Required for rate limiting
        account_id: int,
        payload: AccountUpdateCreate,
        db: Session = Depends(get_db),
        service: AccountService = Depends(get_account_service),
) -> AccountUpdateResponse:
    """
    Record a value for an account.

    Past dates are accepted (not before the account was created); portfolio
    totals from that day onward are rebuilt in the background.
    """
    update = service.record_update(db, account_id, payload.value, payload.date)
    return AccountUpdateResponse.model_validate(update)


@router.delete(
    "/{account_id}/updates/{update_id}",
    response_model=UpdateDeletedResponse,
    summary="Delete a value",
)
@limiter.limit(RATE_LIMIT_WRITE)
def delete_update(
        request: Request,  # Required for rate limiting
        account_id: int,
        update_id: int,
        db: Session = Depends(get_db),
        service: AccountService = Depends(get_account_service),
) -> UpdateDeletedResponse:
    """
    Delete a value.

    Snapshots from the value's day to the next value's day are recomputed
    from the remaining values.
    """
    result = service.delete_update(db, update_id, account_id=account_id)
    return UpdateDeletedResponse(
        update_id=update_id,
        snapshots_deleted=result.deleted,
        snapshots_created=result.created,
    )
