# valuetrack/schemas/accounts.py
"""
Pydantic schemas for accounts and their updates.

Monetary values arrive as strings and are checked by the input validator,
so the API reports the same error kinds and messages a form would show.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from valuetrack.utils.date_utils import to_naive_local


# =============================================================================
# ACCOUNTS
# =============================================================================

class AccountCreate(BaseModel):
    """Create an account with its initial value."""

    name: str = Field(..., description="Account name (1-50 characters after trimming)")
    initial_value: str = Field(..., description="Opening value, e.g. '1250.00'")
    created_at: datetime | None = Field(
        default=None,
        description="Creation timestamp (defaults to now)"
    )

    @field_validator('created_at')
    @classmethod
    def normalize_created_at(cls, v: datetime | None) -> datetime | None:
        """Store aware timestamps (e.g. '...Z') as naive local time."""
        return to_naive_local(v) if v is not None else v


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime
    is_active: bool
    closed_at: datetime | None = None
    current_value: Decimal = Field(
        default=Decimal("0"),
        description="Latest recorded value"
    )


class AccountListResponse(BaseModel):
    accounts: list[AccountResponse]
    total_value: Decimal = Field(..., description="Sum of current values of active accounts")


# =============================================================================
# UPDATES
# =============================================================================

class AccountUpdateCreate(BaseModel):
    """Record a new value for an account."""

    value: str = Field(..., description="New value, e.g. '1300.50'")
    date: datetime | None = Field(
        default=None,
        description="Observation timestamp (defaults to now); may be in the past"
    )

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v: datetime | None) -> datetime | None:
        """Store aware timestamps (e.g. '...Z') as naive local time."""
        return to_naive_local(v) if v is not None else v


class AccountUpdateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: int
    value: Decimal
    date: datetime


class UpdateDeletedResponse(BaseModel):
    """Outcome of deleting an update."""

    update_id: int
    snapshots_deleted: int = Field(..., description="Snapshots removed from the affected window")
    snapshots_created: int = Field(..., description="Snapshots recomputed in the affected window")
