# valuetrack/schemas/validation.py
"""Pydantic schemas for the input validation endpoints."""

from pydantic import BaseModel, Field

from valuetrack.services.validation import ValidationErrorKind


class MonetaryValidationRequest(BaseModel):
    value: str = Field(..., description="Raw monetary input")


class AccountNameValidationRequest(BaseModel):
    name: str = Field(..., description="Raw account name")


class ValidationResponse(BaseModel):
    """
    Validation outcome.

    On success `value` holds the cleaned input (parsed amount as a string,
    or the trimmed name).
    """

    is_valid: bool
    value: str | None = None
    error: ValidationErrorKind | None = None
    message: str | None = None
