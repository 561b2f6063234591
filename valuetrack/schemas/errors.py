# valuetrack/schemas/errors.py
"""
Pydantic schemas for error responses.

Every error handler in main.py returns one of these shapes.
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standard error response format."""

    error: str = Field(
        ...,
        description="Error type (e.g., 'AccountNotFoundError', 'InputValidationError')"
    )
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
    details: dict | None = Field(
        default=None,
        description="Additional context such as the field or validation kind"
    )
    correlation_id: str | None = Field(
        default=None,
        description="Request correlation ID for log lookup"
    )


class ValidationErrorDetail(BaseModel):
    """Request body/query validation failure (422)."""

    error: str = Field(default="RequestValidationError")
    message: str = Field(default="Request validation failed")
    details: list[dict] = Field(
        ...,
        description="List of validation errors"
    )
    correlation_id: str | None = None
