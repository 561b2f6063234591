# valuetrack/services/validation.py
"""
Input validation for monetary values and account names.

Pure, stateless functions. Validation failures are values, not exceptions:
each entry point returns a ValidationResult that is either valid (with the
cleaned value) or invalid (with an error kind and a message fit for display).
Callers that must abort an operation raise InputValidationError from the
result via `ValidationResult.raise_for_error()`.

Monetary rules, in order:
    trim → Empty → TooLong (> 15 chars) → BadFormat (digits, optional point)
    → ParseError → Negative → TooLarge (> 999,999,999.99) → TooManyDecimals

Account name rules, in order:
    trim → Empty → TooShort/TooLong (1..50 after NFC) → TooComplex (raw UTF-16
    or NFD length over 3× the max; the composed length needs no separate
    check since TooLong already bounds it) → InvalidCharacter (null byte or
    control character) → Duplicate (case-insensitive)
"""

import enum
import math
import re
import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from valuetrack.services.constants import (
    MAX_ACCOUNT_NAME_LENGTH,
    MAX_MONETARY_INPUT_LENGTH,
    MAX_MONETARY_VALUE,
    MIN_ACCOUNT_NAME_LENGTH,
    MONETARY_DECIMAL_PLACES,
    MONETARY_INPUT_PATTERN,
    NAME_DECOMPOSED_LENGTH_FACTOR,
    NAME_UTF16_LENGTH_FACTOR,
    SAFE_FLOAT_LIMIT,
)
from valuetrack.services.exceptions import InputValidationError

_MONETARY_RE = re.compile(MONETARY_INPUT_PATTERN)


class ValidationErrorKind(str, enum.Enum):
    EMPTY = "empty"
    TOO_LONG = "too_long"
    BAD_FORMAT = "bad_format"
    PARSE_ERROR = "parse_error"
    NEGATIVE = "negative"
    TOO_LARGE = "too_large"
    TOO_MANY_DECIMALS = "too_many_decimals"
    TOO_SHORT = "too_short"
    TOO_COMPLEX = "too_complex"
    INVALID_CHARACTER = "invalid_character"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of a validation call.

    Attributes:
        value: Cleaned value on success (Decimal or str), None on failure
        error: Error kind on failure
        message: Human-readable failure message
        field: Which input was validated ("value" or "name")
    """
    value: Any = None
    error: ValidationErrorKind | None = None
    message: str | None = None
    field: str = "value"

    @property
    def is_valid(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> Any:
        """Return the cleaned value, or raise InputValidationError."""
        if self.error is not None:
            raise InputValidationError(self.error, self.message or self.error.value, self.field)
        return self.value


def _invalid(kind: ValidationErrorKind, message: str, field: str) -> ValidationResult:
    return ValidationResult(error=kind, message=message, field=field)


# =============================================================================
# MONETARY VALUES
# =============================================================================


def validate_monetary_input(raw: str) -> ValidationResult:
    """
    Validate a user-entered monetary amount.

    Args:
        raw: Text as typed; surrounding whitespace is ignored

    Returns:
        ValidationResult whose value is the parsed Decimal on success

    Example:
        >>> validate_monetary_input(" 001.50 ").value
        Decimal('1.50')
        >>> validate_monetary_input("100,50").error
        <ValidationErrorKind.BAD_FORMAT: 'bad_format'>
    """
    trimmed = raw.strip()

    if not trimmed:
        return _invalid(ValidationErrorKind.EMPTY, "Value cannot be empty", "value")

    if len(trimmed) > MAX_MONETARY_INPUT_LENGTH:
        return _invalid(
            ValidationErrorKind.TOO_LONG,
            f"Value too long (max {MAX_MONETARY_INPUT_LENGTH} characters)",
            "value",
        )

    if not _MONETARY_RE.fullmatch(trimmed):
        return _invalid(ValidationErrorKind.BAD_FORMAT, "Invalid number format", "value")

    try:
        amount = Decimal(trimmed)
    except InvalidOperation:
        return _invalid(ValidationErrorKind.PARSE_ERROR, "Invalid number", "value")

    if not amount.is_finite():
        return _invalid(ValidationErrorKind.PARSE_ERROR, "Invalid number", "value")

    if amount < 0:
        return _invalid(ValidationErrorKind.NEGATIVE, "Value cannot be negative", "value")

    if amount > MAX_MONETARY_VALUE:
        return _invalid(
            ValidationErrorKind.TOO_LARGE,
            f"Value too large (max £{MAX_MONETARY_VALUE:,})",
            "value",
        )

    scaled = amount.scaleb(MONETARY_DECIMAL_PLACES)
    if scaled != scaled.to_integral_value():
        return _invalid(
            ValidationErrorKind.TOO_MANY_DECIMALS,
            f"Maximum {MONETARY_DECIMAL_PLACES} decimal places allowed",
            "value",
        )

    return ValidationResult(value=amount, field="value")


def safe_double_value(amount: Decimal) -> float:
    """
    Convert a Decimal to float for charting.

    Values outside float range (or NaN) become a large finite sentinel
    carrying the decimal's sign instead of inf/nan.
    """
    result = float(amount)
    if math.isfinite(result):
        return result
    return -SAFE_FLOAT_LIMIT if amount.is_signed() else SAFE_FLOAT_LIMIT


# =============================================================================
# ACCOUNT NAMES
# =============================================================================


def _utf16_length(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def _has_control_character(text: str) -> bool:
    return any(unicodedata.category(ch) == "Cc" for ch in text)


def validate_account_name(raw: str, existing_names: Iterable[str] = ()) -> ValidationResult:
    """
    Validate an account name for creation.

    Args:
        raw: Name as typed; surrounding whitespace is ignored
        existing_names: Names already in use (active and inactive accounts)

    Returns:
        ValidationResult whose value is the trimmed name (case preserved)
    """
    trimmed = raw.strip()

    if not trimmed:
        return _invalid(ValidationErrorKind.EMPTY, "Account name cannot be empty", "name")

    length = len(unicodedata.normalize("NFC", trimmed))
    if length < MIN_ACCOUNT_NAME_LENGTH:
        return _invalid(
            ValidationErrorKind.TOO_SHORT,
            f"Account name too short (min {MIN_ACCOUNT_NAME_LENGTH} character)",
            "name",
        )
    if length > MAX_ACCOUNT_NAME_LENGTH:
        return _invalid(
            ValidationErrorKind.TOO_LONG,
            f"Account name too long (max {MAX_ACCOUNT_NAME_LENGTH} characters)",
            "name",
        )

    too_complex = (
        _utf16_length(trimmed) > MAX_ACCOUNT_NAME_LENGTH * NAME_UTF16_LENGTH_FACTOR
        or len(unicodedata.normalize("NFD", trimmed)) > MAX_ACCOUNT_NAME_LENGTH * NAME_DECOMPOSED_LENGTH_FACTOR
    )
    if too_complex:
        return _invalid(
            ValidationErrorKind.TOO_COMPLEX,
            "Account name contains too many complex characters",
            "name",
        )

    if "\x00" in trimmed:
        return _invalid(
            ValidationErrorKind.INVALID_CHARACTER,
            "Account name contains invalid characters",
            "name",
        )
    if _has_control_character(trimmed):
        return _invalid(
            ValidationErrorKind.INVALID_CHARACTER,
            "Account name contains invalid control characters",
            "name",
        )

    folded = trimmed.casefold()
    if any(name.strip().casefold() == folded for name in existing_names):
        return _invalid(
            ValidationErrorKind.DUPLICATE,
            "An account with this name already exists",
            "name",
        )

    return ValidationResult(value=trimmed, field="name")
