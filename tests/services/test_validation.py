# tests/services/test_validation.py
"""
Tests for monetary and account name validation.

Validation never raises: every case is checked through the returned
ValidationResult, and raise_for_error() is tested separately.
"""

import unicodedata
from decimal import Decimal

import pytest

from valuetrack.services.constants import SAFE_FLOAT_LIMIT
from valuetrack.services.exceptions import InputValidationError
from valuetrack.services.validation import (
    ValidationErrorKind,
    ValidationResult,
    safe_double_value,
    validate_account_name,
    validate_monetary_input,
)


# =============================================================================
# MONETARY INPUT
# =============================================================================

class TestValidateMonetaryInput:
    """Tests for validate_monetary_input()."""

    @pytest.mark.parametrize("raw, expected", [
        ("100", Decimal("100")),
        ("1250.50", Decimal("1250.50")),
        (" 001.50 ", Decimal("1.50")),
        ("0", Decimal("0")),
        ("5.", Decimal("5")),
        ("999999999.99", Decimal("999999999.99")),
    ])
    def test_accepts_valid_amounts(self, raw, expected):
        result = validate_monetary_input(raw)

        assert result.is_valid
        assert result.value == expected
        assert result.error is None

    @pytest.mark.parametrize("raw", ["", "   ", "\t\n"])
    def test_empty(self, raw):
        result = validate_monetary_input(raw)

        assert result.error is ValidationErrorKind.EMPTY
        assert result.message == "Value cannot be empty"

    def test_too_long(self):
        """More than 15 characters after trimming."""
        result = validate_monetary_input("1234567890123456")

        assert result.error is ValidationErrorKind.TOO_LONG
        assert result.message == "Value too long (max 15 characters)"

    def test_length_is_measured_after_trim(self):
        assert validate_monetary_input("      100.00      ").is_valid

    @pytest.mark.parametrize("raw", ["12,50", "-5", "+5", "1e5", ".5", "1.2.3", "abc", "£100", "1 000"])
    def test_bad_format(self, raw):
        result = validate_monetary_input(raw)

        assert result.error is ValidationErrorKind.BAD_FORMAT
        assert result.message == "Invalid number format"

    def test_too_large(self):
        result = validate_monetary_input("1000000000")

        assert result.error is ValidationErrorKind.TOO_LARGE
        assert result.message == "Value too large (max £999,999,999.99)"

    @pytest.mark.parametrize("raw", ["1.234", "0.001", "10.999"])
    def test_too_many_decimals(self, raw):
        result = validate_monetary_input(raw)

        assert result.error is ValidationErrorKind.TOO_MANY_DECIMALS
        assert result.message == "Maximum 2 decimal places allowed"

    def test_trailing_zeros_do_not_count_as_decimals(self):
        """1.230 is 123 hundredths exactly."""
        result = validate_monetary_input("1.230")

        assert result.is_valid
        assert result.value == Decimal("1.23")

    @pytest.mark.parametrize("raw", ["", "12,50", "1.234", "1000000000", "42.10"])
    def test_validation_is_idempotent(self, raw):
        assert validate_monetary_input(raw) == validate_monetary_input(raw)

    def test_failed_result_carries_field(self):
        assert validate_monetary_input("abc").field == "value"


# =============================================================================
# ACCOUNT NAMES
# =============================================================================

class TestValidateAccountName:
    """Tests for validate_account_name()."""

    def test_returns_trimmed_name_with_case_preserved(self):
        result = validate_account_name("  Rainy Day Fund  ", ["Current"])

        assert result.is_valid
        assert result.value == "Rainy Day Fund"
        assert result.field == "name"

    def test_duplicate_is_case_insensitive_after_trim(self):
        result = validate_account_name("  Savings  ", existing_names=["savings"])

        assert result.error is ValidationErrorKind.DUPLICATE
        assert result.message == "An account with this name already exists"

    def test_duplicate_ignores_whitespace_in_existing_names(self):
        result = validate_account_name("ISA", existing_names=[" isa "])

        assert result.error is ValidationErrorKind.DUPLICATE

    def test_empty(self):
        result = validate_account_name("    ")

        assert result.error is ValidationErrorKind.EMPTY
        assert result.message == "Account name cannot be empty"

    def test_fifty_characters_allowed(self):
        assert validate_account_name("x" * 50).is_valid

    def test_too_long(self):
        result = validate_account_name("x" * 51)

        assert result.error is ValidationErrorKind.TOO_LONG
        assert result.message == "Account name too long (max 50 characters)"

    def test_long_names_report_too_long_before_too_complex(self):
        """Length is checked on the composed form first, however long the input."""
        assert validate_account_name("x" * 120).error is ValidationErrorKind.TOO_LONG
        assert validate_account_name(unicodedata.normalize("NFD", "é") * 51).error is ValidationErrorKind.TOO_LONG

    def test_accented_names_are_valid(self):
        assert validate_account_name("Café Épargne").is_valid

    def test_combining_character_expansion_is_too_complex(self):
        """Forty precomposed characters that decompose into four code points each."""
        name = chr(0x1FAF) * 40
        assert len(unicodedata.normalize("NFC", name)) <= 50
        assert len(unicodedata.normalize("NFD", name)) > 150

        result = validate_account_name(name)

        assert result.error is ValidationErrorKind.TOO_COMPLEX
        assert result.message == "Account name contains too many complex characters"

    def test_decomposed_input_is_too_complex(self):
        """Same characters typed in decomposed form inflate the raw length."""
        name = unicodedata.normalize("NFD", chr(0x1FAF)) * 40

        assert validate_account_name(name).error is ValidationErrorKind.TOO_COMPLEX

    def test_null_byte(self):
        result = validate_account_name("Sav\x00ings")

        assert result.error is ValidationErrorKind.INVALID_CHARACTER
        assert result.message == "Account name contains invalid characters"

    @pytest.mark.parametrize("name", ["Sav\tings", "Sav\x07ings", "Sav\x1bings", "Sav\x7fings"])
    def test_control_characters(self, name):
        result = validate_account_name(name)

        assert result.error is ValidationErrorKind.INVALID_CHARACTER
        assert result.message == "Account name contains invalid control characters"


# =============================================================================
# RESULT HELPERS
# =============================================================================

class TestValidationResult:
    """Tests for ValidationResult.raise_for_error() and safe_double_value()."""

    def test_raise_for_error_returns_value_when_valid(self):
        assert validate_monetary_input("12.34").raise_for_error() == Decimal("12.34")

    def test_raise_for_error_raises_input_validation_error(self):
        result = validate_account_name("", [])

        with pytest.raises(InputValidationError) as exc_info:
            result.raise_for_error()

        assert exc_info.value.kind is ValidationErrorKind.EMPTY
        assert exc_info.value.field == "name"
        assert str(exc_info.value) == "Account name cannot be empty"

    def test_default_result_is_valid(self):
        assert ValidationResult(value="x").is_valid

    def test_safe_double_value_regular(self):
        assert safe_double_value(Decimal("1250.50")) == 1250.5

    def test_safe_double_value_clamps_overflow(self):
        assert safe_double_value(Decimal("1e400")) == SAFE_FLOAT_LIMIT
        assert safe_double_value(Decimal("-1e400")) == -SAFE_FLOAT_LIMIT
