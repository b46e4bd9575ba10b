"""Field-level validators for ledger input.

These validators inspect raw caller-supplied values and record problems in a
ValidationReport instead of raising, so that every bad field is reported at
once.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from timeledger.validators.validation_report import ValidationReport


class FieldValidators:
    """Collection of field-level validation methods."""

    @staticmethod
    def coerce_decimal(
        value: Any,
        field_name: str,
        report: ValidationReport,
    ) -> Optional[Decimal]:
        """Convert a raw value to Decimal, recording an error if impossible.

        Accepts Decimal, int, float and numeric strings. Booleans are rejected
        even though they are ints in Python.

        Args:
            value: The raw value
            field_name: Name of the field being validated
            report: ValidationReport to collect issues

        Returns:
            The Decimal value, or None when the value is missing or invalid
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            report.add_error(field_name, "Value is required", value)
            return None

        if isinstance(value, bool) or not isinstance(
            value, (int, float, Decimal, str)
        ):
            report.add_error(
                field_name,
                f"Expected number, got {type(value).__name__}",
                value,
            )
            return None

        try:
            result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        except InvalidOperation:
            report.add_error(field_name, "Value is not a valid number", value)
            return None

        if not result.is_finite():
            report.add_error(field_name, "Value must be a finite number", value)
            return None

        return result

    @staticmethod
    def validate_positive_number(
        value: Any,
        field_name: str,
        report: ValidationReport,
    ) -> Optional[Decimal]:
        """Validate that a number is positive (> 0).

        Returns:
            The coerced Decimal, or None if invalid
        """
        number = FieldValidators.coerce_decimal(value, field_name, report)
        if number is None:
            return None

        if number <= 0:
            report.add_error(
                field_name,
                "Value must be positive (greater than 0)",
                value,
            )
            return None
        return number

    @staticmethod
    def validate_non_negative_number(
        value: Any,
        field_name: str,
        report: ValidationReport,
    ) -> Optional[Decimal]:
        """Validate that a number is non-negative (>= 0).

        Returns:
            The coerced Decimal, or None if invalid
        """
        number = FieldValidators.coerce_decimal(value, field_name, report)
        if number is None:
            return None

        if number < 0:
            report.add_error(field_name, "Value cannot be negative", value)
            return None
        return number

    @staticmethod
    def validate_non_empty_string(
        value: Any,
        field_name: str,
        report: ValidationReport,
        min_length: int = 1,
    ) -> Optional[str]:
        """Validate that a string is present and not whitespace only.

        Returns:
            The stripped string, or None if invalid
        """
        if value is None:
            report.add_error(field_name, "Value is required", None)
            return None

        if not isinstance(value, str):
            report.add_error(
                field_name,
                f"Expected string, got {type(value).__name__}",
                value,
            )
            return None

        stripped = value.strip()
        if not stripped:
            report.add_error(field_name, "Value cannot be empty or whitespace", value)
            return None

        if len(stripped) < min_length:
            report.add_error(
                field_name,
                f"Value must be at least {min_length} characters",
                value,
            )
            return None
        return stripped

    @staticmethod
    def validate_required(value: Any, field_name: str, report: ValidationReport) -> bool:
        """Validate that a value is present.

        Returns:
            True if the value is not None
        """
        if value is None:
            report.add_error(field_name, "Value is required", None)
            return False
        return True
