"""Field-level problems collected while validating one request."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional


class ValidationSeverity(IntEnum):
    """Errors reject the request; warnings are only reported."""

    WARNING = 2
    ERROR = 3


@dataclass
class ValidationIssue:
    """A single problem with one input field.

    Attributes:
        severity: Whether the problem rejects the request
        field: Dotted path of the offending field (e.g. ``items[1].quantity``)
        message: Human-readable description of the problem
        value: The rejected value
        context: Optional extra identifiers (e.g. line number)
    """

    severity: ValidationSeverity
    field: str
    message: str
    value: Any
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        suffix = ""
        if self.context:
            suffix = " (" + ", ".join(f"{k}={v}" for k, v in self.context.items()) + ")"
        return f"[{self.severity.name}] {self.field}: {self.message}{suffix}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.name,
            "field": self.field,
            "message": self.message,
            "value": None if self.value is None else str(self.value),
        }


class ValidationReport:
    """Accumulates every problem of a request instead of stopping at the first.

    Example:
        >>> report = ValidationReport()
        >>> report.add_error("items", "At least one item is required", [])
        >>> report.has_errors()
        True
        >>> report.summary()
        '1 error(s)'
    """

    def __init__(self) -> None:
        self.issues: List[ValidationIssue] = []

    def _of(self, severity: ValidationSeverity) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == severity]

    @property
    def error_count(self) -> int:
        return len(self._of(ValidationSeverity.ERROR))

    @property
    def warning_count(self) -> int:
        return len(self._of(ValidationSeverity.WARNING))

    def is_valid(self) -> bool:
        """True when no errors were recorded; warnings do not count."""
        return self.error_count == 0

    def has_errors(self) -> bool:
        return not self.is_valid()

    def add_error(
        self,
        field: str,
        message: str,
        value: Any,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record a problem that rejects the request.

        Args:
            field: Dotted path of the offending field
            message: Human-readable error description
            value: The value that caused the error
            context: Optional extra identifiers
        """
        self.issues.append(
            ValidationIssue(ValidationSeverity.ERROR, field, message, value, context)
        )

    def add_warning(
        self,
        field: str,
        message: str,
        value: Any,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record a suspicious but acceptable value."""
        self.issues.append(
            ValidationIssue(ValidationSeverity.WARNING, field, message, value, context)
        )

    def get_errors(self) -> List[ValidationIssue]:
        return self._of(ValidationSeverity.ERROR)

    def get_warnings(self) -> List[ValidationIssue]:
        return self._of(ValidationSeverity.WARNING)

    def summary(self) -> str:
        counts = [
            f"{count} {label}(s)"
            for count, label in ((self.error_count, "error"), (self.warning_count, "warning"))
            if count
        ]
        return ", ".join(counts) or "No issues found"
