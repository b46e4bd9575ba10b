"""Exceptions raised by ledger operations.

Every error carries a user-facing message and an optional recovery hint.
Callers translate them to their own surface (HTTP status, CLI exit code).
"""

from typing import Optional

from timeledger.validators.validation_report import ValidationReport


class LedgerError(Exception):
    """Base exception for ledger errors with user-friendly messages."""

    def __init__(self, message: str, recovery_hint: Optional[str] = None):
        """
        Initialize ledger error.

        Args:
            message: Error message to display
            recovery_hint: Optional hint for recovering from the error
        """
        self.message = message
        self.recovery_hint = recovery_hint
        super().__init__(message)


class ValidationError(LedgerError):
    """Malformed input. Never retried automatically.

    The attached report lists every offending field, not just the first.
    """

    def __init__(
        self,
        message: str,
        report: Optional[ValidationReport] = None,
        recovery_hint: Optional[str] = None,
    ):
        self.report = report or ValidationReport()
        super().__init__(message, recovery_hint)

    @property
    def fields(self) -> list:
        """Names of the fields that failed validation."""
        return [issue.field for issue in self.report.get_errors()]

    def __str__(self) -> str:
        if not self.report.issues:
            return self.message
        details = "; ".join(str(issue) for issue in self.report.get_errors())
        return f"{self.message}: {details}"


class ConflictError(LedgerError):
    """The operation collides with current state; the caller may retry."""

    def __init__(
        self,
        message: str,
        recovery_hint: Optional[str] = None,
        conflicting_id: Optional[str] = None,
    ):
        self.conflicting_id = conflicting_id
        super().__init__(message, recovery_hint)


class NotFoundError(LedgerError):
    """The entity does not exist or is not owned by the caller."""

    pass


class ForbiddenError(LedgerError):
    """The caller may not perform this mutation on the entity."""

    pass
