"""Validation layer for ledger input and business rule compliance."""

from timeledger.validators.business_validators import BusinessRuleValidators
from timeledger.validators.field_validators import FieldValidators
from timeledger.validators.validation_report import (
    ValidationIssue,
    ValidationReport,
    ValidationSeverity,
)

__all__ = [
    "BusinessRuleValidators",
    "FieldValidators",
    "ValidationIssue",
    "ValidationReport",
    "ValidationSeverity",
]
