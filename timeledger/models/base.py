"""Base model for all ledger entities.

This module provides the Pydantic base model shared by every entity in the
ledger, plus small helpers for identifiers and Decimal coercion.
"""

import datetime as dt
import uuid
from decimal import Decimal, InvalidOperation
from typing import Union

from pydantic import BaseModel, ConfigDict


def new_id() -> str:
    """Generate a new entity identifier.

    Returns:
        32-character hex string from a random UUID
    """
    return uuid.uuid4().hex


def to_decimal(value: Union[str, int, float, Decimal]) -> Decimal:
    """Convert a numeric value to Decimal without binary float artefacts.

    Floats are converted via their string form so ``0.1`` becomes
    ``Decimal('0.1')`` rather than the exact binary expansion.

    Args:
        value: The value to convert

    Returns:
        The value as a Decimal

    Raises:
        ValueError: If the value cannot be converted to Decimal
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {value!r} to Decimal")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValueError(f"Cannot convert {value!r} to Decimal: {e}")


def require_aware(value: dt.datetime, field_name: str) -> dt.datetime:
    """Ensure a datetime carries timezone information.

    Raises:
        ValueError: If the datetime is naive
    """
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{field_name} must be timezone-aware")
    return value


class BaseDataModel(BaseModel):
    """Base class for all ledger entities.

    Provides common configuration:
    - Validation on assignment, so edits made by services are re-checked
    - Unknown fields are rejected
    - Arbitrary types support for Decimal, date and datetime

    Example:
        >>> class Tag(BaseDataModel):
        ...     name: str
        >>> Tag(name="urgent").model_dump()
        {'name': 'urgent'}
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
        strict=False,
        extra="forbid",
        frozen=False,
    )
