"""Time entry and expense models.

A time entry records work by one user on one project. An entry without an
end time is an *open timer*. Expenses are amounts recorded against a project
that may be charged on to the client.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional, Union

from pydantic import Field, field_validator, model_validator

from timeledger.models.base import BaseDataModel, new_id, require_aware, to_decimal


def utc_now() -> dt.datetime:
    """Return the current time in UTC."""
    return dt.datetime.now(dt.timezone.utc)


class TimeEntry(BaseDataModel):
    """Represents a block of tracked time.

    Attributes:
        id: Entry identifier
        user_id: Owner of the entry
        project_id: Project the work was done for
        description: Optional free-text description
        start_time: When work started (timezone-aware)
        end_time: When work stopped; None while the timer is running
        billable: Whether the time is chargeable to the client
        invoice_id: Invoice this entry has been billed on, if any
        created_at: When the record was created

    Example:
        >>> entry = TimeEntry(
        ...     user_id="u1",
        ...     project_id="p1",
        ...     start_time=dt.datetime(2024, 3, 4, 9, 0, tzinfo=dt.timezone.utc),
        ...     end_time=dt.datetime(2024, 3, 4, 10, 30, tzinfo=dt.timezone.utc),
        ... )
        >>> entry.is_open
        False
    """

    id: str = Field(default_factory=new_id)
    user_id: str = Field(..., min_length=1)
    project_id: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_time: dt.datetime
    end_time: Optional[dt.datetime] = None
    billable: bool = True
    invoice_id: Optional[str] = None
    created_at: dt.datetime = Field(default_factory=utc_now)

    @field_validator("start_time", "end_time", "created_at")
    @classmethod
    def validate_timezone(cls, v: Optional[dt.datetime], info) -> Optional[dt.datetime]:
        """Reject naive datetimes so comparisons never mix aware and naive."""
        if v is None:
            return v
        return require_aware(v, info.field_name)

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimeEntry":
        """Validate that a closed entry does not end before it starts.

        Raises:
            ValueError: If end_time precedes start_time
        """
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError(
                f"end_time ({self.end_time.isoformat()}) must not be before "
                f"start_time ({self.start_time.isoformat()})"
            )
        return self

    @property
    def is_open(self) -> bool:
        """True while the timer is running."""
        return self.end_time is None


class Expense(BaseDataModel):
    """Represents an expense incurred on a project.

    Attributes:
        id: Expense identifier
        user_id: User who recorded the expense
        project_id: Project the expense belongs to
        description: What was bought
        amount: Positive amount in currency units
        date: Date the expense was incurred
        billable: Whether the expense is charged on to the client
        receipt: Optional receipt reference
        invoice_id: Invoice this expense has been billed on, if any
    """

    id: str = Field(default_factory=new_id)
    user_id: str = Field(..., min_length=1)
    project_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    date: dt.date
    billable: bool = True
    receipt: Optional[str] = None
    invoice_id: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Convert the amount to Decimal for precision."""
        return to_decimal(v)
