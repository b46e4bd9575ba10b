"""Time calculation utilities for the ledger.

This module provides low-level helpers for:
- Converting timedeltas to exact decimal hours
- Inclusive calendar date ranges
- Quick date filters (today, last week, ...) relative to a given day
"""

import calendar
import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

SECONDS_PER_HOUR = 3600
MICROSECONDS_PER_SECOND = 1_000_000


def timedelta_to_decimal_hours(td: dt.timedelta) -> Decimal:
    """Convert a timedelta to decimal hours without rounding.

    The conversion works on integer microseconds so no binary float error
    enters the billing arithmetic.

    Example:
        >>> timedelta_to_decimal_hours(dt.timedelta(hours=1, minutes=30))
        Decimal('1.5')
        >>> timedelta_to_decimal_hours(dt.timedelta(minutes=15))
        Decimal('0.25')
    """
    total_microseconds = (
        td.days * 86400 + td.seconds
    ) * MICROSECONDS_PER_SECOND + td.microseconds
    return Decimal(total_microseconds) / Decimal(
        SECONDS_PER_HOUR * MICROSECONDS_PER_SECOND
    )


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates.

    Attributes:
        start: First day in the range
        end: Last day in the range

    Example:
        >>> r = DateRange(dt.date(2024, 3, 1), dt.date(2024, 3, 31))
        >>> r.contains(dt.date(2024, 3, 31))
        True
    """

    start: dt.date
    end: dt.date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(
                f"Date range end ({self.end}) cannot be before start ({self.start})"
            )

    def contains(self, day: dt.date) -> bool:
        """True if the day falls within the range (both ends inclusive)."""
        return self.start <= day <= self.end

    def contains_datetime(self, moment: dt.datetime) -> bool:
        """True if the timestamp's calendar date (in its own zone) is in range."""
        return self.contains(moment.date())

    def __str__(self) -> str:
        return f"{self.start.isoformat()} to {self.end.isoformat()}"


def month_range(day: dt.date) -> DateRange:
    """Return the calendar month containing ``day``.

    Example:
        >>> month_range(dt.date(2024, 2, 10))
        DateRange(start=datetime.date(2024, 2, 1), end=datetime.date(2024, 2, 29))
    """
    last_day = calendar.monthrange(day.year, day.month)[1]
    return DateRange(day.replace(day=1), day.replace(day=last_day))


class QuickFilter(str, Enum):
    """Named date windows relative to today. Weeks start on Sunday."""

    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "this_week"
    LAST_WEEK = "last_week"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"

    def date_range(self, today: dt.date) -> DateRange:
        """Resolve the filter to a concrete DateRange.

        Example:
            >>> QuickFilter.LAST_WEEK.date_range(dt.date(2024, 3, 6))
            DateRange(start=datetime.date(2024, 2, 25), end=datetime.date(2024, 3, 2))
        """
        if self is QuickFilter.TODAY:
            return DateRange(today, today)

        if self is QuickFilter.YESTERDAY:
            yesterday = today - dt.timedelta(days=1)
            return DateRange(yesterday, yesterday)

        # Python weeks start on Monday (weekday() == 0); shift to Sunday
        week_start = today - dt.timedelta(days=(today.weekday() + 1) % 7)

        if self is QuickFilter.THIS_WEEK:
            return DateRange(week_start, today)

        if self is QuickFilter.LAST_WEEK:
            return DateRange(
                week_start - dt.timedelta(days=7), week_start - dt.timedelta(days=1)
            )

        if self is QuickFilter.THIS_MONTH:
            return DateRange(today.replace(day=1), today)

        last_month_end = today.replace(day=1) - dt.timedelta(days=1)
        return month_range(last_month_end)
