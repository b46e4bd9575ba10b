"""Unit tests for time utility functions."""

import datetime as dt
from decimal import Decimal

import pytest

from timeledger.calculators.time_utils import (
    DateRange,
    QuickFilter,
    month_range,
    timedelta_to_decimal_hours,
)


class TestTimedeltaToDecimalHours:
    """Test exact conversion to hours."""

    @pytest.mark.parametrize(
        "delta,expected",
        [
            (dt.timedelta(hours=1, minutes=30), Decimal("1.5")),
            (dt.timedelta(minutes=15), Decimal("0.25")),
            (dt.timedelta(days=1), Decimal("24")),
            (dt.timedelta(0), Decimal("0")),
        ],
    )
    def test_conversion(self, delta, expected):
        assert timedelta_to_decimal_hours(delta) == expected

    def test_returns_decimal(self):
        hours = timedelta_to_decimal_hours(dt.timedelta(minutes=20))
        assert isinstance(hours, Decimal)
        assert hours.quantize(Decimal("0.0001")) == Decimal("0.3333")


class TestDateRange:
    def test_inclusive_bounds(self):
        r = DateRange(dt.date(2024, 3, 1), dt.date(2024, 3, 31))

        assert r.contains(dt.date(2024, 3, 1))
        assert r.contains(dt.date(2024, 3, 31))
        assert not r.contains(dt.date(2024, 4, 1))

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError, match="cannot be before"):
            DateRange(dt.date(2024, 3, 2), dt.date(2024, 3, 1))

    def test_contains_datetime_uses_own_zone(self):
        """23:30 at UTC-5 is still March 31 for that timestamp."""
        r = DateRange(dt.date(2024, 3, 1), dt.date(2024, 3, 31))
        eastern = dt.timezone(dt.timedelta(hours=-5))

        assert r.contains_datetime(dt.datetime(2024, 3, 31, 23, 30, tzinfo=eastern))

    def test_month_range_leap_year(self):
        r = month_range(dt.date(2024, 2, 10))
        assert r == DateRange(dt.date(2024, 2, 1), dt.date(2024, 2, 29))


class TestQuickFilter:
    """Quick filters resolved against Wednesday 2024-03-06."""

    TODAY = dt.date(2024, 3, 6)

    def test_today_and_yesterday(self):
        assert QuickFilter.TODAY.date_range(self.TODAY) == DateRange(self.TODAY, self.TODAY)
        assert QuickFilter.YESTERDAY.date_range(self.TODAY) == DateRange(
            dt.date(2024, 3, 5), dt.date(2024, 3, 5)
        )

    def test_this_week_starts_sunday(self):
        assert QuickFilter.THIS_WEEK.date_range(self.TODAY) == DateRange(
            dt.date(2024, 3, 3), self.TODAY
        )

    def test_this_week_on_sunday(self):
        sunday = dt.date(2024, 3, 3)
        assert QuickFilter.THIS_WEEK.date_range(sunday) == DateRange(sunday, sunday)

    def test_last_week(self):
        assert QuickFilter.LAST_WEEK.date_range(self.TODAY) == DateRange(
            dt.date(2024, 2, 25), dt.date(2024, 3, 2)
        )

    def test_this_month(self):
        assert QuickFilter.THIS_MONTH.date_range(self.TODAY) == DateRange(
            dt.date(2024, 3, 1), self.TODAY
        )

    def test_last_month_across_year(self):
        assert QuickFilter.LAST_MONTH.date_range(dt.date(2024, 1, 15)) == DateRange(
            dt.date(2023, 12, 1), dt.date(2023, 12, 31)
        )

    def test_from_string(self):
        assert QuickFilter("this_week") is QuickFilter.THIS_WEEK
