"""Unit tests for duration calculation."""

import datetime as dt
import logging
from decimal import Decimal

from timeledger.calculators.duration_calculator import (
    compute_duration,
    format_clock,
    format_hours_minutes,
)
from timeledger.models import TimeEntry

UTC = dt.timezone.utc


def entry(start, end=None) -> TimeEntry:
    return TimeEntry(user_id="u1", project_id="p1", start_time=start, end_time=end)


class TestComputeDuration:
    """Test compute_duration."""

    def test_closed_entry(self):
        """09:00 to 10:30 is 1.5 hours, shown as 1h 30m."""
        e = entry(
            dt.datetime(2024, 3, 4, 9, 0, tzinfo=UTC),
            dt.datetime(2024, 3, 4, 10, 30, tzinfo=UTC),
        )

        result = compute_duration(e, now=dt.datetime(2024, 3, 5, tzinfo=UTC))

        assert result.hours == 1.5
        assert result.decimal_hours == Decimal("1.5")
        assert result.formatted == "1h 30m"
        assert not result.is_running
        assert not result.clamped

    def test_open_entry_measured_to_now(self):
        e = entry(dt.datetime(2024, 3, 4, 9, 0, tzinfo=UTC))

        result = compute_duration(e, now=dt.datetime(2024, 3, 4, 11, 15, tzinfo=UTC))

        assert result.is_running
        assert result.formatted == "Running"
        assert result.hours == 2.25

    def test_start_in_future_clamped(self, caplog):
        """An open entry whose start is after now is clamped and logged."""
        e = entry(dt.datetime(2024, 3, 4, 12, 0, tzinfo=UTC))

        with caplog.at_level(logging.WARNING):
            result = compute_duration(e, now=dt.datetime(2024, 3, 4, 11, 0, tzinfo=UTC))

        assert result.hours == 0
        assert result.elapsed == dt.timedelta(0)
        assert result.clamped
        assert "clamping to zero" in caplog.text

    def test_mixed_timezones(self):
        """Aware timestamps in different zones are compared as instants."""
        plus_two = dt.timezone(dt.timedelta(hours=2))
        e = entry(
            dt.datetime(2024, 3, 4, 9, 0, tzinfo=UTC),
            dt.datetime(2024, 3, 4, 12, 0, tzinfo=plus_two),
        )

        assert compute_duration(e, now=e.end_time).hours == 1.0


def test_format_hours_minutes_truncates_seconds():
    assert format_hours_minutes(dt.timedelta(hours=1, minutes=30, seconds=59)) == "1h 30m"
    assert format_hours_minutes(dt.timedelta(minutes=5)) == "0h 5m"


def test_format_clock():
    assert format_clock(dt.timedelta(hours=2, minutes=5, seconds=9)) == "02:05:09"
    assert format_clock(dt.timedelta(hours=26)) == "26:00:00"
