"""Duration calculation for time entries.

Formula:
    elapsed = (end_time or now) - start_time
    hours   = elapsed seconds / 3600

Open entries are measured up to ``now``, which is always passed in by the
caller so results are deterministic.
"""

import datetime as dt
import logging
from dataclasses import dataclass
from decimal import Decimal

from timeledger.calculators.time_utils import (
    SECONDS_PER_HOUR,
    timedelta_to_decimal_hours,
)
from timeledger.models.time_entry import TimeEntry

logger = logging.getLogger(__name__)

RUNNING_LABEL = "Running"


@dataclass
class DurationResult:
    """Result of a duration calculation.

    Attributes:
        elapsed: Elapsed time, never negative
        hours: Elapsed hours as a float (for display and charts)
        formatted: "1h 30m" for closed entries, "Running" for open ones
        is_running: True if the entry has no end time
        clamped: True if a negative elapsed time was clamped to zero
    """

    elapsed: dt.timedelta
    hours: float
    formatted: str
    is_running: bool
    clamped: bool = False

    @property
    def decimal_hours(self) -> Decimal:
        """Exact elapsed hours for billing arithmetic."""
        return timedelta_to_decimal_hours(self.elapsed)


def format_hours_minutes(elapsed: dt.timedelta) -> str:
    """Format a timedelta as whole hours and minutes.

    Example:
        >>> format_hours_minutes(dt.timedelta(hours=1, minutes=30, seconds=59))
        '1h 30m'
    """
    total_minutes = int(elapsed.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"


def format_clock(elapsed: dt.timedelta) -> str:
    """Format a timedelta as HH:MM:SS for a running timer display.

    Example:
        >>> format_clock(dt.timedelta(hours=2, minutes=5, seconds=9))
        '02:05:09'
    """
    total_seconds = int(elapsed.total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def measure_elapsed(entry: TimeEntry, now: dt.datetime) -> dt.timedelta:
    """Return the raw elapsed time of an entry, which may be negative."""
    end = entry.end_time if entry.end_time is not None else now
    return end - entry.start_time


def compute_duration(entry: TimeEntry, now: dt.datetime) -> DurationResult:
    """Calculate the duration of a time entry.

    A negative elapsed time can only arise for an open entry whose start is
    ahead of ``now`` (clock skew); it is clamped to zero and logged as a
    data-integrity warning.

    Args:
        entry: The time entry
        now: Current time, used as the end of open entries

    Returns:
        DurationResult with hours and formatted string

    Example:
        >>> entry = TimeEntry(
        ...     user_id="u1",
        ...     project_id="p1",
        ...     start_time=dt.datetime(2024, 3, 4, 9, 0, tzinfo=dt.timezone.utc),
        ...     end_time=dt.datetime(2024, 3, 4, 10, 30, tzinfo=dt.timezone.utc),
        ... )
        >>> result = compute_duration(entry, now=entry.end_time)
        >>> result.hours, result.formatted
        (1.5, '1h 30m')
    """
    elapsed = measure_elapsed(entry, now)
    clamped = False

    if elapsed < dt.timedelta(0):
        logger.warning(
            f"Time entry {entry.id} has negative elapsed time "
            f"({elapsed}); clamping to zero",
            extra={"time_entry_id": entry.id, "user_id": entry.user_id},
        )
        elapsed = dt.timedelta(0)
        clamped = True

    is_running = entry.end_time is None
    formatted = RUNNING_LABEL if is_running else format_hours_minutes(elapsed)

    return DurationResult(
        elapsed=elapsed,
        hours=elapsed.total_seconds() / SECONDS_PER_HOUR,
        formatted=formatted,
        is_running=is_running,
        clamped=clamped,
    )
