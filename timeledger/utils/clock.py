"""Injectable time source.

Services ask a clock for ``now()`` instead of calling ``datetime.now``
directly, so tests can pin and advance time.
"""

import datetime as dt
from typing import Optional, Protocol


class Clock(Protocol):
    """Anything that can tell the current timezone-aware time."""

    def now(self) -> dt.datetime: ...

    def today(self) -> dt.date: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> dt.datetime:
        return dt.datetime.now(dt.timezone.utc)

    def today(self) -> dt.date:
        return self.now().date()


class FixedClock:
    """A clock that only moves when told to.

    Example:
        >>> clock = FixedClock(dt.datetime(2024, 3, 4, 9, 0, tzinfo=dt.timezone.utc))
        >>> clock.advance(hours=1, minutes=30)
        >>> clock.now().hour
        10
    """

    def __init__(self, current: Optional[dt.datetime] = None):
        current = current or dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
        if current.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._current = current

    def now(self) -> dt.datetime:
        return self._current

    def today(self) -> dt.date:
        return self._current.date()

    def set(self, current: dt.datetime) -> None:
        if current.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._current = current

    def advance(self, **delta) -> None:
        """Move the clock forward by ``timedelta(**delta)``."""
        self._current = self._current + dt.timedelta(**delta)
