"""Single-active-timer state machine.

Each user has at most one open time entry. Starting or resuming a timer
checks for an open entry and inserts the new one inside a single store
transaction; the store's own one-open-entry constraint backs that check
against writers outside this process.

The current timer is always read from the store and never cached here.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from timeledger.calculators.duration_calculator import (
    DurationResult,
    compute_duration,
    format_clock,
)
from timeledger.errors import ConflictError, NotFoundError
from timeledger.models import TimeEntry
from timeledger.services.ownership import require_project, require_time_entry
from timeledger.stores.interface import LedgerStore, TimeEntryQuery, UniqueConstraintError
from timeledger.utils.clock import Clock, SystemClock
from timeledger.utils.logging_utils import LogContext

logger = logging.getLogger(__name__)

ALREADY_RUNNING = (
    "You already have a running time entry. Please stop it before starting a new one."
)


@dataclass
class RunningTimer:
    """The open entry of a user and how long it has been running.

    Attributes:
        entry: The open time entry
        duration: Duration measured up to the time of the read
        elapsed: Elapsed time as HH:MM:SS
    """

    entry: TimeEntry
    duration: DurationResult
    elapsed: str


class TimerController:
    """Start, stop and resume timers for a user.

    Example:
        >>> timers = TimerController(store, clock)
        >>> entry = timers.start("u1", project.id, description="Design review")
        >>> timers.stop(entry.id, "u1").end_time is not None
        True
    """

    def __init__(self, store: LedgerStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or SystemClock()

    def start(
        self,
        user_id: str,
        project_id: str,
        description: Optional[str] = None,
        billable: bool = True,
    ) -> TimeEntry:
        """Open a new timer for the user.

        Raises:
            NotFoundError: If the project does not exist or is not the user's
            ConflictError: If the user already has an open entry
        """
        with LogContext(user_id=user_id, project_id=project_id):
            with self.store.transaction():
                require_project(self.store, project_id, user_id)
                entry = self._open_entry(
                    TimeEntry(
                        user_id=user_id,
                        project_id=project_id,
                        description=description,
                        start_time=self.clock.now(),
                        billable=billable,
                    )
                )
            logger.info(f"Started timer {entry.id}")
            return entry

    def stop(self, entry_id: str, user_id: str) -> TimeEntry:
        """Close the user's open entry at the current time.

        Raises:
            NotFoundError: If the entry is absent, not the user's, or already
                closed. Nothing is modified in that case.
        """
        with LogContext(user_id=user_id, time_entry_id=entry_id):
            with self.store.transaction():
                entry = self.store.get_time_entry(entry_id)
                if entry is None or entry.user_id != user_id or not entry.is_open:
                    raise NotFoundError(
                        "Time entry not found, already completed, or you don't "
                        "have permission to modify it"
                    )
                now = self.clock.now()
                if now < entry.start_time:
                    logger.warning(
                        f"Clock is behind start of timer {entry_id}; "
                        f"closing it with zero duration"
                    )
                    now = entry.start_time
                stopped = entry.model_copy(update={"end_time": now})
                self.store.update_time_entry(stopped)
            logger.info(
                f"Stopped timer {entry_id} after "
                f"{compute_duration(stopped, stopped.end_time).formatted}"
            )
            return stopped

    def resume(self, source_entry_id: str, user_id: str) -> TimeEntry:
        """Start a new timer copying project, description and billable flag.

        Raises:
            NotFoundError: If the source entry is absent or not the user's
            ConflictError: If the user already has an open entry
        """
        with LogContext(user_id=user_id, time_entry_id=source_entry_id):
            with self.store.transaction():
                try:
                    source = require_time_entry(self.store, source_entry_id, user_id)
                except NotFoundError:
                    raise NotFoundError(
                        "Source time entry not found or you don't have "
                        "permission to access it"
                    )
                entry = self._open_entry(
                    TimeEntry(
                        user_id=user_id,
                        project_id=source.project_id,
                        description=source.description,
                        start_time=self.clock.now(),
                        billable=source.billable,
                    )
                )
            logger.info(f"Resumed {source_entry_id} as timer {entry.id}")
            return entry

    def current(self, user_id: str) -> Optional[RunningTimer]:
        """Return the user's open entry with its elapsed time, or None."""
        open_entries = self.store.find_time_entries(
            TimeEntryQuery(user_id=user_id, is_open=True)
        )
        if not open_entries:
            return None

        entry = open_entries[0]
        duration = compute_duration(entry, self.clock.now())
        return RunningTimer(
            entry=entry, duration=duration, elapsed=format_clock(duration.elapsed)
        )

    def _open_entry(self, entry: TimeEntry) -> TimeEntry:
        """Insert an open entry unless the user already has one.

        Must run inside a store transaction.
        """
        running = self.store.find_time_entries(
            TimeEntryQuery(user_id=entry.user_id, is_open=True)
        )
        if running:
            raise ConflictError(ALREADY_RUNNING, conflicting_id=running[0].id)

        try:
            return self.store.add_time_entry(entry)
        except UniqueConstraintError as e:
            raise ConflictError(ALREADY_RUNNING, conflicting_id=e.conflicting_id) from e
