"""Manual time entries and expenses.

Rows that have been billed on an invoice (``invoice_id`` set) cannot be
deleted; the check happens before any mutation, so a refused delete leaves
the row exactly as it was.
"""

import datetime as dt
import logging
from decimal import Decimal
from typing import Any, List, Optional, Union

from timeledger.calculators.time_utils import QuickFilter
from timeledger.errors import ConflictError, ForbiddenError, ValidationError
from timeledger.models import Expense, TimeEntry
from timeledger.services.ownership import (
    require_expense,
    require_project,
    require_time_entry,
)
from timeledger.services.timer_controller import ALREADY_RUNNING
from timeledger.stores.interface import (
    ExpenseQuery,
    LedgerStore,
    TimeEntryQuery,
    UniqueConstraintError,
)
from timeledger.utils.clock import Clock, SystemClock
from timeledger.utils.logging_utils import LogContext
from timeledger.validators import BusinessRuleValidators, FieldValidators, ValidationReport

logger = logging.getLogger(__name__)

EDITABLE_ENTRY_FIELDS = {"project_id", "description", "start_time", "end_time", "billable"}


def _raise_if_invalid(report: ValidationReport, message: str) -> None:
    for issue in report.get_warnings():
        logger.warning(str(issue))
    if report.has_errors():
        raise ValidationError(message, report=report)


class TimeEntryService:
    """Create, edit, delete and list time entries outside the timer flow."""

    def __init__(self, store: LedgerStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or SystemClock()

    def create_manual(
        self,
        user_id: str,
        project_id: str,
        start_time: dt.datetime,
        end_time: Optional[dt.datetime] = None,
        description: Optional[str] = None,
        billable: bool = True,
    ) -> TimeEntry:
        """Record a block of time after the fact.

        An entry without an end time is an open timer and is refused if the
        user already has one.

        Raises:
            ValidationError: If the time range is invalid
            NotFoundError: If the project does not exist or is not the user's
            ConflictError: If the entry is open and another one already is
        """
        report = ValidationReport()
        BusinessRuleValidators.validate_time_range(start_time, end_time, report)
        _raise_if_invalid(report, "Invalid time entry data")

        entry = TimeEntry(
            user_id=user_id,
            project_id=project_id,
            description=description,
            start_time=start_time,
            end_time=end_time,
            billable=billable,
        )
        with LogContext(user_id=user_id, project_id=project_id):
            with self.store.transaction():
                require_project(self.store, project_id, user_id)
                saved = self._write(entry, self.store.add_time_entry)
            logger.info(f"Created time entry {saved.id}")
        return saved

    def update(self, entry_id: str, user_id: str, **changes: Any) -> TimeEntry:
        """Apply changes to an entry the user owns.

        Args:
            entry_id: Entry to edit
            user_id: Authenticated user
            **changes: Any of project_id, description, start_time, end_time,
                billable. Passing ``end_time=None`` reopens the entry.

        Raises:
            ValidationError: On unknown fields or an invalid time range
            NotFoundError: If the entry or new project is not the user's
            ConflictError: If reopening would give the user two open entries
        """
        report = ValidationReport()
        for name in sorted(set(changes) - EDITABLE_ENTRY_FIELDS):
            report.add_error(name, "Field cannot be edited", changes[name])
        _raise_if_invalid(report, "Invalid time entry update")

        with LogContext(user_id=user_id, time_entry_id=entry_id):
            with self.store.transaction():
                entry = require_time_entry(self.store, entry_id, user_id)
                if "project_id" in changes and changes["project_id"] != entry.project_id:
                    require_project(self.store, changes["project_id"], user_id)

                merged = {**entry.model_dump(), **changes}
                BusinessRuleValidators.validate_time_range(
                    merged["start_time"], merged["end_time"], report
                )
                _raise_if_invalid(report, "Invalid time entry update")

                saved = self._write(
                    TimeEntry.model_validate(merged), self.store.update_time_entry
                )
            logger.info(f"Updated time entry {entry_id}: {sorted(changes)}")
        return saved

    def delete(self, entry_id: str, user_id: str) -> None:
        """Delete an entry that has not been invoiced.

        Raises:
            NotFoundError: If the entry is absent or not the user's
            ForbiddenError: If the entry is linked to an invoice
        """
        with LogContext(user_id=user_id, time_entry_id=entry_id):
            with self.store.transaction():
                entry = require_time_entry(self.store, entry_id, user_id)
                if entry.invoice_id is not None:
                    raise ForbiddenError(
                        "Cannot delete a time entry that has been invoiced",
                        recovery_hint=f"Remove it from invoice {entry.invoice_id} first",
                    )
                self.store.delete_time_entry(entry_id)
            logger.info(f"Deleted time entry {entry_id}")

    def list_entries(
        self,
        user_id: str,
        quick_filter: Optional[Union[QuickFilter, str]] = None,
        start_date: Optional[dt.date] = None,
        end_date: Optional[dt.date] = None,
        project_id: Optional[str] = None,
        client_id: Optional[str] = None,
        billable: Optional[bool] = None,
    ) -> List[TimeEntry]:
        """List the user's entries, newest first.

        A quick filter, when given, takes precedence over explicit dates and
        is resolved against the clock's current day.
        """
        if quick_filter is not None:
            window = QuickFilter(quick_filter).date_range(self.clock.today())
            start_date, end_date = window.start, window.end

        project_ids = None
        if client_id is not None:
            project_ids = {
                p.id for p in self.store.list_projects(created_by_id=user_id, client_id=client_id)
            }
        if project_id is not None:
            project_ids = {project_id} if project_ids is None else project_ids & {project_id}

        return self.store.find_time_entries(
            TimeEntryQuery(
                user_id=user_id,
                project_ids=project_ids,
                start_date=start_date,
                end_date=end_date,
                billable=billable,
            )
        )

    def _write(self, entry: TimeEntry, write) -> TimeEntry:
        if entry.is_open:
            running = [
                e
                for e in self.store.find_time_entries(
                    TimeEntryQuery(user_id=entry.user_id, is_open=True)
                )
                if e.id != entry.id
            ]
            if running:
                raise ConflictError(ALREADY_RUNNING, conflicting_id=running[0].id)
        try:
            return write(entry)
        except UniqueConstraintError as e:
            raise ConflictError(ALREADY_RUNNING, conflicting_id=e.conflicting_id) from e


class ExpenseService:
    """Record and delete expenses."""

    def __init__(self, store: LedgerStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or SystemClock()

    def create(
        self,
        user_id: str,
        project_id: str,
        description: str,
        amount: Union[Decimal, str, int, float],
        date: Optional[dt.date] = None,
        billable: bool = True,
        receipt: Optional[str] = None,
    ) -> Expense:
        """Record an expense; the date defaults to today.

        Raises:
            ValidationError: If the description is empty or amount not > 0
            NotFoundError: If the project does not exist or is not the user's
        """
        report = ValidationReport()
        description = FieldValidators.validate_non_empty_string(
            description, "description", report
        )
        amount = FieldValidators.validate_positive_number(amount, "amount", report)
        _raise_if_invalid(report, "Invalid expense data")

        with LogContext(user_id=user_id, project_id=project_id):
            with self.store.transaction():
                require_project(self.store, project_id, user_id)
                expense = self.store.add_expense(
                    Expense(
                        user_id=user_id,
                        project_id=project_id,
                        description=description,
                        amount=amount,
                        date=date or self.clock.today(),
                        billable=billable,
                        receipt=receipt,
                    )
                )
            logger.info(f"Recorded expense {expense.id} of {expense.amount}")
        return expense

    def delete(self, expense_id: str, user_id: str) -> None:
        """Delete an expense that has not been invoiced.

        Raises:
            NotFoundError: If the expense is absent or not the user's
            ForbiddenError: If the expense is linked to an invoice
        """
        with LogContext(user_id=user_id, expense_id=expense_id):
            with self.store.transaction():
                expense = require_expense(self.store, expense_id, user_id)
                if expense.invoice_id is not None:
                    raise ForbiddenError(
                        "Cannot delete an expense that has been invoiced",
                        recovery_hint=f"Remove it from invoice {expense.invoice_id} first",
                    )
                self.store.delete_expense(expense_id)
            logger.info(f"Deleted expense {expense_id}")

    def list_expenses(
        self,
        user_id: str,
        start_date: Optional[dt.date] = None,
        end_date: Optional[dt.date] = None,
        billable: Optional[bool] = None,
    ) -> List[Expense]:
        """List the user's expenses, newest first."""
        return self.store.find_expenses(
            ExpenseQuery(
                user_id=user_id,
                start_date=start_date,
                end_date=end_date,
                billable=billable,
            )
        )
