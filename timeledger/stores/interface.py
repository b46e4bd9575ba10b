"""Persistence interface for the ledger.

Services talk to storage only through ``LedgerStore``. A store must provide:
- Atomic multi-row transactions (``with store.transaction(): ...``)
- Query by user, project, date range and link state
- Eager loading of invoice items
- Two uniqueness constraints: one open time entry per user, and one invoice
  per invoice number. Violations raise ``UniqueConstraintError``.
"""

import datetime as dt
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ContextManager, Iterable, List, Optional

from timeledger.models import (
    Client,
    Expense,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    Payment,
    Project,
    TimeEntry,
)

OPEN_ENTRY_CONSTRAINT = "time_entries_one_open_per_user"
INVOICE_NUMBER_CONSTRAINT = "invoices_invoice_number_key"


class StoreError(Exception):
    """Base exception for storage failures."""

    pass


class UniqueConstraintError(StoreError):
    """A write would violate a uniqueness constraint.

    Attributes:
        constraint: Name of the violated constraint
        conflicting_id: Id of the row already holding the unique value
    """

    def __init__(self, constraint: str, message: str, conflicting_id: Optional[str] = None):
        self.constraint = constraint
        self.conflicting_id = conflicting_id
        super().__init__(message)


@dataclass
class TimeEntryQuery:
    """Filter for time entries. ``None`` fields do not filter.

    The date range applies to the calendar date of ``start_time`` and is
    inclusive at both ends.
    """

    user_id: Optional[str] = None
    project_ids: Optional[Iterable[str]] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    billable: Optional[bool] = None
    is_open: Optional[bool] = None
    invoiced: Optional[bool] = None

    def matches(self, entry: TimeEntry) -> bool:
        if self.user_id is not None and entry.user_id != self.user_id:
            return False
        if self.project_ids is not None and entry.project_id not in set(self.project_ids):
            return False
        start_day = entry.start_time.date()
        if self.start_date is not None and start_day < self.start_date:
            return False
        if self.end_date is not None and start_day > self.end_date:
            return False
        if self.billable is not None and entry.billable != self.billable:
            return False
        if self.is_open is not None and entry.is_open != self.is_open:
            return False
        if self.invoiced is not None and (entry.invoice_id is not None) != self.invoiced:
            return False
        return True


@dataclass
class ExpenseQuery:
    """Filter for expenses; the date range is inclusive."""

    user_id: Optional[str] = None
    project_ids: Optional[Iterable[str]] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    billable: Optional[bool] = None
    invoiced: Optional[bool] = None

    def matches(self, expense: Expense) -> bool:
        if self.user_id is not None and expense.user_id != self.user_id:
            return False
        if self.project_ids is not None and expense.project_id not in set(self.project_ids):
            return False
        if self.start_date is not None and expense.date < self.start_date:
            return False
        if self.end_date is not None and expense.date > self.end_date:
            return False
        if self.billable is not None and expense.billable != self.billable:
            return False
        if self.invoiced is not None and (expense.invoice_id is not None) != self.invoiced:
            return False
        return True


@dataclass
class InvoiceQuery:
    """Filter for invoices by owner, client, status and issue date."""

    user_id: Optional[str] = None
    client_id: Optional[str] = None
    statuses: Optional[Iterable[InvoiceStatus]] = None
    issued_from: Optional[dt.date] = None
    issued_to: Optional[dt.date] = None
    number_prefix: Optional[str] = None

    def matches(self, invoice: Invoice) -> bool:
        if self.user_id is not None and invoice.user_id != self.user_id:
            return False
        if self.client_id is not None and invoice.client_id != self.client_id:
            return False
        if self.statuses is not None and invoice.status not in set(self.statuses):
            return False
        if self.issued_from is not None and invoice.issue_date < self.issued_from:
            return False
        if self.issued_to is not None and invoice.issue_date > self.issued_to:
            return False
        if self.number_prefix is not None and not invoice.invoice_number.startswith(
            self.number_prefix
        ):
            return False
        return True


@dataclass
class PaymentQuery:
    """Filter for payments by invoice and creation time."""

    invoice_ids: Optional[Iterable[str]] = None
    created_since: Optional[dt.datetime] = None

    def matches(self, payment: Payment) -> bool:
        if self.invoice_ids is not None and payment.invoice_id not in set(self.invoice_ids):
            return False
        if self.created_since is not None and payment.created_at < self.created_since:
            return False
        return True


class LedgerStore(ABC):
    """Abstract ledger persistence.

    Reads return copies: mutating a returned model never changes stored
    state. Every write outside an explicit transaction is its own
    transaction.
    """

    @abstractmethod
    def transaction(self) -> ContextManager["LedgerStore"]:
        """Open a transaction; nested calls join the outer one.

        All writes inside become visible together on successful exit and
        are discarded if the block raises.
        """

    # Clients and projects

    @abstractmethod
    def add_client(self, client: Client) -> Client:
        pass

    @abstractmethod
    def get_client(self, client_id: str) -> Optional[Client]:
        pass

    @abstractmethod
    def list_clients(self, created_by_id: Optional[str] = None) -> List[Client]:
        pass

    @abstractmethod
    def add_project(self, project: Project) -> Project:
        pass

    @abstractmethod
    def get_project(self, project_id: str) -> Optional[Project]:
        pass

    @abstractmethod
    def list_projects(
        self, created_by_id: Optional[str] = None, client_id: Optional[str] = None
    ) -> List[Project]:
        pass

    # Time entries

    @abstractmethod
    def add_time_entry(self, entry: TimeEntry) -> TimeEntry:
        """Insert an entry.

        Raises:
            UniqueConstraintError: If the entry is open and the user already
                has an open entry
        """

    @abstractmethod
    def get_time_entry(self, entry_id: str) -> Optional[TimeEntry]:
        pass

    @abstractmethod
    def update_time_entry(self, entry: TimeEntry) -> TimeEntry:
        """Replace a stored entry.

        Raises:
            StoreError: If the entry does not exist
            UniqueConstraintError: If reopening it would give the user a
                second open entry
        """

    @abstractmethod
    def delete_time_entry(self, entry_id: str) -> None:
        pass

    @abstractmethod
    def find_time_entries(self, query: TimeEntryQuery) -> List[TimeEntry]:
        """Entries matching the query, ordered by start_time descending."""

    # Expenses

    @abstractmethod
    def add_expense(self, expense: Expense) -> Expense:
        pass

    @abstractmethod
    def get_expense(self, expense_id: str) -> Optional[Expense]:
        pass

    @abstractmethod
    def update_expense(self, expense: Expense) -> Expense:
        pass

    @abstractmethod
    def delete_expense(self, expense_id: str) -> None:
        pass

    @abstractmethod
    def find_expenses(self, query: ExpenseQuery) -> List[Expense]:
        """Expenses matching the query, ordered by date descending."""

    # Invoices

    @abstractmethod
    def add_invoice(self, invoice: Invoice) -> Invoice:
        """Insert an invoice together with ``invoice.items``.

        Raises:
            UniqueConstraintError: If the invoice number is already taken
        """

    @abstractmethod
    def get_invoice(self, invoice_id: str, include_items: bool = True) -> Optional[Invoice]:
        pass

    @abstractmethod
    def update_invoice(self, invoice: Invoice) -> Invoice:
        """Replace the invoice header. Items are left untouched."""

    @abstractmethod
    def replace_invoice_items(self, invoice_id: str, items: List[InvoiceItem]) -> None:
        """Delete every item of the invoice and insert ``items``."""

    @abstractmethod
    def delete_invoice(self, invoice_id: str) -> None:
        """Delete an invoice and its items."""

    @abstractmethod
    def find_invoices(
        self, query: InvoiceQuery, include_items: bool = False
    ) -> List[Invoice]:
        """Invoices matching the query, ordered by issue_date descending."""

    # Payments

    @abstractmethod
    def add_payment(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    def find_payments(self, query: PaymentQuery) -> List[Payment]:
        """Payments matching the query, ordered by created_at descending."""
