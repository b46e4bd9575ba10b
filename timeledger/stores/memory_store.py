"""In-memory ledger store.

Transactions are serialized with a re-entrant lock held for the whole
block. The outermost transaction snapshots every table and restores the
snapshot if the block raises, so partial writes are never visible.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, TypeVar

from pydantic import BaseModel

from timeledger.models import (
    Client,
    Expense,
    Invoice,
    InvoiceItem,
    Payment,
    Project,
    TimeEntry,
)
from timeledger.stores.interface import (
    INVOICE_NUMBER_CONSTRAINT,
    OPEN_ENTRY_CONSTRAINT,
    ExpenseQuery,
    InvoiceQuery,
    LedgerStore,
    PaymentQuery,
    StoreError,
    TimeEntryQuery,
    UniqueConstraintError,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

TABLES = (
    "clients",
    "projects",
    "time_entries",
    "expenses",
    "invoices",
    "invoice_items",
    "payments",
)


def _copy(model: ModelT) -> ModelT:
    return model.model_copy(deep=True)


class InMemoryLedgerStore(LedgerStore):
    """Ledger store holding all rows in process memory.

    Example:
        >>> store = InMemoryLedgerStore()
        >>> with store.transaction():
        ...     store.add_client(Client(name="Acme", created_by_id="u1"))
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._depth = 0
        self._tables: Dict[str, dict] = {name: {} for name in TABLES}

    @contextmanager
    def transaction(self) -> Iterator["InMemoryLedgerStore"]:
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._begin()
            try:
                snapshot = self._snapshot() if outermost else None
                self._depth += 1
                try:
                    yield self
                    if outermost:
                        self._commit()
                except BaseException:
                    if outermost:
                        self._tables = snapshot
                        logger.debug("Transaction rolled back")
                    raise
                finally:
                    self._depth -= 1
            finally:
                if outermost:
                    self._end()

    @contextmanager
    def _reading(self) -> Iterator[None]:
        """Hold the lock for a read; outside a transaction, refresh first."""
        with self._lock:
            if self._depth == 0:
                self._refresh()
            yield

    def _snapshot(self) -> Dict[str, dict]:
        # Rows are replaced, never mutated in place, so table copies suffice
        return {name: dict(table) for name, table in self._tables.items()}

    def _begin(self) -> None:
        """Hook run before the outermost transaction starts."""
        pass

    def _end(self) -> None:
        """Hook run after the outermost transaction finished or failed."""
        pass

    def _refresh(self) -> None:
        """Hook run before a read outside any transaction."""
        pass

    def _commit(self) -> None:
        """Hook run after the outermost transaction succeeds."""
        pass

    # Clients and projects

    def add_client(self, client: Client) -> Client:
        with self.transaction():
            self._insert("clients", client)
        return _copy(client)

    def get_client(self, client_id: str) -> Optional[Client]:
        return self._get("clients", client_id)

    def list_clients(self, created_by_id: Optional[str] = None) -> List[Client]:
        with self._reading():
            clients = [
                _copy(c)
                for c in self._tables["clients"].values()
                if created_by_id is None or c.created_by_id == created_by_id
            ]
        return sorted(clients, key=lambda c: c.name.lower())

    def add_project(self, project: Project) -> Project:
        with self.transaction():
            self._insert("projects", project)
        return _copy(project)

    def get_project(self, project_id: str) -> Optional[Project]:
        return self._get("projects", project_id)

    def list_projects(
        self, created_by_id: Optional[str] = None, client_id: Optional[str] = None
    ) -> List[Project]:
        with self._reading():
            projects = [
                _copy(p)
                for p in self._tables["projects"].values()
                if (created_by_id is None or p.created_by_id == created_by_id)
                and (client_id is None or p.client_id == client_id)
            ]
        return sorted(projects, key=lambda p: p.name.lower())

    # Time entries

    def add_time_entry(self, entry: TimeEntry) -> TimeEntry:
        with self.transaction():
            self._check_open_entry(entry)
            self._insert("time_entries", entry)
        return _copy(entry)

    def get_time_entry(self, entry_id: str) -> Optional[TimeEntry]:
        return self._get("time_entries", entry_id)

    def update_time_entry(self, entry: TimeEntry) -> TimeEntry:
        with self.transaction():
            self._require("time_entries", entry.id)
            self._check_open_entry(entry)
            self._tables["time_entries"][entry.id] = _copy(entry)
        return _copy(entry)

    def delete_time_entry(self, entry_id: str) -> None:
        with self.transaction():
            self._require("time_entries", entry_id)
            del self._tables["time_entries"][entry_id]

    def find_time_entries(self, query: TimeEntryQuery) -> List[TimeEntry]:
        with self._reading():
            entries = [
                _copy(e) for e in self._tables["time_entries"].values() if query.matches(e)
            ]
        return sorted(entries, key=lambda e: e.start_time, reverse=True)

    def _check_open_entry(self, entry: TimeEntry) -> None:
        if not entry.is_open:
            return
        for other in self._tables["time_entries"].values():
            if other.is_open and other.user_id == entry.user_id and other.id != entry.id:
                raise UniqueConstraintError(
                    OPEN_ENTRY_CONSTRAINT,
                    f"User {entry.user_id} already has an open time entry",
                    conflicting_id=other.id,
                )

    # Expenses

    def add_expense(self, expense: Expense) -> Expense:
        with self.transaction():
            self._insert("expenses", expense)
        return _copy(expense)

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        return self._get("expenses", expense_id)

    def update_expense(self, expense: Expense) -> Expense:
        with self.transaction():
            self._require("expenses", expense.id)
            self._tables["expenses"][expense.id] = _copy(expense)
        return _copy(expense)

    def delete_expense(self, expense_id: str) -> None:
        with self.transaction():
            self._require("expenses", expense_id)
            del self._tables["expenses"][expense_id]

    def find_expenses(self, query: ExpenseQuery) -> List[Expense]:
        with self._reading():
            expenses = [
                _copy(e) for e in self._tables["expenses"].values() if query.matches(e)
            ]
        return sorted(expenses, key=lambda e: e.date, reverse=True)

    # Invoices

    def add_invoice(self, invoice: Invoice) -> Invoice:
        with self.transaction():
            self._check_invoice_number(invoice)
            self._insert("invoices", invoice.model_copy(update={"items": []}, deep=True))
            self._tables["invoice_items"][invoice.id] = [_copy(i) for i in invoice.items]
        return _copy(invoice)

    def get_invoice(self, invoice_id: str, include_items: bool = True) -> Optional[Invoice]:
        with self._reading():
            invoice = self._tables["invoices"].get(invoice_id)
            if invoice is None:
                return None
            return self._load_invoice(invoice, include_items)

    def update_invoice(self, invoice: Invoice) -> Invoice:
        with self.transaction():
            self._require("invoices", invoice.id)
            self._check_invoice_number(invoice)
            self._tables["invoices"][invoice.id] = invoice.model_copy(
                update={"items": []}, deep=True
            )
            return self._load_invoice(self._tables["invoices"][invoice.id], True)

    def replace_invoice_items(self, invoice_id: str, items: List[InvoiceItem]) -> None:
        with self.transaction():
            self._require("invoices", invoice_id)
            self._tables["invoice_items"][invoice_id] = [_copy(i) for i in items]

    def delete_invoice(self, invoice_id: str) -> None:
        with self.transaction():
            self._require("invoices", invoice_id)
            del self._tables["invoices"][invoice_id]
            self._tables["invoice_items"].pop(invoice_id, None)

    def find_invoices(
        self, query: InvoiceQuery, include_items: bool = False
    ) -> List[Invoice]:
        with self._reading():
            invoices = [
                self._load_invoice(inv, include_items)
                for inv in self._tables["invoices"].values()
                if query.matches(inv)
            ]
        return sorted(invoices, key=lambda i: (i.issue_date, i.invoice_number), reverse=True)

    def _load_invoice(self, invoice: Invoice, include_items: bool) -> Invoice:
        items = self._tables["invoice_items"].get(invoice.id, []) if include_items else []
        return invoice.model_copy(update={"items": [_copy(i) for i in items]}, deep=True)

    def _check_invoice_number(self, invoice: Invoice) -> None:
        for other in self._tables["invoices"].values():
            if other.invoice_number == invoice.invoice_number and other.id != invoice.id:
                raise UniqueConstraintError(
                    INVOICE_NUMBER_CONSTRAINT,
                    f"Invoice number {invoice.invoice_number} already exists",
                    conflicting_id=other.id,
                )

    # Payments

    def add_payment(self, payment: Payment) -> Payment:
        with self.transaction():
            self._insert("payments", payment)
        return _copy(payment)

    def find_payments(self, query: PaymentQuery) -> List[Payment]:
        with self._reading():
            payments = [
                _copy(p) for p in self._tables["payments"].values() if query.matches(p)
            ]
        return sorted(payments, key=lambda p: p.created_at, reverse=True)

    # Helpers

    def _insert(self, table: str, row: BaseModel) -> None:
        if row.id in self._tables[table]:
            raise StoreError(f"Duplicate id {row.id} in {table}")
        self._tables[table][row.id] = _copy(row)

    def _get(self, table: str, row_id: str) -> Optional[BaseModel]:
        with self._reading():
            row = self._tables[table].get(row_id)
            return _copy(row) if row is not None else None

    def _require(self, table: str, row_id: str) -> None:
        if row_id not in self._tables[table]:
            raise StoreError(f"No row {row_id} in {table}")
