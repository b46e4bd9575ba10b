"""Ledger persistence: the store interface and reference implementations."""

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
from timeledger.stores.json_store import JsonFileLedgerStore
from timeledger.stores.memory_store import InMemoryLedgerStore

__all__ = [
    "INVOICE_NUMBER_CONSTRAINT",
    "OPEN_ENTRY_CONSTRAINT",
    "ExpenseQuery",
    "InMemoryLedgerStore",
    "InvoiceQuery",
    "JsonFileLedgerStore",
    "LedgerStore",
    "PaymentQuery",
    "StoreError",
    "TimeEntryQuery",
    "UniqueConstraintError",
]
