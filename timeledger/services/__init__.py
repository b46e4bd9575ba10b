"""Ledger services: timers, entries, invoices and payments."""

from timeledger.services.catalog import CatalogService
from timeledger.services.entry_service import ExpenseService, TimeEntryService
from timeledger.services.invoice_builder import (
    InvoiceBuilder,
    InvoiceTotals,
    compute_totals,
)
from timeledger.services.payment_ledger import PaymentLedger
from timeledger.services.retry_handler import RetryExhaustedException, RetryHandler
from timeledger.services.timer_controller import RunningTimer, TimerController

__all__ = [
    "CatalogService",
    "ExpenseService",
    "InvoiceBuilder",
    "InvoiceTotals",
    "PaymentLedger",
    "RetryExhaustedException",
    "RetryHandler",
    "RunningTimer",
    "TimeEntryService",
    "TimerController",
    "compute_totals",
]
