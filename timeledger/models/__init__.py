"""Data models for the time and billing ledger.

This package contains Pydantic models for all ledger entities:
- BaseDataModel: Base class with common configuration
- Client, Project: Who is billed and at what rate
- TimeEntry, Expense: Tracked work and costs
- Invoice, InvoiceItem, Payment: Billing documents and receipts
- Notification: Derived, non-persisted alerts
"""

from timeledger.models.base import BaseDataModel, new_id, to_decimal
from timeledger.models.invoice import (
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    ItemType,
    LineItem,
    Payment,
    PaymentMethod,
)
from timeledger.models.notification import Notification, NotificationType
from timeledger.models.project import Client, Project, ProjectStatus
from timeledger.models.time_entry import Expense, TimeEntry, utc_now

__all__ = [
    "BaseDataModel",
    "Client",
    "Expense",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "ItemType",
    "LineItem",
    "Notification",
    "NotificationType",
    "Payment",
    "PaymentMethod",
    "Project",
    "ProjectStatus",
    "TimeEntry",
    "new_id",
    "to_decimal",
    "utc_now",
]
