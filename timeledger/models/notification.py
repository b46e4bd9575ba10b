"""Notification model.

Notifications are derived on demand from ledger state and are never stored.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field

from timeledger.models.base import BaseDataModel


class NotificationType(str, Enum):
    """Kinds of derived alerts."""

    OVERDUE_INVOICE = "overdue_invoice"
    UPCOMING_INVOICE = "upcoming_invoice"
    RUNNING_TIMER = "running_timer"
    PAYMENT_RECEIVED = "payment_received"


class Notification(BaseDataModel):
    """A transient alert about the current ledger state.

    Attributes:
        id: Stable identifier derived from the source row (e.g. overdue-<id>)
        type: Kind of alert
        title: Short heading
        message: Human-readable text
        reference_time: Timestamp used for ordering
        invoice_id: Related invoice, if any
        client_id: Related client, if any
        project_id: Related project, if any
        time_entry_id: Related time entry, if any
        payment_id: Related payment, if any
        amount: Related amount, if any
        days_overdue: Whole days past the due date (overdue alerts)
        days_until_due: Whole days until the due date (upcoming alerts)
        elapsed_hours: Whole hours the timer has run (timer alerts)
        read: Always False; read state is not persisted
    """

    id: str
    type: NotificationType
    title: str
    message: str
    reference_time: dt.datetime
    invoice_id: Optional[str] = None
    client_id: Optional[str] = None
    project_id: Optional[str] = None
    time_entry_id: Optional[str] = None
    payment_id: Optional[str] = None
    amount: Optional[Decimal] = None
    days_overdue: Optional[int] = Field(default=None, ge=0)
    days_until_due: Optional[int] = Field(default=None, ge=0)
    elapsed_hours: Optional[int] = Field(default=None, ge=0)
    read: bool = False
