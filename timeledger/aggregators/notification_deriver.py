"""Derived notifications.

Notifications are computed from the current ledger state every time they
are asked for and are never stored, so they carry no read state:
- overdue_invoice: SENT or OVERDUE invoices whose due date has passed
- upcoming_invoice: SENT invoices due within the next N days
- running_timer: every open time entry
- payment_received: payments recorded within the last N hours

The result is ordered newest reference time first.
"""

import datetime as dt
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from timeledger.calculators.money import format_money
from timeledger.models import (
    Client,
    Invoice,
    InvoiceStatus,
    Notification,
    NotificationType,
    Payment,
    Project,
    TimeEntry,
)
from timeledger.stores.interface import (
    InvoiceQuery,
    LedgerStore,
    PaymentQuery,
    TimeEntryQuery,
)
from timeledger.utils.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

OVERDUE_STATUSES = {InvoiceStatus.SENT, InvoiceStatus.OVERDUE}
UPCOMING_STATUSES = {InvoiceStatus.SENT}

SECONDS_PER_HOUR = 3600


@dataclass
class LedgerSnapshot:
    """The rows notifications are derived from.

    Attributes:
        invoices: The user's invoices
        time_entries: The user's time entries (only open ones matter)
        payments: Payments on the user's invoices
        clients: Client rows by id, for names
        projects: Project rows by id, for names
    """

    invoices: Sequence[Invoice] = field(default_factory=list)
    time_entries: Sequence[TimeEntry] = field(default_factory=list)
    payments: Sequence[Payment] = field(default_factory=list)
    clients: Mapping[str, Client] = field(default_factory=dict)
    projects: Mapping[str, Project] = field(default_factory=dict)

    def client_name(self, client_id: Optional[str]) -> str:
        client = self.clients.get(client_id) if client_id else None
        return client.name if client else "Unknown client"


@dataclass
class NotificationFeed:
    """Notifications plus how many there are of each kind."""

    notifications: List[Notification]
    counts: Dict[str, int]


def _start_of_day(day: dt.date, tzinfo: dt.tzinfo) -> dt.datetime:
    return dt.datetime.combine(day, dt.time.min, tzinfo=tzinfo)


def _overdue(invoice: Invoice, snapshot: LedgerSnapshot, today: dt.date, tz) -> Notification:
    days = (today - invoice.due_date).days
    return Notification(
        id=f"overdue-{invoice.id}",
        type=NotificationType.OVERDUE_INVOICE,
        title="Overdue Invoice",
        message=(
            f"Invoice {invoice.invoice_number} for "
            f"{snapshot.client_name(invoice.client_id)} is overdue by {days} days."
        ),
        reference_time=_start_of_day(invoice.due_date, tz),
        invoice_id=invoice.id,
        client_id=invoice.client_id,
        amount=invoice.total,
        days_overdue=days,
    )


def _upcoming(invoice: Invoice, snapshot: LedgerSnapshot, today: dt.date, tz) -> Notification:
    days = (invoice.due_date - today).days
    return Notification(
        id=f"upcoming-{invoice.id}",
        type=NotificationType.UPCOMING_INVOICE,
        title="Upcoming Invoice Due",
        message=(
            f"Invoice {invoice.invoice_number} for "
            f"{snapshot.client_name(invoice.client_id)} is due in {days} days."
        ),
        reference_time=_start_of_day(invoice.due_date, tz),
        invoice_id=invoice.id,
        client_id=invoice.client_id,
        amount=invoice.total,
        days_until_due=days,
    )


def _running(entry: TimeEntry, snapshot: LedgerSnapshot, now: dt.datetime) -> Notification:
    elapsed = max((now - entry.start_time).total_seconds(), 0)
    hours = int(elapsed // SECONDS_PER_HOUR)
    project = snapshot.projects.get(entry.project_id)
    project_name = project.name if project else entry.project_id
    client_id = project.client_id if project else None
    return Notification(
        id=f"running-{entry.id}",
        type=NotificationType.RUNNING_TIMER,
        title="Timer Running",
        message=(
            f"You have a timer running for {project_name} "
            f"({snapshot.client_name(client_id)}) for {hours} hours."
        ),
        reference_time=entry.start_time,
        time_entry_id=entry.id,
        project_id=entry.project_id,
        client_id=client_id,
        elapsed_hours=hours,
    )


def _payment(
    payment: Payment,
    snapshot: LedgerSnapshot,
    invoices: Mapping[str, Invoice],
    currency_symbol: str,
) -> Notification:
    invoice = invoices.get(payment.invoice_id)
    number = invoice.invoice_number if invoice else payment.invoice_id
    client_id = invoice.client_id if invoice else None
    return Notification(
        id=f"payment-{payment.id}",
        type=NotificationType.PAYMENT_RECEIVED,
        title="Payment Received",
        message=(
            f"Payment of {format_money(payment.amount, currency_symbol)} received for "
            f"invoice {number} from {snapshot.client_name(client_id)}."
        ),
        reference_time=payment.created_at,
        payment_id=payment.id,
        invoice_id=payment.invoice_id,
        client_id=client_id,
        amount=payment.amount,
    )


def derive_notifications(
    snapshot: LedgerSnapshot,
    now: dt.datetime,
    upcoming_window_days: int = 7,
    recent_payment_hours: int = 48,
    currency_symbol: str = "$",
) -> List[Notification]:
    """Derive notifications from a snapshot at time ``now``.

    Day counts are calendar days between the due date and ``now``'s date;
    elapsed timer hours are whole hours, rounded down.

    Args:
        snapshot: Rows to inspect
        now: Current timezone-aware time
        upcoming_window_days: How far ahead a SENT invoice counts as upcoming
        recent_payment_hours: How far back a payment counts as recent
        currency_symbol: Symbol used in payment messages

    Returns:
        Notifications sorted by reference time, newest first
    """
    today = now.date()
    tz = now.tzinfo
    upcoming_until = today + dt.timedelta(days=upcoming_window_days)
    payments_since = now - dt.timedelta(hours=recent_payment_hours)
    invoices_by_id = {inv.id: inv for inv in snapshot.invoices}

    notifications: List[Notification] = []
    for invoice in snapshot.invoices:
        if invoice.status in OVERDUE_STATUSES and invoice.due_date < today:
            notifications.append(_overdue(invoice, snapshot, today, tz))
        if invoice.status in UPCOMING_STATUSES and today <= invoice.due_date <= upcoming_until:
            notifications.append(_upcoming(invoice, snapshot, today, tz))

    for entry in snapshot.time_entries:
        if entry.is_open:
            notifications.append(_running(entry, snapshot, now))

    for payment in snapshot.payments:
        if payment.created_at >= payments_since:
            notifications.append(
                _payment(payment, snapshot, invoices_by_id, currency_symbol)
            )

    notifications.sort(key=lambda n: n.reference_time, reverse=True)
    return notifications


def count_by_type(notifications: Sequence[Notification]) -> Dict[str, int]:
    """Counts per notification type, plus ``total``."""
    counter = Counter(n.type.value for n in notifications)
    counts = {t.value: counter.get(t.value, 0) for t in NotificationType}
    counts["total"] = len(notifications)
    return counts


class NotificationService:
    """Loads a user's snapshot from the store and derives notifications."""

    def __init__(
        self,
        store: LedgerStore,
        clock: Optional[Clock] = None,
        upcoming_window_days: int = 7,
        recent_payment_hours: int = 48,
        currency_symbol: str = "$",
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.upcoming_window_days = upcoming_window_days
        self.recent_payment_hours = recent_payment_hours
        self.currency_symbol = currency_symbol

    def snapshot_for(self, user_id: str, now: dt.datetime) -> LedgerSnapshot:
        invoices = self.store.find_invoices(InvoiceQuery(user_id=user_id))
        payments = self.store.find_payments(
            PaymentQuery(
                invoice_ids=[inv.id for inv in invoices],
                created_since=now - dt.timedelta(hours=self.recent_payment_hours),
            )
        )
        return LedgerSnapshot(
            invoices=invoices,
            time_entries=self.store.find_time_entries(
                TimeEntryQuery(user_id=user_id, is_open=True)
            ),
            payments=payments,
            clients={c.id: c for c in self.store.list_clients()},
            projects={p.id: p for p in self.store.list_projects()},
        )

    def derive_for_user(self, user_id: str, now: Optional[dt.datetime] = None) -> NotificationFeed:
        """Derive the user's notifications at ``now`` (default: the clock)."""
        now = now or self.clock.now()
        notifications = derive_notifications(
            self.snapshot_for(user_id, now),
            now,
            upcoming_window_days=self.upcoming_window_days,
            recent_payment_hours=self.recent_payment_hours,
            currency_symbol=self.currency_symbol,
        )
        counts = count_by_type(notifications)
        logger.debug(f"Derived {counts['total']} notifications", extra={"user_id": user_id})
        return NotificationFeed(notifications=notifications, counts=counts)
