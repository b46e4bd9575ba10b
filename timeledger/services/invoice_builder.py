"""Invoice assembly.

Formula:
    amount(item) = quantity × unit_price
    subtotal     = round(Σ amount(item))
    tax          = round(Σ amount(item) × tax_rate / 100)
    total        = subtotal + tax

Sums are taken at full precision and each persisted figure is rounded to
cents exactly once (ROUND_HALF_UP), so total always equals subtotal + tax.

Invoice numbers are shaped ``INV-YYYYMMDD-NNN`` where NNN is one more than
the highest sequence already used that day. The number is allocated inside
the creating transaction; if another writer takes the same number first the
store's unique constraint rejects the insert and the whole transaction is
retried.
"""

import datetime as dt
import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from timeledger.calculators.billing_calculator import entry_hours, is_billable_work
from timeledger.calculators.money import ZERO, percentage_of, round_money, sum_amounts
from timeledger.errors import ConflictError, ValidationError
from timeledger.models import (
    Expense,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    ItemType,
    LineItem,
    TimeEntry,
    new_id,
)
from timeledger.services.ownership import require_client, require_invoice, require_project
from timeledger.services.retry_handler import RetryExhaustedException, RetryHandler
from timeledger.stores.interface import InvoiceQuery, LedgerStore
from timeledger.utils.clock import Clock, SystemClock
from timeledger.utils.logging_utils import LogContext
from timeledger.validators import BusinessRuleValidators, ValidationReport

logger = logging.getLogger(__name__)

INVOICE_NUMBER_PATTERN = re.compile(r"^INV-(\d{8})-(\d+)$")

RawLineItem = Union[LineItem, Mapping[str, Any]]


@dataclass
class InvoiceTotals:
    """Persisted money figures of an invoice."""

    subtotal: Decimal
    tax: Decimal
    total: Decimal


def compute_totals(lines: Sequence[LineItem], tax_rate: Decimal) -> InvoiceTotals:
    """Compute subtotal, tax and total for validated lines.

    Example:
        >>> lines = [LineItem("Design", 2, Decimal("50")), LineItem("Hosting", 1, Decimal("25"))]
        >>> compute_totals(lines, Decimal("10"))
        InvoiceTotals(subtotal=Decimal('125.00'), tax=Decimal('12.50'), total=Decimal('137.50'))
    """
    full_subtotal = sum_amounts(line.quantity * line.unit_price for line in lines)
    subtotal = round_money(full_subtotal)
    tax = round_money(percentage_of(full_subtotal, tax_rate))
    return InvoiceTotals(subtotal=subtotal, tax=tax, total=subtotal + tax)


def number_prefix(day: dt.date) -> str:
    return f"INV-{day.strftime('%Y%m%d')}-"


class InvoiceBuilder:
    """Create, replace and delete invoices for a user.

    Example:
        >>> builder = InvoiceBuilder(store, clock)
        >>> invoice = builder.create(
        ...     "u1",
        ...     client.id,
        ...     [{"description": "Design", "quantity": 2, "unit_price": "50"}],
        ...     tax_rate=10,
        ... )
        >>> invoice.invoice_number
        'INV-20240304-001'
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Optional[Clock] = None,
        retry_handler: Optional[RetryHandler] = None,
        payment_terms_days: int = 30,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.retry_handler = retry_handler or RetryHandler(max_retries=3)
        self.payment_terms_days = payment_terms_days

    def generate_number(self, day: dt.date) -> str:
        """Allocate the next invoice number for ``day``.

        Must be called inside the transaction that inserts the invoice.
        """
        prefix = number_prefix(day)
        used = [
            int(match.group(2))
            for invoice in self.store.find_invoices(InvoiceQuery(number_prefix=prefix))
            for match in [INVOICE_NUMBER_PATTERN.match(invoice.invoice_number)]
            if match
        ]
        sequence = max(used, default=0) + 1
        return f"{prefix}{sequence:03d}"

    def create(
        self,
        user_id: str,
        client_id: str,
        items: Sequence[RawLineItem],
        tax_rate: Any = ZERO,
        issue_date: Optional[dt.date] = None,
        due_date: Optional[dt.date] = None,
        notes: Optional[str] = None,
        status: InvoiceStatus = InvoiceStatus.DRAFT,
    ) -> Invoice:
        """Build and persist a new invoice with its items.

        The issue date defaults to today and the due date to the issue date
        plus the payment terms. Rows named by the items' ``time_entry_ids``
        and ``expense_ids`` are linked to the new invoice.

        Raises:
            ValidationError: If any item, the tax rate or the dates are invalid
            NotFoundError: If the client does not exist or is not the user's
            ConflictError: If no unique invoice number could be allocated
        """
        issue_date = issue_date or self.clock.today()
        if due_date is None:
            due_date = issue_date + dt.timedelta(days=self.payment_terms_days)
        lines, rate = self._validate(items, tax_rate, issue_date, due_date)
        totals = compute_totals(lines, rate)

        def insert() -> Invoice:
            with self.store.transaction():
                require_client(self.store, client_id, user_id)
                invoice_id = new_id()
                self._check_links(lines, user_id, invoice_id)
                invoice = Invoice(
                    id=invoice_id,
                    invoice_number=self.generate_number(self.clock.today()),
                    user_id=user_id,
                    client_id=client_id,
                    issue_date=issue_date,
                    due_date=due_date,
                    status=status,
                    tax_rate=rate,
                    subtotal=totals.subtotal,
                    tax=totals.tax,
                    total=totals.total,
                    notes=notes,
                    created_at=self.clock.now(),
                    items=self._build_items(invoice_id, lines),
                )
                saved = self.store.add_invoice(invoice)
                self._link_rows(lines, user_id, invoice_id)
                return saved

        with LogContext(user_id=user_id, client_id=client_id):
            try:
                invoice = self.retry_handler.execute_with_retry(insert)
            except RetryExhaustedException as e:
                raise ConflictError(
                    "Could not allocate a unique invoice number",
                    recovery_hint="Another invoice was created at the same time; retry",
                ) from e
            logger.info(
                f"Created invoice {invoice.invoice_number} with {len(invoice.items)} "
                f"item(s), total {invoice.total}",
                extra={"invoice_id": invoice.id},
            )
        return invoice

    def update(
        self,
        invoice_id: str,
        user_id: str,
        items: Sequence[RawLineItem],
        tax_rate: Any = None,
        issue_date: Optional[dt.date] = None,
        due_date: Optional[dt.date] = None,
        notes: Optional[str] = None,
        status: Optional[InvoiceStatus] = None,
    ) -> Invoice:
        """Replace the full item set of an invoice and recompute its totals.

        Fields left as None keep their current value. Rows linked by the
        previous items keep their invoice_id.

        Raises:
            ValidationError: If any item, the tax rate or the dates are invalid
            NotFoundError: If the invoice does not exist or is not the user's
        """
        with LogContext(user_id=user_id, invoice_id=invoice_id):
            with self.store.transaction():
                existing = require_invoice(self.store, invoice_id, user_id, include_items=False)
                issue_date = issue_date or existing.issue_date
                due_date = due_date or existing.due_date
                tax_rate = existing.tax_rate if tax_rate is None else tax_rate

                lines, rate = self._validate(items, tax_rate, issue_date, due_date)
                self._check_links(lines, user_id, invoice_id)
                totals = compute_totals(lines, rate)

                header = existing.model_dump(exclude={"items"})
                header.update(
                    issue_date=issue_date,
                    due_date=due_date,
                    tax_rate=rate,
                    subtotal=totals.subtotal,
                    tax=totals.tax,
                    total=totals.total,
                    notes=existing.notes if notes is None else notes,
                    status=status or existing.status,
                )
                self.store.update_invoice(Invoice.model_validate(header))
                self.store.replace_invoice_items(
                    invoice_id, self._build_items(invoice_id, lines)
                )
                self._link_rows(lines, user_id, invoice_id)
                invoice = self.store.get_invoice(invoice_id, include_items=True)

            logger.info(
                f"Updated invoice {invoice.invoice_number}: {len(invoice.items)} "
                f"item(s), total {invoice.total}"
            )
        return invoice

    def set_status(self, invoice_id: str, user_id: str, status: InvoiceStatus) -> Invoice:
        """Move an invoice to another lifecycle state without touching items."""
        with LogContext(user_id=user_id, invoice_id=invoice_id):
            with self.store.transaction():
                existing = require_invoice(self.store, invoice_id, user_id, include_items=False)
                invoice = self.store.update_invoice(
                    existing.model_copy(update={"status": InvoiceStatus(status)})
                )
            logger.info(
                f"Invoice {invoice.invoice_number} status {existing.status.value} "
                f"-> {invoice.status.value}"
            )
        return invoice

    def delete(self, invoice_id: str, user_id: str) -> None:
        """Delete an invoice and its items.

        Time entries and expenses billed on it keep their invoice_id.

        Raises:
            NotFoundError: If the invoice does not exist or is not the user's
        """
        with LogContext(user_id=user_id, invoice_id=invoice_id):
            with self.store.transaction():
                invoice = require_invoice(self.store, invoice_id, user_id, include_items=False)
                self.store.delete_invoice(invoice_id)
            logger.info(f"Deleted invoice {invoice.invoice_number}")

    def get(self, invoice_id: str, user_id: str) -> Invoice:
        """Return an invoice with its items."""
        return require_invoice(self.store, invoice_id, user_id, include_items=True)

    def list_invoices(
        self,
        user_id: str,
        status: Optional[InvoiceStatus] = None,
        client_id: Optional[str] = None,
    ) -> List[Invoice]:
        """List the user's invoices, newest issue date first."""
        return self.store.find_invoices(
            InvoiceQuery(
                user_id=user_id,
                client_id=client_id,
                statuses=[status] if status else None,
            )
        )

    def line_items_for(
        self,
        user_id: str,
        entries: Sequence[TimeEntry],
        expenses: Sequence[Expense] = (),
    ) -> List[LineItem]:
        """Turn unbilled work into invoice lines.

        Completed, billable, unlinked entries become one SERVICE line per
        project (quantity = hours, unit price = current project rate).
        Each billable, unlinked expense becomes its own EXPENSE line. Every
        line carries the ids it covers so that creating the invoice links
        them.

        Raises:
            NotFoundError: If a project is not the user's
        """
        by_project: Dict[str, List[TimeEntry]] = defaultdict(list)
        for entry in entries:
            if is_billable_work(entry) and entry.invoice_id is None:
                by_project[entry.project_id].append(entry)

        lines: List[LineItem] = []
        for project_id, project_entries in by_project.items():
            project = require_project(self.store, project_id, user_id)
            hours = sum_amounts(entry_hours(e) for e in project_entries)
            if hours <= 0:
                continue
            lines.append(
                LineItem(
                    description=f"{project.name} ({len(project_entries)} time entries)",
                    quantity=hours,
                    unit_price=project.hourly_rate,
                    type=ItemType.SERVICE,
                    project_id=project_id,
                    time_entry_ids=[e.id for e in project_entries],
                )
            )

        for expense in expenses:
            if expense.billable and expense.invoice_id is None:
                lines.append(
                    LineItem(
                        description=expense.description,
                        quantity=Decimal("1"),
                        unit_price=expense.amount,
                        type=ItemType.EXPENSE,
                        project_id=expense.project_id,
                        expense_ids=[expense.id],
                    )
                )
        return lines

    def _validate(
        self,
        items: Sequence[RawLineItem],
        tax_rate: Any,
        issue_date: dt.date,
        due_date: dt.date,
    ):
        report = ValidationReport()
        lines = BusinessRuleValidators.validate_line_items(items, report)
        rate = BusinessRuleValidators.validate_tax_rate(tax_rate, report)
        BusinessRuleValidators.validate_invoice_dates(issue_date, due_date, report)
        if report.has_errors():
            raise ValidationError("Invalid invoice data", report=report)
        return lines, rate

    @staticmethod
    def _build_items(invoice_id: str, lines: Sequence[LineItem]) -> List[InvoiceItem]:
        return [
            InvoiceItem(
                invoice_id=invoice_id,
                description=line.description,
                quantity=line.quantity,
                unit_price=line.unit_price,
                amount=line.quantity * line.unit_price,
                project_id=line.project_id,
                type=line.type,
                time_entry_ids=list(line.time_entry_ids),
                expense_ids=list(line.expense_ids),
            )
            for line in lines
        ]

    def _check_links(self, lines: Sequence[LineItem], user_id: str, invoice_id: str) -> None:
        """Linked rows must be the user's, finished, billable and unbilled."""
        report = ValidationReport()
        for index, line in enumerate(lines):
            for entry_id in line.time_entry_ids:
                entry = self.store.get_time_entry(entry_id)
                field = f"items[{index}].time_entry_ids"
                if entry is None or entry.user_id != user_id:
                    report.add_error(field, f"Time entry {entry_id} not found", entry_id)
                elif entry.invoice_id not in (None, invoice_id):
                    report.add_error(
                        field,
                        f"Time entry {entry_id} is already on invoice {entry.invoice_id}",
                        entry_id,
                    )
                elif entry.is_open:
                    report.add_error(field, f"Time entry {entry_id} is still running", entry_id)
                elif not entry.billable:
                    report.add_error(field, f"Time entry {entry_id} is not billable", entry_id)
            for expense_id in line.expense_ids:
                expense = self.store.get_expense(expense_id)
                field = f"items[{index}].expense_ids"
                if expense is None or expense.user_id != user_id:
                    report.add_error(field, f"Expense {expense_id} not found", expense_id)
                elif expense.invoice_id not in (None, invoice_id):
                    report.add_error(
                        field,
                        f"Expense {expense_id} is already on invoice {expense.invoice_id}",
                        expense_id,
                    )
                elif not expense.billable:
                    report.add_error(field, f"Expense {expense_id} is not billable", expense_id)
        if report.has_errors():
            raise ValidationError("Invalid invoice links", report=report)

    def _link_rows(self, lines: Sequence[LineItem], user_id: str, invoice_id: str) -> None:
        for line in lines:
            for entry_id in line.time_entry_ids:
                entry = self.store.get_time_entry(entry_id)
                self.store.update_time_entry(entry.model_copy(update={"invoice_id": invoice_id}))
            for expense_id in line.expense_ids:
                expense = self.store.get_expense(expense_id)
                self.store.update_expense(expense.model_copy(update={"invoice_id": invoice_id}))
