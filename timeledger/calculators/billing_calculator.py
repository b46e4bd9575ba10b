"""Billing aggregation over time entries and expenses.

This module implements the money side of tracked work:
- Billable amount of time entries (hours × current project rate)
- Billable expense totals over an inclusive date range
- Per-client rollups whose sums equal the unpartitioned aggregate
- Outstanding balance of an invoice after payments

All results are full-precision Decimals. Rounding is left to whoever
presents the figures (see ``timeledger.calculators.money.round_money``).
"""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Mapping, Sequence

from timeledger.calculators.money import ZERO, sum_amounts
from timeledger.calculators.time_utils import DateRange, timedelta_to_decimal_hours
from timeledger.models.invoice import Invoice, Payment
from timeledger.models.project import Project
from timeledger.models.time_entry import Expense, TimeEntry

RateLookup = Callable[[str], Decimal]


@dataclass
class BillingSummary:
    """Aggregated billing figures for a set of entries and expenses.

    Attributes:
        billable_hours: Hours of completed billable entries
        billable_amount: Σ hours × rate over completed billable entries
        expense_total: Σ billable expenses in the date range
        entry_count: Number of entries that contributed
        expense_count: Number of expenses that contributed

    Example:
        >>> summary = BillingSummary(
        ...     billable_hours=Decimal("2"),
        ...     billable_amount=Decimal("200"),
        ...     expense_total=Decimal("0"),
        ...     entry_count=1,
        ...     expense_count=0,
        ... )
        >>> summary.total
        Decimal('200')
    """

    billable_hours: Decimal
    billable_amount: Decimal
    expense_total: Decimal
    entry_count: int
    expense_count: int

    @property
    def total(self) -> Decimal:
        """Billable time plus billable expenses."""
        return self.billable_amount + self.expense_total


def rate_lookup(projects: Iterable[Project]) -> RateLookup:
    """Build a project_id → hourly rate lookup.

    Args:
        projects: Projects whose rates should be available

    Returns:
        Function returning the rate for a project id

    Raises:
        KeyError: (from the returned function) if the project is unknown
    """
    rates: Dict[str, Decimal] = {p.id: p.hourly_rate for p in projects}

    def rate_of(project_id: str) -> Decimal:
        try:
            return rates[project_id]
        except KeyError:
            raise KeyError(f"No hourly rate found for project '{project_id}'")

    return rate_of


def is_billable_work(entry: TimeEntry) -> bool:
    """True for completed, billable entries. Open timers are never billed."""
    return entry.billable and entry.end_time is not None


def entry_hours(entry: TimeEntry) -> Decimal:
    """Exact hours of a completed entry; zero for an open one."""
    if entry.end_time is None:
        return ZERO
    return timedelta_to_decimal_hours(entry.end_time - entry.start_time)


def entry_amount(entry: TimeEntry, rate_of: RateLookup) -> Decimal:
    """Billable amount of a single entry (zero unless billable and closed)."""
    if not is_billable_work(entry):
        return ZERO
    return entry_hours(entry) * rate_of(entry.project_id)


def billable_amount(entries: Iterable[TimeEntry], rate_of: RateLookup) -> Decimal:
    """Sum hours × rate over completed billable entries.

    Args:
        entries: Time entries, already filtered to the period of interest
        rate_of: Lookup of the current hourly rate by project id

    Returns:
        Full-precision billable amount

    Raises:
        KeyError: If a contributing entry's project has no rate

    Example:
        >>> rate_of = lambda project_id: Decimal("100")
        >>> billable_amount([two_hour_entry], rate_of)
        Decimal('200')
    """
    return sum_amounts(entry_amount(e, rate_of) for e in entries if is_billable_work(e))


def billable_hours(entries: Iterable[TimeEntry]) -> Decimal:
    """Sum the hours of completed billable entries."""
    return sum_amounts(entry_hours(e) for e in entries if is_billable_work(e))


def is_billable_expense(expense: Expense, date_range: DateRange) -> bool:
    """True for billable expenses dated inside the range."""
    return expense.billable and date_range.contains(expense.date)


def billable_expense_total(
    expenses: Iterable[Expense], date_range: DateRange
) -> Decimal:
    """Sum billable expenses whose date falls in the inclusive range."""
    return sum_amounts(
        e.amount for e in expenses if is_billable_expense(e, date_range)
    )


def summarize(
    entries: Sequence[TimeEntry],
    expenses: Sequence[Expense],
    rate_of: RateLookup,
    date_range: DateRange,
) -> BillingSummary:
    """Aggregate entries and expenses into a single BillingSummary."""
    work = [e for e in entries if is_billable_work(e)]
    charged = [e for e in expenses if is_billable_expense(e, date_range)]
    return BillingSummary(
        billable_hours=billable_hours(work),
        billable_amount=billable_amount(work, rate_of),
        expense_total=sum_amounts(e.amount for e in charged),
        entry_count=len(work),
        expense_count=len(charged),
    )


def rollup_by_client(
    entries: Sequence[TimeEntry],
    expenses: Sequence[Expense],
    client_of_project: Mapping[str, str],
    rate_of: RateLookup,
    date_range: DateRange,
) -> Dict[str, BillingSummary]:
    """Partition entries and expenses by client and summarize each partition.

    The per-client figures are produced by the same functions as the overall
    aggregate, so for any input the sum over clients equals ``summarize`` on
    the unpartitioned data.

    Args:
        entries: Time entries, already filtered to the period of interest
        expenses: Expenses (date filtering happens here)
        client_of_project: Mapping of project_id → client_id
        rate_of: Lookup of the current hourly rate by project id
        date_range: Inclusive range applied to expense dates

    Returns:
        Dictionary of client_id → BillingSummary

    Raises:
        KeyError: If a project is missing from ``client_of_project``
    """
    entries_by_client: Dict[str, List[TimeEntry]] = defaultdict(list)
    expenses_by_client: Dict[str, List[Expense]] = defaultdict(list)

    for entry in entries:
        entries_by_client[_client_for(entry.project_id, client_of_project)].append(
            entry
        )
    for expense in expenses:
        expenses_by_client[_client_for(expense.project_id, client_of_project)].append(
            expense
        )

    client_ids = set(entries_by_client) | set(expenses_by_client)
    return {
        client_id: summarize(
            entries_by_client.get(client_id, []),
            expenses_by_client.get(client_id, []),
            rate_of,
            date_range,
        )
        for client_id in client_ids
    }


def _client_for(project_id: str, client_of_project: Mapping[str, str]) -> str:
    try:
        return client_of_project[project_id]
    except KeyError:
        raise KeyError(f"No client found for project '{project_id}'")


def paid_amount(invoice: Invoice, payments: Iterable[Payment]) -> Decimal:
    """Sum payments recorded against the given invoice."""
    return sum_amounts(p.amount for p in payments if p.invoice_id == invoice.id)


def calculate_outstanding(invoice: Invoice, payments: Iterable[Payment]) -> Decimal:
    """Outstanding balance: invoice total minus payments against it.

    Payments for other invoices in ``payments`` are ignored. The result can
    be negative if the invoice was overpaid.
    """
    return invoice.total - paid_amount(invoice, payments)
