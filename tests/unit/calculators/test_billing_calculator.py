"""Unit tests for billing calculator.

This module tests the money side of tracked work:
- Billable amount of completed, billable entries
- Billable expenses over an inclusive date range
- Per-client rollups summing to the overall aggregate
- Outstanding balance after payments
"""

import datetime as dt
from decimal import Decimal

import pytest

from timeledger.calculators.billing_calculator import (
    billable_amount,
    billable_expense_total,
    billable_hours,
    calculate_outstanding,
    entry_hours,
    rate_lookup,
    rollup_by_client,
    summarize,
)
from timeledger.calculators.money import sum_amounts
from timeledger.calculators.time_utils import DateRange
from timeledger.models import Expense, Invoice, Payment, Project, TimeEntry

UTC = dt.timezone.utc
MARCH = DateRange(dt.date(2024, 3, 1), dt.date(2024, 3, 31))


def make_entry(project_id="p1", hours=2, billable=True, closed=True, day=4) -> TimeEntry:
    start = dt.datetime(2024, 3, day, 9, 0, tzinfo=UTC)
    return TimeEntry(
        user_id="u1",
        project_id=project_id,
        start_time=start,
        end_time=start + dt.timedelta(hours=hours) if closed else None,
        billable=billable,
    )


def make_expense(project_id="p1", amount="25", billable=True, day=4) -> Expense:
    return Expense(
        user_id="u1",
        project_id=project_id,
        description="Hosting",
        amount=amount,
        date=dt.date(2024, 3, day),
        billable=billable,
    )


@pytest.fixture
def projects():
    return [
        Project(id="p1", name="Site", client_id="c1", hourly_rate="100", created_by_id="u1"),
        Project(id="p2", name="App", client_id="c1", hourly_rate="80", created_by_id="u1"),
        Project(id="p3", name="Audit", client_id="c2", hourly_rate="120.50", created_by_id="u1"),
    ]


@pytest.fixture
def rate_of(projects):
    return rate_lookup(projects)


class TestBillableAmount:
    """Test billable amount calculation."""

    def test_two_hours_at_100(self, rate_of):
        """One completed 2h billable entry at rate 100 is worth 200.00."""
        assert billable_amount([make_entry(hours=2)], rate_of) == Decimal("200")

    def test_open_and_non_billable_entries_excluded(self, rate_of):
        entries = [
            make_entry(hours=2),
            make_entry(hours=3, billable=False),
            make_entry(closed=False),
        ]

        assert billable_amount(entries, rate_of) == Decimal("200")
        assert billable_hours(entries) == Decimal("2")

    def test_unknown_project_raises(self, rate_of):
        with pytest.raises(KeyError, match="No hourly rate found for project 'nope'"):
            billable_amount([make_entry(project_id="nope")], rate_of)

    def test_fractional_hours_keep_precision(self, rate_of):
        """20 minutes at 120.50 is not rounded mid-calculation."""
        entry = make_entry(project_id="p3", hours=1)
        entry.end_time = entry.start_time + dt.timedelta(minutes=20)

        amount = billable_amount([entry], rate_of)

        assert amount.quantize(Decimal("0.01")) == Decimal("40.17")
        assert amount != Decimal("40.17")

    def test_entry_hours_of_open_entry_is_zero(self):
        assert entry_hours(make_entry(closed=False)) == Decimal("0")


class TestExpenses:
    def test_range_is_inclusive(self):
        expenses = [
            make_expense(day=1),
            make_expense(day=31, amount="10"),
            make_expense(billable=False, amount="99"),
        ]

        assert billable_expense_total(expenses, MARCH) == Decimal("35")

    def test_outside_range_excluded(self):
        expenses = [make_expense(day=5)]
        narrow = DateRange(dt.date(2024, 3, 1), dt.date(2024, 3, 4))

        assert billable_expense_total(expenses, narrow) == Decimal("0")


class TestRollupByClient:
    """Per-client rollups must add up to the unpartitioned aggregate."""

    def test_rollup_sums_to_aggregate(self, projects, rate_of):
        entries = [
            make_entry("p1", hours=2),
            make_entry("p2", hours=1.5),
            make_entry("p3", hours=0.75),
            make_entry("p3", hours=1, billable=False),
            make_entry("p1", closed=False),
        ]
        expenses = [make_expense("p1", "12.34"), make_expense("p3", "7.01")]
        client_of_project = {p.id: p.client_id for p in projects}

        total = summarize(entries, expenses, rate_of, MARCH)
        rollup = rollup_by_client(entries, expenses, client_of_project, rate_of, MARCH)

        assert set(rollup) == {"c1", "c2"}
        assert sum_amounts(s.billable_amount for s in rollup.values()) == total.billable_amount
        assert sum_amounts(s.expense_total for s in rollup.values()) == total.expense_total
        assert sum(s.entry_count for s in rollup.values()) == total.entry_count
        assert rollup["c1"].billable_amount == Decimal("320")
        assert total.total == total.billable_amount + total.expense_total

    def test_missing_project_raises(self, rate_of):
        with pytest.raises(KeyError, match="No client found"):
            rollup_by_client([make_entry("p1")], [], {}, rate_of, MARCH)


class TestOutstanding:
    def test_payments_for_other_invoices_ignored(self):
        invoice = Invoice(
            id="i1",
            invoice_number="INV-20240304-001",
            user_id="u1",
            client_id="c1",
            issue_date=dt.date(2024, 3, 4),
            due_date=dt.date(2024, 4, 3),
            subtotal="100.00",
            tax="0.00",
            total="100.00",
        )
        payments = [
            Payment(invoice_id="i1", amount="30", date=dt.date(2024, 3, 5)),
            Payment(invoice_id="i2", amount="500", date=dt.date(2024, 3, 5)),
        ]

        assert calculate_outstanding(invoice, payments) == Decimal("70.00")

    def test_overpayment_goes_negative(self):
        invoice = Invoice(
            id="i1",
            invoice_number="INV-20240304-001",
            user_id="u1",
            client_id="c1",
            issue_date=dt.date(2024, 3, 4),
            due_date=dt.date(2024, 4, 3),
            subtotal="10.00",
            tax="0.00",
            total="10.00",
        )
        payments = [Payment(invoice_id="i1", amount="15", date=dt.date(2024, 3, 5))]

        assert calculate_outstanding(invoice, payments) == Decimal("-5.00")
