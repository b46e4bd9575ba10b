"""Revenue report over a date range.

The report combines four sources for one user (optionally one client):
- billable time: completed billable entries whose start date is in range,
  valued at the current project rate
- billable expenses dated in range
- invoices issued in range, and every payment recorded against them
- the same figures broken down per client

All money is accumulated at full precision and rounded to cents once, when
the report is assembled.
"""

import datetime as dt
import logging
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

import pandas as pd

from timeledger.calculators.billing_calculator import (
    paid_amount,
    rate_lookup,
    rollup_by_client,
    summarize,
)
from timeledger.calculators.money import ZERO, round_money, sum_amounts
from timeledger.calculators.time_utils import DateRange, month_range
from timeledger.errors import ValidationError
from timeledger.models import Invoice
from timeledger.stores.interface import (
    ExpenseQuery,
    InvoiceQuery,
    LedgerStore,
    PaymentQuery,
    TimeEntryQuery,
)
from timeledger.utils.clock import Clock, SystemClock
from timeledger.validators import ValidationReport

logger = logging.getLogger(__name__)


@dataclass
class ClientStats:
    """Revenue figures for one client.

    Attributes:
        client_id: Client identifier
        name: Client display name (the id if the client row is unknown)
        billable_amount: Value of billable time
        expenses: Billable expenses
        invoiced_amount: Σ total of invoices issued in range
        paid_amount: Σ payments on those invoices
        outstanding_amount: invoiced_amount - paid_amount
    """

    client_id: str
    name: str
    billable_amount: Decimal
    expenses: Decimal
    invoiced_amount: Decimal
    paid_amount: Decimal
    outstanding_amount: Decimal


@dataclass
class RevenueReport:
    """Revenue summary for a date range.

    Example:
        >>> report = engine.report(dt.date(2024, 3, 1), dt.date(2024, 3, 31), user_id="u1")
        >>> report.outstanding_total == report.invoiced_total - report.paid_total
        True
    """

    start_date: dt.date
    end_date: dt.date
    billable_amount: Decimal
    billable_expenses: Decimal
    invoiced_total: Decimal
    paid_total: Decimal
    outstanding_total: Decimal
    client_stats: List[ClientStats] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        """Per-client figures as a DataFrame, one row per client."""
        columns = [f for f in ClientStats.__dataclass_fields__]
        return pd.DataFrame([asdict(s) for s in self.client_stats], columns=columns)

    def to_dict(self) -> dict:
        """Plain-dict form with money as strings and dates as ISO text."""
        data = asdict(self)
        data["start_date"] = self.start_date.isoformat()
        data["end_date"] = self.end_date.isoformat()
        for key, value in list(data.items()):
            if isinstance(value, Decimal):
                data[key] = str(value)
        data["client_stats"] = [
            {k: str(v) if isinstance(v, Decimal) else v for k, v in stats.items()}
            for stats in data["client_stats"]
        ]
        return data


class RevenueReportEngine:
    """Builds RevenueReports from a ledger store."""

    def __init__(self, store: LedgerStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or SystemClock()

    def report(
        self,
        start_date: Optional[dt.date] = None,
        end_date: Optional[dt.date] = None,
        client_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> RevenueReport:
        """Generate the revenue report.

        Args:
            start_date: First day (inclusive); defaults to start of this month
            end_date: Last day (inclusive); defaults to end of this month
            client_id: Restrict every figure to one client
            user_id: Restrict every figure to one user's ledger

        Returns:
            RevenueReport with totals and per-client stats

        Raises:
            ValidationError: If end_date precedes start_date
            KeyError: If an entry references a project with no rate
        """
        current_month = month_range(self.clock.today())
        start_date = start_date or current_month.start
        end_date = end_date or current_month.end
        if end_date < start_date:
            report = ValidationReport()
            report.add_error(
                "end_date", f"End date cannot be before start date ({start_date})", end_date
            )
            raise ValidationError("Invalid report range", report=report)
        date_range = DateRange(start_date, end_date)

        logger.info(
            f"Generating revenue report for {date_range}",
            extra={"user_id": user_id, "client_id": client_id},
        )

        projects = self.store.list_projects()
        rate_of = rate_lookup(projects)
        client_of_project = {p.id: p.client_id for p in projects}
        scoped_projects = (
            {p.id for p in projects if p.client_id == client_id} if client_id else None
        )

        entries = self.store.find_time_entries(
            TimeEntryQuery(
                user_id=user_id,
                project_ids=scoped_projects,
                start_date=start_date,
                end_date=end_date,
                billable=True,
                is_open=False,
            )
        )
        expenses = self.store.find_expenses(
            ExpenseQuery(
                user_id=user_id,
                project_ids=scoped_projects,
                start_date=start_date,
                end_date=end_date,
                billable=True,
            )
        )
        invoices = self.store.find_invoices(
            InvoiceQuery(
                user_id=user_id,
                client_id=client_id,
                issued_from=start_date,
                issued_to=end_date,
            )
        )
        payments = self.store.find_payments(
            PaymentQuery(invoice_ids=[inv.id for inv in invoices])
        )

        work = summarize(entries, expenses, rate_of, date_range)
        invoiced = sum_amounts(inv.total for inv in invoices)
        paid = sum_amounts(paid_amount(inv, payments) for inv in invoices)

        client_stats = self._client_stats(
            rollup_by_client(entries, expenses, client_of_project, rate_of, date_range),
            invoices,
            payments,
            client_id,
            user_id,
        )

        return RevenueReport(
            start_date=start_date,
            end_date=end_date,
            billable_amount=round_money(work.billable_amount),
            billable_expenses=round_money(work.expense_total),
            invoiced_total=round_money(invoiced),
            paid_total=round_money(paid),
            outstanding_total=round_money(invoiced - paid),
            client_stats=client_stats,
        )

    def _client_stats(
        self,
        rollup: Dict,
        invoices: List[Invoice],
        payments: List,
        client_id: Optional[str],
        user_id: Optional[str],
    ) -> List[ClientStats]:
        invoices_by_client: Dict[str, List[Invoice]] = defaultdict(list)
        for invoice in invoices:
            invoices_by_client[invoice.client_id].append(invoice)

        names = {
            c.id: c.name
            for c in self.store.list_clients(created_by_id=user_id)
            if client_id is None or c.id == client_id
        }
        client_ids = set(names) | set(rollup) | set(invoices_by_client)

        stats = []
        for cid in client_ids:
            work = rollup.get(cid)
            client_invoices = invoices_by_client.get(cid, [])
            invoiced = sum_amounts(inv.total for inv in client_invoices)
            paid = sum_amounts(paid_amount(inv, payments) for inv in client_invoices)
            stats.append(
                ClientStats(
                    client_id=cid,
                    name=names.get(cid) or self._client_name(cid),
                    billable_amount=round_money(work.billable_amount if work else ZERO),
                    expenses=round_money(work.expense_total if work else ZERO),
                    invoiced_amount=round_money(invoiced),
                    paid_amount=round_money(paid),
                    outstanding_amount=round_money(invoiced - paid),
                )
            )
        return sorted(stats, key=lambda s: (s.name.lower(), s.client_id))

    def _client_name(self, client_id: str) -> str:
        client = self.store.get_client(client_id)
        return client.name if client else client_id
