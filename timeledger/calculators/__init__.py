"""Calculator modules for the ledger."""

from timeledger.calculators.billing_calculator import (
    BillingSummary,
    billable_amount,
    billable_expense_total,
    billable_hours,
    calculate_outstanding,
    entry_hours,
    rate_lookup,
    rollup_by_client,
    summarize,
)
from timeledger.calculators.duration_calculator import (
    DurationResult,
    compute_duration,
    format_clock,
    format_hours_minutes,
)
from timeledger.calculators.money import (
    format_money,
    percentage_of,
    round_money,
    sum_amounts,
)
from timeledger.calculators.time_utils import (
    DateRange,
    QuickFilter,
    month_range,
    timedelta_to_decimal_hours,
)

__all__ = [
    # billing_calculator
    "BillingSummary",
    "billable_amount",
    "billable_expense_total",
    "billable_hours",
    "calculate_outstanding",
    "entry_hours",
    "rate_lookup",
    "rollup_by_client",
    "summarize",
    # duration_calculator
    "DurationResult",
    "compute_duration",
    "format_clock",
    "format_hours_minutes",
    # money
    "format_money",
    "percentage_of",
    "round_money",
    "sum_amounts",
    # time_utils
    "DateRange",
    "QuickFilter",
    "month_range",
    "timedelta_to_decimal_hours",
]
