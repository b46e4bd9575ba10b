"""Monetary helpers.

All amounts are Decimal. Sums are accumulated at full precision and rounded
to cents only when a value leaves the ledger (a persisted invoice figure or a
report field).
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    """Sum Decimal amounts without rounding.

    Example:
        >>> sum_amounts([Decimal("0.333"), Decimal("0.333")])
        Decimal('0.666')
    """
    return sum(amounts, ZERO)


def round_money(amount: Decimal) -> Decimal:
    """Round an amount to cents using ROUND_HALF_UP.

    Example:
        >>> round_money(Decimal("12.345"))
        Decimal('12.35')
        >>> round_money(Decimal("125"))
        Decimal('125.00')
    """
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def percentage_of(amount: Decimal, rate: Decimal) -> Decimal:
    """Return ``amount × rate / 100`` at full precision.

    Example:
        >>> percentage_of(Decimal("125"), Decimal("10"))
        Decimal('12.5')
    """
    return amount * rate / HUNDRED


def format_money(amount: Decimal, symbol: str = "$") -> str:
    """Format an amount for display, e.g. ``$1,234.50``."""
    return f"{symbol}{round_money(amount):,.2f}"
