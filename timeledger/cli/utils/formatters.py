"""Output formatting utilities for CLI."""

import datetime as dt
from typing import List, Sequence

import click

from timeledger.calculators.duration_calculator import compute_duration
from timeledger.calculators.money import format_money
from timeledger.models import Invoice, Notification, TimeEntry


def format_success(message: str) -> str:
    """Format a success message with green color."""
    return click.style(f"✓ {message}", fg="green", bold=True)


def format_error(message: str) -> str:
    """Format an error message with red color."""
    return click.style(f"✗ {message}", fg="red", bold=True)


def format_warning(message: str) -> str:
    """Format a warning message with yellow color."""
    return click.style(f"⚠ {message}", fg="yellow", bold=True)


def format_info(message: str) -> str:
    """Format an info message with blue color."""
    return click.style(f"ℹ {message}", fg="blue")


def format_table(
    headers: Sequence[str], rows: Sequence[Sequence[object]], max_width: int = 40
) -> str:
    """Format rows as a boxed plain-text table.

    Cells longer than ``max_width`` are truncated.

    Example:
        >>> print(format_table(["Id", "Hours"], [["a1", "1.50"]]))
        +----+-------+
        | Id | Hours |
        +----+-------+
        | a1 | 1.50  |
        +----+-------+
    """
    if not headers:
        return ""

    cells = [[str(c)[:max_width] for c in row] for row in rows]
    widths = [
        min(max([len(h)] + [len(row[i]) for row in cells if i < len(row)]), max_width)
        for i, h in enumerate(headers)
    ]

    def line(values: Sequence[str]) -> str:
        padded = [f" {v:<{widths[i]}} " for i, v in enumerate(values[: len(widths)])]
        return "|" + "|".join(padded) + "|"

    separator = "+" + "+".join("-" * (w + 2) for w in widths) + "+"
    lines = [separator, line(list(headers)), separator]
    if cells:
        lines.extend(line(row) for row in cells)
        lines.append(separator)
    return "\n".join(lines)


def entry_row(entry: TimeEntry, now: dt.datetime) -> List[str]:
    """Table row for a time entry: id, date, start, end, duration, flags."""
    duration = compute_duration(entry, now)
    return [
        entry.id,
        entry.start_time.strftime("%Y-%m-%d"),
        entry.start_time.strftime("%H:%M"),
        entry.end_time.strftime("%H:%M") if entry.end_time else "Running",
        duration.formatted,
        "yes" if entry.billable else "no",
        "invoiced" if entry.invoice_id else "",
        entry.description or "",
    ]


ENTRY_HEADERS = ["Id", "Date", "Start", "End", "Duration", "Billable", "Status", "Description"]


def format_invoice(invoice: Invoice, symbol: str = "$") -> str:
    """Multi-line invoice summary with its items and totals."""
    lines = [
        click.style(f"Invoice {invoice.invoice_number}", bold=True)
        + f"  [{invoice.status.value}]",
        f"Issued {invoice.issue_date.isoformat()}, due {invoice.due_date.isoformat()}",
    ]
    if invoice.items:
        lines.append(
            format_table(
                ["Description", "Qty", "Unit price", "Amount"],
                [
                    [
                        item.description,
                        f"{item.quantity:.2f}",
                        format_money(item.unit_price, symbol),
                        format_money(item.amount, symbol),
                    ]
                    for item in invoice.items
                ],
            )
        )
    lines.append(f"Subtotal: {format_money(invoice.subtotal, symbol)}")
    lines.append(f"Tax ({invoice.tax_rate.normalize():f}%): {format_money(invoice.tax, symbol)}")
    lines.append(click.style(f"Total: {format_money(invoice.total, symbol)}", bold=True))
    if invoice.notes:
        lines.append(f"Notes: {invoice.notes}")
    return "\n".join(lines)


NOTIFICATION_STYLES = {
    "overdue_invoice": format_error,
    "upcoming_invoice": format_warning,
    "running_timer": format_info,
    "payment_received": format_success,
}


def format_notification(notification: Notification) -> str:
    """One line per notification, styled by type."""
    style = NOTIFICATION_STYLES.get(notification.type.value, format_info)
    return style(f"{notification.title}: {notification.message}")
