"""Time entry and expense commands."""

from typing import Optional

import click

from timeledger.calculators.money import format_money
from timeledger.calculators.time_utils import QuickFilter
from timeledger.cli.context import LedgerApp
from timeledger.cli.error_handlers import with_error_handling
from timeledger.cli.utils.formatters import (
    ENTRY_HEADERS,
    entry_row,
    format_info,
    format_success,
    format_table,
)
from timeledger.cli.utils.parsing import parse_date_input, parse_datetime_input


@click.group(name="entries")
def entries():
    """List, add and delete time entries."""
    pass


@entries.command(name="list")
@click.option(
    "--filter",
    "quick_filter",
    type=click.Choice([f.value for f in QuickFilter]),
    default=None,
    help="Quick date window (weeks start on Sunday)",
)
@click.option("--start-date", default=None, help="First day (YYYY-MM-DD)")
@click.option("--end-date", default=None, help="Last day (YYYY-MM-DD)")
@click.option("--project", "project_id", default=None, help="Only this project")
@click.option("--client", "client_id", default=None, help="Only this client's projects")
@click.option("--billable/--non-billable", default=None, help="Only (non-)billable entries")
@click.pass_obj
def list_entries(
    app: LedgerApp,
    quick_filter: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
    project_id: Optional[str],
    client_id: Optional[str],
    billable: Optional[bool],
):
    """List your time entries, newest first.

    Example:
        timeledger entries list --filter this_week
    """
    with with_error_handling(app.debug):
        found = app.entries.list_entries(
            app.user_id,
            quick_filter=quick_filter,
            start_date=parse_date_input(start_date) if start_date else None,
            end_date=parse_date_input(end_date) if end_date else None,
            project_id=project_id,
            client_id=client_id,
            billable=billable,
        )
        if not found:
            click.echo(format_info("No time entries found."))
            return
        now = app.clock.now()
        click.echo(format_table(ENTRY_HEADERS, [entry_row(e, now) for e in found]))


@entries.command(name="add")
@click.argument("project_id")
@click.option("--start", "start_time", required=True, help="Start (ISO timestamp)")
@click.option("--end", "end_time", default=None, help="End (ISO timestamp); omit for an open entry")
@click.option("--description", "-d", default=None)
@click.option("--non-billable", is_flag=True)
@click.pass_obj
def add_entry(
    app: LedgerApp,
    project_id: str,
    start_time: str,
    end_time: Optional[str],
    description: Optional[str],
    non_billable: bool,
):
    """Record time on PROJECT_ID after the fact."""
    with with_error_handling(app.debug):
        entry = app.entries.create_manual(
            app.user_id,
            project_id,
            start_time=parse_datetime_input(start_time),
            end_time=parse_datetime_input(end_time) if end_time else None,
            description=description,
            billable=not non_billable,
        )
        click.echo(format_success(f"Time entry recorded ({entry.id})"))


@entries.command(name="delete")
@click.argument("entry_id")
@click.pass_obj
def delete_entry(app: LedgerApp, entry_id: str):
    """Delete ENTRY_ID unless it has been invoiced."""
    with with_error_handling(app.debug):
        app.entries.delete(entry_id, app.user_id)
        click.echo(format_success(f"Time entry {entry_id} deleted"))


@click.group(name="expense")
def expense():
    """Record and delete expenses."""
    pass


@expense.command(name="add")
@click.argument("project_id")
@click.argument("amount")
@click.option("--description", "-d", required=True)
@click.option("--date", "expense_date", default=None, help="Date (YYYY-MM-DD), default today")
@click.option("--non-billable", is_flag=True)
@click.option("--receipt", default=None, help="Receipt reference")
@click.pass_obj
def add_expense(
    app: LedgerApp,
    project_id: str,
    amount: str,
    description: str,
    expense_date: Optional[str],
    non_billable: bool,
    receipt: Optional[str],
):
    """Record an expense of AMOUNT on PROJECT_ID."""
    with with_error_handling(app.debug):
        recorded = app.expenses.create(
            app.user_id,
            project_id,
            description=description,
            amount=amount,
            date=parse_date_input(expense_date) if expense_date else None,
            billable=not non_billable,
            receipt=receipt,
        )
        click.echo(
            format_success(
                f"Expense of {format_money(recorded.amount, app.symbol)} recorded ({recorded.id})"
            )
        )


@expense.command(name="list")
@click.option("--start-date", default=None)
@click.option("--end-date", default=None)
@click.pass_obj
def list_expenses(app: LedgerApp, start_date: Optional[str], end_date: Optional[str]):
    """List your expenses, newest first."""
    with with_error_handling(app.debug):
        found = app.expenses.list_expenses(
            app.user_id,
            start_date=parse_date_input(start_date) if start_date else None,
            end_date=parse_date_input(end_date) if end_date else None,
        )
        if not found:
            click.echo(format_info("No expenses found."))
            return
        rows = [
            [
                e.id,
                e.date.isoformat(),
                format_money(e.amount, app.symbol),
                "yes" if e.billable else "no",
                "invoiced" if e.invoice_id else "",
                e.description,
            ]
            for e in found
        ]
        click.echo(
            format_table(["Id", "Date", "Amount", "Billable", "Status", "Description"], rows)
        )


@expense.command(name="delete")
@click.argument("expense_id")
@click.pass_obj
def delete_expense(app: LedgerApp, expense_id: str):
    """Delete EXPENSE_ID unless it has been invoiced."""
    with with_error_handling(app.debug):
        app.expenses.delete(expense_id, app.user_id)
        click.echo(format_success(f"Expense {expense_id} deleted"))
