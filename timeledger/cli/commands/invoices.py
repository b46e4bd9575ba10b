"""Invoice and payment commands."""

from typing import Dict, List, Optional, Tuple

import click

from timeledger.calculators.money import format_money
from timeledger.cli.context import LedgerApp
from timeledger.cli.error_handlers import with_error_handling
from timeledger.cli.utils.formatters import (
    format_info,
    format_invoice,
    format_success,
    format_table,
)
from timeledger.cli.utils.parsing import parse_date_input
from timeledger.models import InvoiceStatus, PaymentMethod


def parse_item_option(value: str) -> Dict[str, str]:
    """Parse ``description:quantity:unit_price`` into a line item mapping.

    The description may itself contain colons; only the last two fields are
    split off.

    Raises:
        click.BadParameter: If the value does not have three parts
    """
    parts = value.rsplit(":", 2)
    if len(parts) != 3 or not parts[0].strip():
        raise click.BadParameter(
            f"'{value}' is not in the form description:quantity:unit_price",
            param_hint="--item",
        )
    description, quantity, unit_price = parts
    return {
        "description": description.strip(),
        "quantity": quantity.strip(),
        "unit_price": unit_price.strip(),
    }


@click.group(name="invoice")
def invoice():
    """Create, inspect and settle invoices."""
    pass


@invoice.command(name="create")
@click.argument("client_id")
@click.option(
    "--item",
    "raw_items",
    multiple=True,
    help="Line item as description:quantity:unit_price (repeatable)",
)
@click.option(
    "--from-unbilled",
    is_flag=True,
    help="Bill every completed, uninvoiced entry and expense of the client",
)
@click.option("--tax-rate", default=None, help="Tax rate in percent")
@click.option("--issue-date", default=None, help="Issue date (YYYY-MM-DD), default today")
@click.option("--due-date", default=None, help="Due date (YYYY-MM-DD), default issue + terms")
@click.option("--notes", default=None)
@click.pass_obj
def create_invoice(
    app: LedgerApp,
    client_id: str,
    raw_items: Tuple[str, ...],
    from_unbilled: bool,
    tax_rate: Optional[str],
    issue_date: Optional[str],
    due_date: Optional[str],
    notes: Optional[str],
):
    """Create an invoice for CLIENT_ID.

    Examples:
        timeledger invoice create 9b1c... --item "Design:2:50" --tax-rate 10
        timeledger invoice create 9b1c... --from-unbilled
    """
    items: List = [parse_item_option(raw) for raw in raw_items]
    with with_error_handling(app.debug):
        if from_unbilled:
            items.extend(_unbilled_lines(app, client_id))
        created = app.invoices.create(
            app.user_id,
            client_id,
            items,
            tax_rate=app.config.default_tax_rate if tax_rate is None else tax_rate,
            issue_date=parse_date_input(issue_date) if issue_date else None,
            due_date=parse_date_input(due_date) if due_date else None,
            notes=notes,
        )
        click.echo(
            format_success(
                f"Invoice {created.invoice_number} created, "
                f"total {format_money(created.total, app.symbol)} ({created.id})"
            )
        )


def _unbilled_lines(app: LedgerApp, client_id: str) -> List:
    project_ids = {p.id for p in app.catalog.projects(app.user_id, client_id=client_id)}
    entries = app.entries.list_entries(app.user_id, client_id=client_id)
    expenses = [
        e for e in app.expenses.list_expenses(app.user_id) if e.project_id in project_ids
    ]
    return app.invoices.line_items_for(app.user_id, entries, expenses)


@invoice.command(name="update")
@click.argument("invoice_id")
@click.option(
    "--item",
    "raw_items",
    multiple=True,
    help="Replacement line item as description:quantity:unit_price (repeatable)",
)
@click.option("--tax-rate", default=None, help="Tax rate in percent, default unchanged")
@click.option("--issue-date", default=None, help="New issue date (YYYY-MM-DD)")
@click.option("--due-date", default=None, help="New due date (YYYY-MM-DD)")
@click.option("--notes", default=None)
@click.pass_obj
def update_invoice(
    app: LedgerApp,
    invoice_id: str,
    raw_items: Tuple[str, ...],
    tax_rate: Optional[str],
    issue_date: Optional[str],
    due_date: Optional[str],
    notes: Optional[str],
):
    """Replace every item of INVOICE_ID and recompute its totals.

    Example:
        timeledger invoice update 4f2a... --item "Design:3:50" --item "Hosting:1:25"
    """
    items = [parse_item_option(raw) for raw in raw_items]
    with with_error_handling(app.debug):
        updated = app.invoices.update(
            invoice_id,
            app.user_id,
            items,
            tax_rate=tax_rate,
            issue_date=parse_date_input(issue_date) if issue_date else None,
            due_date=parse_date_input(due_date) if due_date else None,
            notes=notes,
        )
        click.echo(
            format_success(
                f"Invoice {updated.invoice_number} updated, "
                f"total {format_money(updated.total, app.symbol)}"
            )
        )


@invoice.command(name="show")
@click.argument("invoice_id")
@click.pass_obj
def show_invoice(app: LedgerApp, invoice_id: str):
    """Show INVOICE_ID with its items, payments and balance."""
    with with_error_handling(app.debug):
        found = app.invoices.get(invoice_id, app.user_id)
        click.echo(format_invoice(found, app.symbol))
        payments = app.payments.payments_for(invoice_id, app.user_id)
        if payments:
            click.echo()
            click.echo(
                format_table(
                    ["Date", "Amount", "Method", "Reference"],
                    [
                        [
                            p.date.isoformat(),
                            format_money(p.amount, app.symbol),
                            p.method.value,
                            p.reference or "",
                        ]
                        for p in payments
                    ],
                )
            )
        outstanding = app.payments.outstanding(invoice_id, app.user_id)
        click.echo(f"Outstanding: {format_money(outstanding, app.symbol)}")


@invoice.command(name="list")
@click.option(
    "--status",
    type=click.Choice([s.value for s in InvoiceStatus], case_sensitive=False),
    default=None,
)
@click.option("--client", "client_id", default=None)
@click.pass_obj
def list_invoices(app: LedgerApp, status: Optional[str], client_id: Optional[str]):
    """List your invoices, newest first."""
    with with_error_handling(app.debug):
        found = app.invoices.list_invoices(
            app.user_id,
            status=InvoiceStatus(status.upper()) if status else None,
            client_id=client_id,
        )
        if not found:
            click.echo(format_info("No invoices found."))
            return
        rows = [
            [
                inv.id,
                inv.invoice_number,
                inv.issue_date.isoformat(),
                inv.due_date.isoformat(),
                inv.status.value,
                format_money(inv.total, app.symbol),
            ]
            for inv in found
        ]
        click.echo(format_table(["Id", "Number", "Issued", "Due", "Status", "Total"], rows))


@invoice.command(name="status")
@click.argument("invoice_id")
@click.argument(
    "status", type=click.Choice([s.value for s in InvoiceStatus], case_sensitive=False)
)
@click.pass_obj
def set_invoice_status(app: LedgerApp, invoice_id: str, status: str):
    """Move INVOICE_ID to STATUS (e.g. SENT once it has gone out)."""
    with with_error_handling(app.debug):
        updated = app.invoices.set_status(invoice_id, app.user_id, InvoiceStatus(status.upper()))
        click.echo(format_success(f"Invoice {updated.invoice_number} is now {updated.status.value}"))


@invoice.command(name="delete")
@click.argument("invoice_id")
@click.confirmation_option(prompt="Delete this invoice and its items?")
@click.pass_obj
def delete_invoice(app: LedgerApp, invoice_id: str):
    """Delete INVOICE_ID and its items."""
    with with_error_handling(app.debug):
        app.invoices.delete(invoice_id, app.user_id)
        click.echo(format_success(f"Invoice {invoice_id} deleted"))


@invoice.command(name="pay")
@click.argument("invoice_id")
@click.argument("amount")
@click.option(
    "--method",
    type=click.Choice([m.value for m in PaymentMethod], case_sensitive=False),
    default=PaymentMethod.BANK_TRANSFER.value,
    show_default=True,
)
@click.option("--date", "payment_date", default=None, help="Payment date (YYYY-MM-DD)")
@click.option("--reference", default=None, help="Bank or processor reference")
@click.option("--notes", default=None)
@click.pass_obj
def record_payment(
    app: LedgerApp,
    invoice_id: str,
    amount: str,
    method: str,
    payment_date: Optional[str],
    reference: Optional[str],
    notes: Optional[str],
):
    """Record a payment of AMOUNT against INVOICE_ID."""
    with with_error_handling(app.debug):
        payment = app.payments.record(
            invoice_id,
            app.user_id,
            amount,
            date=parse_date_input(payment_date) if payment_date else None,
            method=PaymentMethod(method.upper()),
            reference=reference,
            notes=notes,
        )
        outstanding = app.payments.outstanding(invoice_id, app.user_id)
        click.echo(
            format_success(
                f"Payment of {format_money(payment.amount, app.symbol)} recorded; "
                f"outstanding {format_money(outstanding, app.symbol)}"
            )
        )
