"""Unit tests for the invoice and payment commands."""

import datetime as dt

import click
import pytest

from timeledger.cli import cli
from timeledger.cli.commands.invoices import parse_item_option
from timeledger.models import Expense, InvoiceStatus, TimeEntry

UTC = dt.timezone.utc


class TestParseItemOption:
    def test_three_parts(self):
        assert parse_item_option("Design:2:50") == {
            "description": "Design",
            "quantity": "2",
            "unit_price": "50",
        }

    def test_description_with_colons(self):
        assert parse_item_option("Phase 1: Design:1.5:80")["description"] == "Phase 1: Design"

    @pytest.mark.parametrize("value", ["Design", "Design:2", ":1:1"])
    def test_invalid(self, value):
        with pytest.raises(click.BadParameter):
            parse_item_option(value)


def create(runner, app, client, *extra):
    args = ["invoice", "create", client.id, "--item", "Design:2:50", "--item", "Hosting:1:25"]
    return runner.invoke(cli, args + list(extra), obj=app)


class TestCreate:
    def test_create_with_items(self, runner, app, client):
        result = create(runner, app, client, "--tax-rate", "10")

        assert result.exit_code == 0
        assert "Invoice INV-20240304-001 created, total $137.50" in result.output

    def test_default_tax_rate_from_settings(self, runner, app, client):
        result = create(runner, app, client)

        assert "total $125.00" in result.output

    def test_bad_item(self, runner, app, client):
        result = runner.invoke(cli, ["invoice", "create", client.id, "--item", "Design"], obj=app)

        assert result.exit_code == 2
        assert "description:quantity:unit_price" in result.output

    def test_validation_errors_listed(self, runner, app, client):
        result = runner.invoke(
            cli,
            ["invoice", "create", client.id, "--item", "Design:0:50", "--tax-rate=-1"],
            obj=app,
        )

        assert result.exit_code == 3
        assert "items[0].quantity" in result.output
        assert "tax_rate" in result.output

    def test_no_items(self, runner, app, client):
        result = runner.invoke(cli, ["invoice", "create", client.id], obj=app)

        assert result.exit_code == 3
        assert "- items:" in result.output

    def test_from_unbilled(self, runner, app, client, project, store, user_id):
        start = dt.datetime(2024, 3, 1, 9, tzinfo=UTC)
        entry = store.add_time_entry(
            TimeEntry(
                user_id=user_id,
                project_id=project.id,
                start_time=start,
                end_time=start + dt.timedelta(hours=3),
            )
        )
        expense = store.add_expense(
            Expense(
                user_id=user_id,
                project_id=project.id,
                description="Fonts",
                amount="40",
                date=dt.date(2024, 3, 1),
            )
        )

        result = runner.invoke(
            cli, ["invoice", "create", client.id, "--from-unbilled"], obj=app
        )

        assert result.exit_code == 0
        assert "total $340.00" in result.output
        invoice_id = store.get_time_entry(entry.id).invoice_id
        assert invoice_id is not None
        assert store.get_expense(expense.id).invoice_id == invoice_id


class TestLifecycle:
    @pytest.fixture
    def invoice_id(self, runner, app, client):
        create(runner, app, client, "--tax-rate", "10")
        return app.invoices.list_invoices(app.user_id)[0].id

    def test_show(self, runner, app, invoice_id):
        runner.invoke(cli, ["invoice", "pay", invoice_id, "37.50", "--reference", "TX1"], obj=app)

        result = runner.invoke(cli, ["invoice", "show", invoice_id], obj=app)

        assert result.exit_code == 0
        assert "Invoice INV-20240304-001  [DRAFT]" in result.output
        assert "Total: $137.50" in result.output
        assert "TX1" in result.output
        assert "Outstanding: $100.00" in result.output

    def test_update_replaces_items(self, runner, app, invoice_id):
        result = runner.invoke(
            cli, ["invoice", "update", invoice_id, "--item", "Audit:3:10"], obj=app
        )

        assert result.exit_code == 0
        assert "Invoice INV-20240304-001 updated, total $33.00" in result.output
        updated = app.invoices.get(invoice_id, app.user_id)
        assert [item.description for item in updated.items] == ["Audit"]
        assert updated.invoice_number == "INV-20240304-001"

    def test_update_without_items(self, runner, app, invoice_id):
        result = runner.invoke(cli, ["invoice", "update", invoice_id], obj=app)

        assert result.exit_code == 3
        assert len(app.invoices.get(invoice_id, app.user_id).items) == 2

    def test_update_unknown_invoice(self, runner, app):
        result = runner.invoke(cli, ["invoice", "update", "nope", "--item", "A:1:1"], obj=app)

        assert result.exit_code == 4

    def test_list_and_filter(self, runner, app, invoice_id):
        listed = runner.invoke(cli, ["invoice", "list"], obj=app)
        sent = runner.invoke(cli, ["invoice", "list", "--status", "sent"], obj=app)

        assert "INV-20240304-001" in listed.output
        assert "No invoices found" in sent.output

    def test_status(self, runner, app, invoice_id):
        result = runner.invoke(cli, ["invoice", "status", invoice_id, "sent"], obj=app)

        assert result.exit_code == 0
        assert "is now SENT" in result.output
        assert app.invoices.get(invoice_id, app.user_id).status == InvoiceStatus.SENT

    def test_pay(self, runner, app, invoice_id):
        result = runner.invoke(
            cli, ["invoice", "pay", invoice_id, "100", "--method", "cash"], obj=app
        )

        assert result.exit_code == 0
        assert "Payment of $100.00 recorded; outstanding $37.50" in result.output

    def test_pay_invalid_amount(self, runner, app, invoice_id):
        result = runner.invoke(cli, ["invoice", "pay", invoice_id, "abc"], obj=app)

        assert result.exit_code == 3

    def test_delete_needs_confirmation(self, runner, app, invoice_id):
        declined = runner.invoke(cli, ["invoice", "delete", invoice_id], input="n\n", obj=app)
        confirmed = runner.invoke(cli, ["invoice", "delete", invoice_id, "--yes"], obj=app)

        assert declined.exit_code != 0
        assert confirmed.exit_code == 0
        assert app.invoices.list_invoices(app.user_id) == []

    def test_other_user_cannot_show(self, runner, app, invoice_id, other_user_id):
        app.user_id = other_user_id

        result = runner.invoke(cli, ["invoice", "show", invoice_id], obj=app)

        assert result.exit_code == 4
