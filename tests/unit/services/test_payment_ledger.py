"""Tests for recording payments."""

import datetime as dt
from decimal import Decimal

import pytest

from timeledger.errors import NotFoundError, ValidationError
from timeledger.models import PaymentMethod
from timeledger.services.invoice_builder import InvoiceBuilder
from timeledger.services.payment_ledger import PaymentLedger


@pytest.fixture
def ledger(store, clock):
    return PaymentLedger(store, clock)


@pytest.fixture
def invoice(store, clock, client, user_id):
    builder = InvoiceBuilder(store, clock)
    return builder.create(
        user_id, client.id, [{"description": "Design", "quantity": 1, "unit_price": "500"}]
    )


class TestRecord:
    def test_defaults(self, ledger, invoice, user_id, clock):
        payment = ledger.record(invoice.id, user_id, "200")

        assert payment.amount == Decimal("200")
        assert payment.date == clock.today()
        assert payment.method == PaymentMethod.BANK_TRANSFER
        assert payment.created_at == clock.now()

    def test_explicit_fields(self, ledger, invoice, user_id):
        payment = ledger.record(
            invoice.id,
            user_id,
            50,
            date=dt.date(2024, 3, 1),
            method="CASH",
            reference="R-1",
            notes="Deposit",
        )

        assert payment.method == PaymentMethod.CASH
        assert payment.reference == "R-1"

    @pytest.mark.parametrize("amount", [0, "-10", "lots"])
    def test_invalid_amount(self, ledger, invoice, user_id, amount):
        with pytest.raises(ValidationError) as exc_info:
            ledger.record(invoice.id, user_id, amount)

        assert exc_info.value.fields == ["amount"]
        assert ledger.payments_for(invoice.id, user_id) == []

    def test_foreign_invoice(self, ledger, invoice, other_user_id):
        with pytest.raises(NotFoundError):
            ledger.record(invoice.id, other_user_id, 10)


class TestOutstanding:
    def test_partial_payments(self, ledger, invoice, user_id, clock):
        ledger.record(invoice.id, user_id, "200")
        clock.advance(minutes=1)
        second = ledger.record(invoice.id, user_id, "100.50")

        assert ledger.outstanding(invoice.id, user_id) == Decimal("199.50")
        assert ledger.payments_for(invoice.id, user_id)[0].id == second.id

    def test_overpayment_goes_negative(self, ledger, invoice, user_id):
        ledger.record(invoice.id, user_id, "600")

        assert ledger.outstanding(invoice.id, user_id) == Decimal("-100.00")

    def test_nothing_paid(self, ledger, invoice, user_id):
        assert ledger.outstanding(invoice.id, user_id) == Decimal("500.00")
