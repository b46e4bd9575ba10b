"""Unit tests for invoice, item and payment models."""

import datetime as dt
from decimal import Decimal

import pytest
from pydantic import ValidationError

from timeledger.models import (
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    ItemType,
    LineItem,
    Payment,
    PaymentMethod,
)


def make_invoice(**overrides) -> Invoice:
    data = dict(
        invoice_number="INV-20240304-001",
        user_id="u1",
        client_id="c1",
        issue_date=dt.date(2024, 3, 4),
        due_date=dt.date(2024, 4, 3),
        subtotal="125.00",
        tax="12.50",
        total="137.50",
    )
    data.update(overrides)
    return Invoice(**data)


class TestInvoice:
    """Test Invoice model."""

    def test_defaults(self):
        invoice = make_invoice()

        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.tax_rate == Decimal("0")
        assert invoice.items == []
        assert invoice.total == Decimal("137.50")

    def test_total_must_equal_subtotal_plus_tax(self):
        with pytest.raises(ValidationError, match="must equal subtotal"):
            make_invoice(total="137.49")

    def test_negative_tax_rate_rejected(self):
        with pytest.raises(ValidationError):
            make_invoice(tax_rate=-1)

    def test_status_from_string(self):
        assert make_invoice(status="SENT").status == InvoiceStatus.SENT


class TestInvoiceItem:
    """Test InvoiceItem model."""

    def test_item_converts_numbers(self):
        item = InvoiceItem(
            invoice_id="i1",
            description="Design",
            quantity=2,
            unit_price="50",
            amount="100.00",
        )

        assert item.quantity == Decimal("2")
        assert item.unit_price == Decimal("50")
        assert item.type == ItemType.SERVICE

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            InvoiceItem(
                invoice_id="i1", description="Design", quantity=0, unit_price=50, amount=0
            )


class TestLineItem:
    """Test raw line item parsing."""

    def test_from_mapping_accepts_camel_case(self):
        line = LineItem.from_mapping(
            {"description": "Design", "quantity": 2, "unitPrice": "50", "projectId": "p1"}
        )

        assert line.unit_price == "50"
        assert line.project_id == "p1"
        assert line.type == ItemType.SERVICE
        assert line.time_entry_ids == []

    def test_empty_project_id_becomes_none(self):
        line = LineItem.from_mapping(
            {"description": "Design", "quantity": 1, "unit_price": 1, "project_id": ""}
        )

        assert line.project_id is None


class TestPayment:
    def test_payment_defaults(self):
        payment = Payment(invoice_id="i1", amount="50", date=dt.date(2024, 3, 5))

        assert payment.method == PaymentMethod.BANK_TRANSFER
        assert payment.amount == Decimal("50")

    def test_payment_amount_positive(self):
        with pytest.raises(ValidationError):
            Payment(invoice_id="i1", amount=0, date=dt.date(2024, 3, 5))
