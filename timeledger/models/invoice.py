"""Invoice, invoice item and payment models.

Totals on an invoice are always derived from its items; the builder in
``timeledger.services.invoice_builder`` is the only place that sets them.
"""

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from pydantic import Field, field_validator, model_validator

from timeledger.models.base import BaseDataModel, new_id, require_aware, to_decimal
from timeledger.models.time_entry import utc_now


class InvoiceStatus(str, Enum):
    """Lifecycle state of an invoice."""

    DRAFT = "DRAFT"
    SENT = "SENT"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class ItemType(str, Enum):
    """Kind of invoice line."""

    SERVICE = "SERVICE"
    EXPENSE = "EXPENSE"
    PRODUCT = "PRODUCT"


class PaymentMethod(str, Enum):
    """How a payment was made."""

    BANK_TRANSFER = "BANK_TRANSFER"
    CREDIT_CARD = "CREDIT_CARD"
    STRIPE = "STRIPE"
    PAYPAL = "PAYPAL"
    CASH = "CASH"
    OTHER = "OTHER"


@dataclass
class LineItem:
    """Unvalidated invoice line as supplied by a caller.

    Values are kept raw so that every problem can be reported with its field
    path before anything is persisted.
    """

    description: Any
    quantity: Any
    unit_price: Any
    type: Any = ItemType.SERVICE
    project_id: Optional[str] = None
    time_entry_ids: List[str] = field(default_factory=list)
    expense_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LineItem":
        """Build a line from a dict using either snake_case or camelCase keys."""
        return cls(
            description=data.get("description"),
            quantity=data.get("quantity"),
            unit_price=data.get("unit_price", data.get("unitPrice")),
            type=data.get("type", ItemType.SERVICE),
            project_id=data.get("project_id", data.get("projectId")) or None,
            time_entry_ids=list(data.get("time_entry_ids", [])),
            expense_ids=list(data.get("expense_ids", [])),
        )


class InvoiceItem(BaseDataModel):
    """A single line on an invoice.

    Attributes:
        id: Item identifier
        invoice_id: Owning invoice
        description: Line description
        quantity: Number of units (hours for SERVICE lines)
        unit_price: Price per unit
        amount: quantity × unit_price at full precision; rounded only for display
        project_id: Optional project the line relates to
        type: Kind of line
        time_entry_ids: Time entries billed by this line
        expense_ids: Expenses billed by this line
    """

    id: str = Field(default_factory=new_id)
    invoice_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    amount: Decimal
    project_id: Optional[str] = None
    type: ItemType = ItemType.SERVICE
    time_entry_ids: List[str] = Field(default_factory=list)
    expense_ids: List[str] = Field(default_factory=list)

    @field_validator("quantity", "unit_price", "amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Convert numeric values to Decimal for precision."""
        return to_decimal(v)


class Invoice(BaseDataModel):
    """Represents an invoice issued to a client.

    Attributes:
        id: Invoice identifier
        invoice_number: Unique number shaped INV-YYYYMMDD-NNN
        user_id: Owner of the invoice
        client_id: Invoiced client
        issue_date: Date of issue
        due_date: Payment due date
        status: Lifecycle state
        tax_rate: Tax percentage applied to the subtotal
        subtotal: Sum of item amounts, rounded once to cents
        tax: subtotal × tax_rate / 100, rounded once to cents
        total: subtotal + tax
        notes: Optional free text
        created_at: When the invoice was created
        items: Eager-loaded invoice lines (empty unless requested)
    """

    id: str = Field(default_factory=new_id)
    invoice_number: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)
    issue_date: dt.date
    due_date: dt.date
    status: InvoiceStatus = InvoiceStatus.DRAFT
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0)
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    notes: Optional[str] = None
    created_at: dt.datetime = Field(default_factory=utc_now)
    items: List[InvoiceItem] = Field(default_factory=list)

    @field_validator("tax_rate", "subtotal", "tax", "total", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Convert numeric values to Decimal for precision."""
        return to_decimal(v)

    @field_validator("created_at")
    @classmethod
    def validate_timezone(cls, v: dt.datetime, info) -> dt.datetime:
        """Reject naive creation timestamps."""
        return require_aware(v, info.field_name)

    @model_validator(mode="after")
    def validate_totals(self) -> "Invoice":
        """Validate that total equals subtotal plus tax.

        Raises:
            ValueError: If the stored total disagrees with its parts
        """
        if self.total != self.subtotal + self.tax:
            raise ValueError(
                f"total ({self.total}) must equal subtotal ({self.subtotal}) "
                f"+ tax ({self.tax})"
            )
        return self


class Payment(BaseDataModel):
    """A payment received against an invoice.

    Attributes:
        id: Payment identifier
        invoice_id: Invoice the payment settles
        amount: Positive amount received
        date: Date the payment was made
        method: Payment method
        reference: Optional external reference
        notes: Optional free text
        created_at: When the payment was recorded
    """

    id: str = Field(default_factory=new_id)
    invoice_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    date: dt.date
    method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: dt.datetime = Field(default_factory=utc_now)

    @field_validator("amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Convert the amount to Decimal for precision."""
        return to_decimal(v)

    @field_validator("created_at")
    @classmethod
    def validate_timezone(cls, v: dt.datetime, info) -> dt.datetime:
        """Reject naive creation timestamps."""
        return require_aware(v, info.field_name)
