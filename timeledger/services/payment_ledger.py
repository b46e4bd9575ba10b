"""Payments received against invoices.

Payments are append-only: once recorded they are never edited or removed.
"""

import datetime as dt
import logging
from decimal import Decimal
from typing import Any, List, Optional

from timeledger.calculators.billing_calculator import calculate_outstanding
from timeledger.errors import ValidationError
from timeledger.models import Payment, PaymentMethod
from timeledger.services.ownership import require_invoice
from timeledger.stores.interface import LedgerStore, PaymentQuery
from timeledger.utils.clock import Clock, SystemClock
from timeledger.utils.logging_utils import LogContext, log_function_call
from timeledger.validators import FieldValidators, ValidationReport

logger = logging.getLogger(__name__)


class PaymentLedger:
    """Record payments and compute what is still owed on an invoice."""

    def __init__(self, store: LedgerStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or SystemClock()

    @log_function_call(include_args=True)
    def record(
        self,
        invoice_id: str,
        user_id: str,
        amount: Any,
        date: Optional[dt.date] = None,
        method: PaymentMethod = PaymentMethod.BANK_TRANSFER,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Payment:
        """Record a payment against one of the user's invoices.

        Overpayment is allowed; the outstanding balance then goes negative.

        Raises:
            ValidationError: If the amount is not a number greater than 0
            NotFoundError: If the invoice does not exist or is not the user's
        """
        report = ValidationReport()
        value = FieldValidators.validate_positive_number(amount, "amount", report)
        if report.has_errors():
            raise ValidationError("Invalid payment data", report=report)

        with LogContext(user_id=user_id, invoice_id=invoice_id):
            with self.store.transaction():
                require_invoice(self.store, invoice_id, user_id, include_items=False)
                payment = self.store.add_payment(
                    Payment(
                        invoice_id=invoice_id,
                        amount=value,
                        date=date or self.clock.today(),
                        method=PaymentMethod(method),
                        reference=reference,
                        notes=notes,
                        created_at=self.clock.now(),
                    )
                )
            logger.info(f"Recorded payment {payment.id} of {payment.amount}")
        return payment

    def payments_for(self, invoice_id: str, user_id: str) -> List[Payment]:
        """Payments on one of the user's invoices, newest first."""
        require_invoice(self.store, invoice_id, user_id, include_items=False)
        return self.store.find_payments(PaymentQuery(invoice_ids=[invoice_id]))

    def outstanding(self, invoice_id: str, user_id: str) -> Decimal:
        """Invoice total minus every payment recorded against it."""
        invoice = require_invoice(self.store, invoice_id, user_id, include_items=False)
        payments = self.store.find_payments(PaymentQuery(invoice_ids=[invoice_id]))
        return calculate_outstanding(invoice, payments)
