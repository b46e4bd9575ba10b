"""Business rule validators for ledger input.

This module provides validators for domain rules: invoice line items, tax
rates, invoice dates, and time ranges of manual entries.
"""

import datetime as dt
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Sequence, Union

from timeledger.models.invoice import ItemType, LineItem
from timeledger.validators.field_validators import FieldValidators
from timeledger.validators.validation_report import ValidationReport

LONG_ENTRY = dt.timedelta(hours=24)


class BusinessRuleValidators:
    """Collection of business rule validation methods.

    Each method records issues in the supplied report and returns the
    normalized value(s) when the input is valid.
    """

    @staticmethod
    def validate_line_items(
        items: Optional[Sequence[Union[LineItem, Mapping[str, Any]]]],
        report: ValidationReport,
    ) -> List[LineItem]:
        """Validate and normalize invoice line items.

        Rules:
        - at least one item is required
        - description must be non-empty
        - quantity must be a number greater than 0
        - unit price must be a number greater than or equal to 0
        - type must be a known ItemType

        Args:
            items: Raw line items (LineItem instances or dicts)
            report: ValidationReport to collect issues

        Returns:
            Normalized LineItems with Decimal quantity/unit_price. Only
            meaningful when the report has no errors.
        """
        if not items:
            report.add_error("items", "At least one item is required", items)
            return []

        normalized: List[LineItem] = []
        for index, raw in enumerate(items):
            prefix = f"items[{index}]"
            item = raw if isinstance(raw, LineItem) else LineItem.from_mapping(raw)

            description = FieldValidators.validate_non_empty_string(
                item.description, f"{prefix}.description", report
            )
            quantity = FieldValidators.validate_positive_number(
                item.quantity, f"{prefix}.quantity", report
            )
            unit_price = FieldValidators.validate_non_negative_number(
                item.unit_price, f"{prefix}.unit_price", report
            )

            try:
                item_type = ItemType(item.type)
            except ValueError:
                report.add_error(
                    f"{prefix}.type",
                    f"Must be one of {[t.value for t in ItemType]}",
                    item.type,
                )
                item_type = None

            if None in (description, quantity, unit_price, item_type):
                continue

            normalized.append(
                LineItem(
                    description=description,
                    quantity=quantity,
                    unit_price=unit_price,
                    type=item_type,
                    project_id=item.project_id or None,
                    time_entry_ids=list(item.time_entry_ids),
                    expense_ids=list(item.expense_ids),
                )
            )

        return normalized

    @staticmethod
    def validate_tax_rate(value: Any, report: ValidationReport) -> Optional[Decimal]:
        """Validate a tax percentage. Any non-negative rate is accepted."""
        return FieldValidators.validate_non_negative_number(value, "tax_rate", report)

    @staticmethod
    def validate_invoice_dates(
        issue_date: Optional[dt.date],
        due_date: Optional[dt.date],
        report: ValidationReport,
    ) -> None:
        """Validate that both dates are present and due is not before issue."""
        has_issue = FieldValidators.validate_required(issue_date, "issue_date", report)
        has_due = FieldValidators.validate_required(due_date, "due_date", report)
        if has_issue and has_due and due_date < issue_date:
            report.add_error(
                "due_date",
                f"Due date ({due_date}) cannot be before issue date ({issue_date})",
                due_date,
            )

    @staticmethod
    def validate_time_range(
        start_time: Optional[dt.datetime],
        end_time: Optional[dt.datetime],
        report: ValidationReport,
    ) -> None:
        """Validate the time range of a manual or edited time entry.

        The end time is optional (an open entry), but when present it must
        not precede the start time.
        """
        if not FieldValidators.validate_required(start_time, "start_time", report):
            return

        for name, value in (("start_time", start_time), ("end_time", end_time)):
            if value is not None and value.tzinfo is None:
                report.add_error(name, "Timestamp must be timezone-aware", value)
                return

        if end_time is not None and end_time < start_time:
            report.add_error(
                "end_time",
                f"End time ({end_time.isoformat()}) must not be before "
                f"start time ({start_time.isoformat()})",
                end_time,
            )
        elif end_time is not None and end_time - start_time > LONG_ENTRY:
            report.add_warning("end_time", "Entry spans more than 24 hours", end_time)
