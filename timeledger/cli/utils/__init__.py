"""CLI utility functions."""

from timeledger.cli.utils.formatters import (
    ENTRY_HEADERS,
    entry_row,
    format_error,
    format_info,
    format_invoice,
    format_notification,
    format_success,
    format_table,
    format_warning,
)
from timeledger.cli.utils.parsing import parse_date_input, parse_datetime_input

__all__ = [
    "ENTRY_HEADERS",
    "entry_row",
    "format_error",
    "format_info",
    "format_invoice",
    "format_notification",
    "format_success",
    "format_table",
    "format_warning",
    "parse_date_input",
    "parse_datetime_input",
]
