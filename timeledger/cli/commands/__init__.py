"""CLI commands."""

from timeledger.cli.commands.catalog import client, project
from timeledger.cli.commands.entries import entries, expense
from timeledger.cli.commands.invoices import invoice
from timeledger.cli.commands.notifications import notifications
from timeledger.cli.commands.reports import report
from timeledger.cli.commands.timer import timer

__all__ = [
    "client",
    "entries",
    "expense",
    "invoice",
    "notifications",
    "project",
    "report",
    "timer",
]
