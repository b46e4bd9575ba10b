"""Notifications command."""

import click

from timeledger.cli.context import LedgerApp
from timeledger.cli.error_handlers import with_error_handling
from timeledger.cli.utils.formatters import format_info, format_notification


@click.command(name="notifications")
@click.option("--counts", "counts_only", is_flag=True, help="Only show how many of each kind")
@click.pass_obj
def notifications(app: LedgerApp, counts_only: bool):
    """Show overdue and upcoming invoices, running timers and recent payments.

    Notifications are derived from the ledger each time; nothing is stored.
    """
    with with_error_handling(app.debug):
        feed = app.notifications.derive_for_user(app.user_id)
        if counts_only:
            for kind, count in feed.counts.items():
                click.echo(f"{kind}: {count}")
            return
        if not feed.notifications:
            click.echo(format_info("Nothing needs your attention."))
            return
        for notification in feed.notifications:
            click.echo(format_notification(notification))
