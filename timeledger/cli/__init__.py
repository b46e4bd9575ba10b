"""Time ledger CLI.

Track time against client projects, turn it into invoices, record payments
and look at revenue, hours and notifications from the command line.
"""

from typing import Optional

import click

from timeledger.cli.commands import (
    client,
    entries,
    expense,
    invoice,
    notifications,
    project,
    report,
    timer,
)
from timeledger.cli.context import LedgerApp
from timeledger.cli.error_handlers import with_error_handling
from timeledger.config import LoggingConfig, configure_logging, get_config
from timeledger.utils.logging_utils import LogContext, new_correlation_id

__version__ = "1.0.0"


@click.group(help="Time ledger - track billable time, invoice clients and follow payments")
@click.version_option(version=__version__)
@click.option("--user", "user_id", default=None, help="User id (default: LEDGER_USER)")
@click.option(
    "--ledger-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Ledger JSON file (default: LEDGER_FILE)",
)
@click.option("--debug", is_flag=True, help="Show full stack traces on errors")
@click.option("--verbose", "-v", is_flag=True, help="Log to the console")
@click.pass_context
def cli(
    ctx: click.Context,
    user_id: Optional[str],
    ledger_file: Optional[str],
    debug: bool,
    verbose: bool,
):
    """Time ledger CLI main entry point."""
    if ctx.obj is not None:
        return

    with with_error_handling(debug):
        settings = get_config()
        logging_config = LoggingConfig.from_settings(settings)
        logging_config.enable_console = verbose
        configure_logging(logging_config)

    ctx.with_resource(LogContext(correlation_id=new_correlation_id()))
    ctx.obj = LedgerApp(settings, user_id=user_id, ledger_file=ledger_file, debug=debug)


# Register commands
cli.add_command(client)
cli.add_command(project)
cli.add_command(timer)
cli.add_command(entries)
cli.add_command(expense)
cli.add_command(invoice)
cli.add_command(report)
cli.add_command(notifications)


def main():
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
