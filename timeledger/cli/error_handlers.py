"""Error handling for CLI commands.

Each ledger error class maps to its own exit code so scripts can react to
the kind of failure:

    1  configuration    4  not found     7  storage
    2  invalid input    5  conflict      130 cancelled
    3  validation       6  forbidden     255 unexpected
"""

import sys
import traceback

import click
from pydantic import ValidationError as PydanticValidationError

from timeledger.cli.utils.formatters import format_error, format_warning
from timeledger.errors import (
    ConflictError,
    ForbiddenError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from timeledger.stores.interface import StoreError

EXIT_CODES = (
    (ValidationError, 3, "Validation Error"),
    (NotFoundError, 4, "Not Found"),
    (ConflictError, 5, "Conflict"),
    (ForbiddenError, 6, "Forbidden"),
)


def handle_cli_error(error: Exception, debug: bool = False) -> int:
    """
    Print a user-friendly message for an error.

    Args:
        error: The exception that occurred
        debug: Whether to show the full stack trace for unexpected errors

    Returns:
        Process exit code
    """
    for error_type, exit_code, label in EXIT_CODES:
        if isinstance(error, error_type):
            click.echo(format_error(f"{label}: {error.message}"))
            if isinstance(error, ValidationError):
                for issue in error.report.get_errors():
                    click.echo(f"  - {issue.field}: {issue.message}")
            if error.recovery_hint:
                click.echo(format_warning(f"Hint: {error.recovery_hint}"))
            return exit_code

    if isinstance(error, LedgerError):
        click.echo(format_error(error.message))
        return 255

    if isinstance(error, PydanticValidationError):
        click.echo(format_error("Configuration Error"))
        click.echo(str(error))
        click.echo(format_warning("Hint: Check the ledger settings in your .env file"))
        return 1

    if isinstance(error, StoreError):
        click.echo(format_error(f"Storage Error: {error}"))
        click.echo(format_warning("Hint: Check that the ledger file is readable and writable"))
        return 7

    if isinstance(error, ValueError):
        click.echo(format_error(f"Invalid Input: {error}"))
        return 2

    if isinstance(error, click.Abort):
        click.echo(format_warning("\nOperation cancelled by user"))
        return 130

    click.echo(format_error(f"Unexpected Error: {type(error).__name__}"))
    click.echo(str(error))
    if debug:
        click.echo("\nFull stack trace:")
        click.echo("".join(traceback.format_exception(type(error), error, error.__traceback__)))
    else:
        click.echo(format_warning("\nRun with --debug flag for full stack trace"))
    return 255


class with_error_handling:
    """
    Context manager that turns exceptions into a message and an exit code.

    Example:
        @click.command()
        @click.pass_obj
        def stop(app):
            with with_error_handling(app.debug):
                app.timers.stop(...)
    """

    def __init__(self, debug: bool = False):
        self.debug = debug

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if isinstance(exc_val, Exception) and not isinstance(
            exc_val, (click.exceptions.Exit, click.ClickException)
        ):
            sys.exit(handle_cli_error(exc_val, self.debug))
        return False
