"""Timer commands: start, stop, resume and show the running timer."""

from typing import Optional

import click

from timeledger.cli.context import LedgerApp
from timeledger.cli.error_handlers import with_error_handling
from timeledger.cli.utils.formatters import format_info, format_success
from timeledger.errors import NotFoundError


@click.group(name="timer")
def timer():
    """Start and stop the single running timer."""
    pass


@timer.command(name="start")
@click.argument("project_id")
@click.option("--description", "-d", default=None, help="What you are working on")
@click.option("--non-billable", is_flag=True, help="Mark the time as non-billable")
@click.pass_obj
def start_timer(app: LedgerApp, project_id: str, description: Optional[str], non_billable: bool):
    """Start a timer on PROJECT_ID.

    Example:
        timeledger timer start 3f2a... -d "Design review"
    """
    with with_error_handling(app.debug):
        entry = app.timers.start(
            app.user_id, project_id, description=description, billable=not non_billable
        )
        click.echo(format_success(f"Timer started at {entry.start_time:%H:%M} ({entry.id})"))


@timer.command(name="stop")
@click.argument("entry_id", required=False)
@click.pass_obj
def stop_timer(app: LedgerApp, entry_id: Optional[str]):
    """Stop the running timer (or ENTRY_ID if given)."""
    with with_error_handling(app.debug):
        if entry_id is None:
            running = app.timers.current(app.user_id)
            if running is None:
                raise NotFoundError("No running timer", recovery_hint="Start one with 'timer start'")
            entry_id = running.entry.id
        entry = app.timers.stop(entry_id, app.user_id)
        elapsed = entry.end_time - entry.start_time
        hours, remainder = divmod(int(elapsed.total_seconds()), 3600)
        click.echo(format_success(f"Timer stopped after {hours}h {remainder // 60}m"))


@timer.command(name="resume")
@click.argument("entry_id")
@click.pass_obj
def resume_timer(app: LedgerApp, entry_id: str):
    """Start a new timer with the details of ENTRY_ID."""
    with with_error_handling(app.debug):
        entry = app.timers.resume(entry_id, app.user_id)
        click.echo(format_success(f"Timer resumed ({entry.id})"))


@timer.command(name="current")
@click.pass_obj
def current_timer(app: LedgerApp):
    """Show the running timer and how long it has been running."""
    with with_error_handling(app.debug):
        running = app.timers.current(app.user_id)
        if running is None:
            click.echo(format_info("No running timer"))
            return
        description = running.entry.description or "No description"
        click.echo(f"{running.elapsed}  {description}  ({running.entry.id})")
