"""Client and project commands."""

from typing import Optional

import click

from timeledger.calculators.money import format_money
from timeledger.cli.context import LedgerApp
from timeledger.cli.error_handlers import with_error_handling
from timeledger.cli.utils.formatters import format_info, format_success, format_table


@click.group(name="client")
def client():
    """Manage the clients you bill."""
    pass


@client.command(name="add")
@click.argument("name")
@click.option("--email", default=None, help="Billing email")
@click.pass_obj
def add_client(app: LedgerApp, name: str, email: Optional[str]):
    """Add a client called NAME."""
    with with_error_handling(app.debug):
        created = app.catalog.add_client(app.user_id, name, email=email)
        click.echo(format_success(f"Client {created.name} added ({created.id})"))


@client.command(name="list")
@click.pass_obj
def list_clients(app: LedgerApp):
    """List your clients."""
    with with_error_handling(app.debug):
        clients = app.catalog.clients(app.user_id)
        if not clients:
            click.echo(format_info("No clients yet. Add one with 'client add'."))
            return
        rows = [[c.id, c.name, c.email or ""] for c in clients]
        click.echo(format_table(["Id", "Name", "Email"], rows))


@click.group(name="project")
def project():
    """Manage projects and their hourly rates."""
    pass


@project.command(name="add")
@click.argument("client_id")
@click.argument("name")
@click.option("--rate", "hourly_rate", required=True, help="Hourly rate")
@click.pass_obj
def add_project(app: LedgerApp, client_id: str, name: str, hourly_rate: str):
    """Add project NAME for CLIENT_ID.

    Example:
        timeledger project add 9b1c... "Website Redesign" --rate 85
    """
    with with_error_handling(app.debug):
        created = app.catalog.add_project(app.user_id, client_id, name, hourly_rate)
        click.echo(
            format_success(
                f"Project {created.name} added at "
                f"{format_money(created.hourly_rate, app.symbol)}/h ({created.id})"
            )
        )


@project.command(name="list")
@click.option("--client", "client_id", default=None, help="Only this client's projects")
@click.pass_obj
def list_projects(app: LedgerApp, client_id: Optional[str]):
    """List your projects."""
    with with_error_handling(app.debug):
        projects = app.catalog.projects(app.user_id, client_id=client_id)
        if not projects:
            click.echo(format_info("No projects found."))
            return
        rows = [
            [p.id, p.name, p.client_id, format_money(p.hourly_rate, app.symbol), p.status.value]
            for p in projects
        ]
        click.echo(format_table(["Id", "Name", "Client", "Rate", "Status"], rows))
