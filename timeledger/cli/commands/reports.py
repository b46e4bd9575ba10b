"""Revenue and time report commands."""

from typing import Optional

import click

from timeledger.aggregators.time_report import GroupingStrategy
from timeledger.calculators.money import format_money
from timeledger.cli.context import LedgerApp
from timeledger.cli.error_handlers import with_error_handling
from timeledger.cli.utils.formatters import format_info, format_success, format_table
from timeledger.cli.utils.parsing import parse_date_input

_DATE_OPTIONS = [
    click.option("--start-date", default=None, help="First day (YYYY-MM-DD), default month start"),
    click.option("--end-date", default=None, help="Last day (YYYY-MM-DD), default month end"),
    click.option("--client", "client_id", default=None, help="Only this client"),
    click.option(
        "--output",
        "output_path",
        type=click.Path(dir_okay=False, writable=True),
        default=None,
        help="Also write the rows to this CSV file",
    ),
]


def date_options(func):
    for option in reversed(_DATE_OPTIONS):
        func = option(func)
    return func


@click.group(name="report")
def report():
    """Revenue and hours summaries."""
    pass


@report.command(name="revenue")
@date_options
@click.pass_obj
def revenue_report(
    app: LedgerApp,
    start_date: Optional[str],
    end_date: Optional[str],
    client_id: Optional[str],
    output_path: Optional[str],
):
    """Billable value, invoiced, paid and outstanding amounts per client.

    Example:
        timeledger report revenue --start-date 2024-03-01 --end-date 2024-03-31
    """
    with with_error_handling(app.debug):
        result = app.revenue.report(
            start_date=parse_date_input(start_date) if start_date else None,
            end_date=parse_date_input(end_date) if end_date else None,
            client_id=client_id,
            user_id=app.user_id,
        )

        def money(amount):
            return format_money(amount, app.symbol)

        click.echo(f"Revenue {result.start_date.isoformat()} to {result.end_date.isoformat()}")
        if result.client_stats:
            click.echo(
                format_table(
                    ["Client", "Billable", "Expenses", "Invoiced", "Paid", "Outstanding"],
                    [
                        [
                            s.name,
                            money(s.billable_amount),
                            money(s.expenses),
                            money(s.invoiced_amount),
                            money(s.paid_amount),
                            money(s.outstanding_amount),
                        ]
                        for s in result.client_stats
                    ],
                )
            )
        else:
            click.echo(format_info("No activity in this period."))
        click.echo(f"Billable:    {money(result.billable_amount)}")
        click.echo(f"Expenses:    {money(result.billable_expenses)}")
        click.echo(f"Invoiced:    {money(result.invoiced_total)}")
        click.echo(f"Paid:        {money(result.paid_total)}")
        click.echo(f"Outstanding: {money(result.outstanding_total)}")

        if output_path:
            result.to_dataframe().to_csv(output_path, index=False)
            click.echo(format_success(f"Wrote {output_path}"))


@report.command(name="time")
@date_options
@click.option(
    "--group-by",
    type=click.Choice([g.value for g in GroupingStrategy]),
    default=GroupingStrategy.PROJECT.value,
    show_default=True,
)
@click.option("--project", "project_id", default=None, help="Only this project")
@click.option("--details", is_flag=True, help="List the entries inside each group")
@click.pass_obj
def time_report(
    app: LedgerApp,
    start_date: Optional[str],
    end_date: Optional[str],
    client_id: Optional[str],
    output_path: Optional[str],
    group_by: str,
    project_id: Optional[str],
    details: bool,
):
    """Hours per client, project, day or month."""
    with with_error_handling(app.debug):
        result = app.time_reports.report(
            app.user_id,
            start_date=parse_date_input(start_date) if start_date else None,
            end_date=parse_date_input(end_date) if end_date else None,
            group_by=GroupingStrategy(group_by),
            include_details=details,
            project_id=project_id,
            client_id=client_id,
        )
        click.echo(
            f"Hours {result.start_date.isoformat()} to {result.end_date.isoformat()} "
            f"by {result.group_by.value}"
        )
        if not result.groups:
            click.echo(format_info("No time tracked in this period."))
        for group in result.groups:
            click.echo(
                f"{group.name}: {group.total_hours}h "
                f"({group.billable_hours}h billable, {group.billable_percentage}%)"
            )
            for item in group.items or []:
                click.echo(
                    f"    {item.start_time:%Y-%m-%d %H:%M}  {item.hours}h  "
                    f"{item.description}"
                )
        click.echo(
            f"Total: {result.total_hours}h, billable {result.billable_hours}h "
            f"({result.billable_percentage}%)"
        )

        if output_path:
            result.to_dataframe().to_csv(output_path, index=False)
            click.echo(format_success(f"Wrote {output_path}"))
