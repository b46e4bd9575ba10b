"""Unit tests for the report and notification commands."""

import datetime as dt

import pandas as pd

from timeledger.cli import cli
from timeledger.models import TimeEntry

UTC = dt.timezone.utc


def add_work(store, project, user_id, day, hours, billable=True):
    start = dt.datetime(2024, 3, day, 9, tzinfo=UTC)
    store.add_time_entry(
        TimeEntry(
            user_id=user_id,
            project_id=project.id,
            start_time=start,
            end_time=start + dt.timedelta(hours=hours),
            billable=billable,
        )
    )


class TestRevenueReportCommand:
    def test_totals(self, runner, app, store, project, user_id):
        add_work(store, project, user_id, 1, 2)

        result = runner.invoke(cli, ["report", "revenue"], obj=app)

        assert result.exit_code == 0
        assert "Revenue 2024-03-01 to 2024-03-31" in result.output
        assert "Acme Corp" in result.output
        assert "Billable:    $200.00" in result.output
        assert "Outstanding: $0.00" in result.output

    def test_csv_output(self, runner, app, store, project, user_id, tmp_path):
        add_work(store, project, user_id, 1, 2)
        output = tmp_path / "revenue.csv"

        result = runner.invoke(cli, ["report", "revenue", "--output", str(output)], obj=app)

        assert result.exit_code == 0
        frame = pd.read_csv(output)
        assert list(frame["name"]) == ["Acme Corp"]
        assert float(frame["billable_amount"][0]) == 200.0

    def test_invalid_range(self, runner, app):
        result = runner.invoke(
            cli,
            ["report", "revenue", "--start-date", "2024-03-31", "--end-date", "2024-03-01"],
            obj=app,
        )

        assert result.exit_code == 3
        assert "end_date" in result.output

    def test_bad_date(self, runner, app):
        result = runner.invoke(cli, ["report", "revenue", "--start-date", "March"], obj=app)

        assert result.exit_code == 2

    def test_no_activity(self, runner, app):
        result = runner.invoke(cli, ["report", "revenue"], obj=app)

        assert "No activity in this period" in result.output


class TestTimeReportCommand:
    def test_grouped_by_client_with_details(self, runner, app, store, project, user_id):
        add_work(store, project, user_id, 1, 3)
        add_work(store, project, user_id, 2, 1, billable=False)

        result = runner.invoke(
            cli, ["report", "time", "--group-by", "client", "--details"], obj=app
        )

        assert result.exit_code == 0
        assert "by client" in result.output
        assert "Acme Corp: 4.00h (3.00h billable, 75%)" in result.output
        assert "2024-03-01 09:00  3.00h  No description" in result.output
        assert "Total: 4.00h, billable 3.00h (75%)" in result.output

    def test_csv_output(self, runner, app, store, project, user_id, tmp_path):
        add_work(store, project, user_id, 1, 3)
        output = tmp_path / "time.csv"

        runner.invoke(cli, ["report", "time", "--output", str(output)], obj=app)

        assert list(pd.read_csv(output)["name"]) == ["Website Redesign"]

    def test_empty(self, runner, app):
        result = runner.invoke(cli, ["report", "time"], obj=app)

        assert "No time tracked in this period" in result.output


class TestNotificationsCommand:
    def test_nothing_to_show(self, runner, app):
        result = runner.invoke(cli, ["notifications"], obj=app)

        assert result.exit_code == 0
        assert "Nothing needs your attention" in result.output

    def test_running_timer(self, runner, app, project, clock):
        runner.invoke(cli, ["timer", "start", project.id], obj=app)
        clock.advance(hours=3)

        result = runner.invoke(cli, ["notifications"], obj=app)

        assert "Timer Running" in result.output
        assert "for 3 hours" in result.output

    def test_counts(self, runner, app, project):
        runner.invoke(cli, ["timer", "start", project.id], obj=app)

        result = runner.invoke(cli, ["notifications", "--counts"], obj=app)

        assert "running_timer: 1" in result.output
        assert "overdue_invoice: 0" in result.output
        assert "total: 1" in result.output
