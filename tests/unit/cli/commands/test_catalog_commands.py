"""Unit tests for the client and project commands."""

from timeledger.cli import cli


def test_add_and_list_clients(runner, app):
    added = runner.invoke(cli, ["client", "add", "Acme Corp", "--email", "ap@acme.test"], obj=app)
    listed = runner.invoke(cli, ["client", "list"], obj=app)

    assert added.exit_code == 0
    assert "Client Acme Corp added" in added.output
    assert "ap@acme.test" in listed.output


def test_blank_client_name(runner, app):
    result = runner.invoke(cli, ["client", "add", "  "], obj=app)

    assert result.exit_code == 3
    assert "name" in result.output


def test_add_and_list_projects(runner, app, client):
    added = runner.invoke(
        cli, ["project", "add", client.id, "Website", "--rate", "85"], obj=app
    )
    listed = runner.invoke(cli, ["project", "list", "--client", client.id], obj=app)

    assert added.exit_code == 0
    assert "Project Website added at $85.00/h" in added.output
    assert "Website" in listed.output
    assert "ACTIVE" in listed.output


def test_project_requires_rate(runner, app, client):
    result = runner.invoke(cli, ["project", "add", client.id, "Website"], obj=app)

    assert result.exit_code == 2
    assert "--rate" in result.output


def test_project_validation_lists_fields(runner, app, client):
    result = runner.invoke(cli, ["project", "add", client.id, "", "--rate", "cheap"], obj=app)

    assert result.exit_code == 3
    assert "- name:" in result.output
    assert "- hourly_rate:" in result.output


def test_project_for_unknown_client(runner, app):
    result = runner.invoke(cli, ["project", "add", "nope", "Website", "--rate", "10"], obj=app)

    assert result.exit_code == 4


def test_empty_project_list(runner, app):
    result = runner.invoke(cli, ["project", "list"], obj=app)

    assert "No projects found" in result.output
