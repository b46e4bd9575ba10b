"""Tests for manual time entries and expenses."""

import datetime as dt
from decimal import Decimal

import pytest

from timeledger.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from timeledger.services.entry_service import ExpenseService, TimeEntryService

UTC = dt.timezone.utc


def at(day, hour, minute=0):
    return dt.datetime(2024, 3, day, hour, minute, tzinfo=UTC)


@pytest.fixture
def entries(store, clock):
    return TimeEntryService(store, clock)


@pytest.fixture
def expenses(store, clock):
    return ExpenseService(store, clock)


class TestCreateManual:
    def test_closed_entry(self, entries, project, user_id):
        entry = entries.create_manual(user_id, project.id, at(4, 9), at(4, 10, 30), "Review")

        assert not entry.is_open
        assert entry.description == "Review"

    def test_end_before_start(self, entries, project, user_id):
        with pytest.raises(ValidationError) as exc_info:
            entries.create_manual(user_id, project.id, at(4, 10), at(4, 9))

        assert exc_info.value.fields == ["end_time"]

    def test_open_entry_conflicts_with_running_timer(self, entries, project, user_id):
        entries.create_manual(user_id, project.id, at(4, 9))

        with pytest.raises(ConflictError):
            entries.create_manual(user_id, project.id, at(4, 11))

    def test_foreign_project(self, entries, other_project, user_id):
        with pytest.raises(NotFoundError):
            entries.create_manual(user_id, other_project.id, at(4, 9), at(4, 10))


class TestUpdate:
    def test_update_fields(self, entries, project, user_id):
        entry = entries.create_manual(user_id, project.id, at(4, 9), at(4, 10))

        updated = entries.update(entry.id, user_id, description="Changed", billable=False)

        assert updated.description == "Changed"
        assert updated.billable is False

    def test_unknown_field_rejected(self, entries, project, user_id):
        entry = entries.create_manual(user_id, project.id, at(4, 9), at(4, 10))

        with pytest.raises(ValidationError) as exc_info:
            entries.update(entry.id, user_id, invoice_id="i1")

        assert exc_info.value.fields == ["invoice_id"]

    def test_invalid_range_leaves_entry_unchanged(self, entries, project, user_id, store):
        entry = entries.create_manual(user_id, project.id, at(4, 9), at(4, 10))

        with pytest.raises(ValidationError):
            entries.update(entry.id, user_id, end_time=at(4, 8))

        assert store.get_time_entry(entry.id).end_time == at(4, 10)

    def test_reopen_with_running_timer_conflicts(self, entries, project, user_id):
        entry = entries.create_manual(user_id, project.id, at(4, 9), at(4, 10))
        entries.create_manual(user_id, project.id, at(4, 11))

        with pytest.raises(ConflictError):
            entries.update(entry.id, user_id, end_time=None)

    def test_other_user_cannot_edit(self, entries, project, user_id, other_user_id):
        entry = entries.create_manual(user_id, project.id, at(4, 9), at(4, 10))

        with pytest.raises(NotFoundError):
            entries.update(entry.id, other_user_id, description="Mine now")


class TestDelete:
    def test_delete(self, entries, project, user_id, store):
        entry = entries.create_manual(user_id, project.id, at(4, 9), at(4, 10))

        entries.delete(entry.id, user_id)

        assert store.get_time_entry(entry.id) is None

    def test_invoiced_entry_forbidden(self, entries, project, user_id, store):
        """Deleting a linked entry fails and leaves it unchanged."""
        entry = entries.create_manual(user_id, project.id, at(4, 9), at(4, 10))
        linked = store.update_time_entry(entry.model_copy(update={"invoice_id": "inv-1"}))

        with pytest.raises(ForbiddenError, match="has been invoiced"):
            entries.delete(entry.id, user_id)

        assert store.get_time_entry(entry.id) == linked


class TestListEntries:
    @pytest.fixture
    def seeded(self, entries, project, user_id, store, client):
        from timeledger.models import Project

        second = store.add_project(
            Project(name="Other", client_id=client.id, hourly_rate=50, created_by_id=user_id)
        )
        entries.create_manual(user_id, project.id, at(3, 9), at(3, 10))
        entries.create_manual(user_id, project.id, at(4, 9), at(4, 10), billable=False)
        entries.create_manual(user_id, second.id, at(1, 9), at(1, 10))
        entries.create_manual(user_id, project.id, at(2, 23), at(3, 1))
        return second

    def test_quick_filter_this_week(self, entries, user_id, seeded):
        """The clock is Monday March 4th; the week started Sunday March 3rd."""
        found = entries.list_entries(user_id, quick_filter="this_week")

        assert [e.start_time.day for e in found] == [4, 3]

    def test_project_and_billable_filters(self, entries, user_id, project, seeded):
        found = entries.list_entries(user_id, project_id=project.id, billable=True)

        assert [e.start_time.day for e in found] == [3, 2]

    def test_client_filter(self, entries, user_id, client, seeded):
        assert len(entries.list_entries(user_id, client_id=client.id)) == 4
        assert entries.list_entries(user_id, client_id="nope") == []


class TestExpenses:
    def test_create_defaults_to_today(self, expenses, project, user_id, clock):
        expense = expenses.create(user_id, project.id, "Hosting", "25.00")

        assert expense.date == clock.today()
        assert expense.amount == Decimal("25.00")

    def test_invalid_expense_reports_every_field(self, expenses, project, user_id):
        with pytest.raises(ValidationError) as exc_info:
            expenses.create(user_id, project.id, " ", "-3")

        assert exc_info.value.fields == ["description", "amount"]

    def test_invoiced_expense_cannot_be_deleted(self, expenses, project, user_id, store):
        expense = expenses.create(user_id, project.id, "Hosting", 25)
        store.update_expense(expense.model_copy(update={"invoice_id": "inv-1"}))

        with pytest.raises(ForbiddenError):
            expenses.delete(expense.id, user_id)

        assert store.get_expense(expense.id) is not None

    def test_list_expenses(self, expenses, project, user_id):
        expenses.create(user_id, project.id, "A", 1, date=dt.date(2024, 3, 1))
        expenses.create(user_id, project.id, "B", 2, date=dt.date(2024, 3, 2))

        found = expenses.list_expenses(user_id, start_date=dt.date(2024, 3, 2))

        assert [e.description for e in found] == ["B"]
