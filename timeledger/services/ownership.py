"""Lookups that resolve a row only if the caller owns it.

A row that exists but belongs to someone else is reported exactly like a
missing row, so callers cannot probe for other users' ids.
"""

from timeledger.errors import NotFoundError
from timeledger.models import Client, Expense, Invoice, Project, TimeEntry
from timeledger.stores.interface import LedgerStore


def require_project(store: LedgerStore, project_id: str, user_id: str) -> Project:
    project = store.get_project(project_id)
    if project is None or project.created_by_id != user_id:
        raise NotFoundError(
            f"Project {project_id} not found",
            recovery_hint="List your projects and check the project id",
        )
    return project


def require_client(store: LedgerStore, client_id: str, user_id: str) -> Client:
    client = store.get_client(client_id)
    if client is None or client.created_by_id != user_id:
        raise NotFoundError(
            f"Client {client_id} not found",
            recovery_hint="List your clients and check the client id",
        )
    return client


def require_time_entry(store: LedgerStore, entry_id: str, user_id: str) -> TimeEntry:
    entry = store.get_time_entry(entry_id)
    if entry is None or entry.user_id != user_id:
        raise NotFoundError(f"Time entry {entry_id} not found")
    return entry


def require_expense(store: LedgerStore, expense_id: str, user_id: str) -> Expense:
    expense = store.get_expense(expense_id)
    if expense is None or expense.user_id != user_id:
        raise NotFoundError(f"Expense {expense_id} not found")
    return expense


def require_invoice(
    store: LedgerStore, invoice_id: str, user_id: str, include_items: bool = True
) -> Invoice:
    invoice = store.get_invoice(invoice_id, include_items=include_items)
    if invoice is None or invoice.user_id != user_id:
        raise NotFoundError(f"Invoice {invoice_id} not found")
    return invoice
