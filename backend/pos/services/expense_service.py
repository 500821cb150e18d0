# Overview: Service-layer operations for expenses; the list is kept newest first.

from __future__ import annotations

from datetime import timezone, tzinfo

from ..models import Expense
from ..models.records import EXPENSE_CATEGORIES
from ..validation import NotFoundError
from pos.time_utils import today
from .store_service import DataStore, generate_id

EXPENSE_MUTABLE_FIELDS = {"category", "description", "amount", "date"}


class ExpenseError(Exception):
    """Raised for expense operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _check_amount(amount) -> None:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ExpenseError("Amount must be a number", details={"amount": amount})
    if amount < 0:
        raise ExpenseError("Amount must be >= 0", details={"amount": amount})


def list_expenses(store: DataStore, category: str | None = None) -> list[Expense]:
    expenses = store.expenses()
    if category:
        expenses = [e for e in expenses if e.category == category]
    return expenses


def create_expense(store: DataStore, *, patch: dict, zone: tzinfo = timezone.utc) -> Expense:
    """
    Record an expense at the head of the list.

    Category falls back to "other" and date to today's calendar day. Free-text
    categories are accepted; EXPENSE_CATEGORIES is what the UI offers.
    """
    amount = patch.get("amount")
    _check_amount(amount)

    expense = Expense(
        id=generate_id("exp"),
        category=patch.get("category") or "other",
        description=patch.get("description") or "",
        amount=amount,
        date=patch.get("date") or today(zone).isoformat(),
    )
    expenses = store.expenses()
    expenses.insert(0, expense)
    store.save_expenses(expenses)
    return expense


def update_expense(store: DataStore, expense_id: str, *, patch: dict) -> Expense:
    expenses = store.expenses()
    expense = next((e for e in expenses if e.id == expense_id), None)
    if expense is None:
        raise NotFoundError("Expense not found")

    for k, v in patch.items():
        if k not in EXPENSE_MUTABLE_FIELDS:
            continue
        if k == "amount":
            _check_amount(v)
        if k == "category":
            v = v or "other"
        if k == "description":
            v = v or ""
        if k == "date" and not v:
            continue
        setattr(expense, k, v)

    store.save_expenses(expenses)
    return expense


def delete_expense(store: DataStore, expense_id: str) -> bool:
    expenses = store.expenses()
    remaining = [e for e in expenses if e.id != expense_id]
    if len(remaining) == len(expenses):
        return False
    store.save_expenses(remaining)
    return True


def category_choices() -> list[str]:
    return list(EXPENSE_CATEGORIES)
