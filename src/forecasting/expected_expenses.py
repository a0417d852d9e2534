from __future__ import annotations

from typing import Iterable

from domain.models import ExpectedExpense, ExpectedExpenseKind
from forecasting.months import month_key, month_start, months_between, parse_month_key


def falls_in_month(expense: ExpectedExpense, key: str) -> bool:
    if expense.kind == ExpectedExpenseKind.UNA_TANTUM:
        return month_key(expense.expected_date) == key and not expense.is_completed
    if not expense.recurrence_months:
        return False
    start = month_start(expense.expected_date)
    month = parse_month_key(key)
    if month < start:
        return False
    return months_between(start, month) % expense.recurrence_months == 0


def expected_for_month(expenses: Iterable[ExpectedExpense], key: str) -> list[ExpectedExpense]:
    return [e for e in expenses if falls_in_month(e, key)]


def expected_total_for_month(expenses: Iterable[ExpectedExpense], key: str) -> float:
    return sum(e.amount for e in expected_for_month(expenses, key))
