from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from domain.models import AccumulatedBudget, BudgetTransfer, TransferDirection


def _matches(transfer: BudgetTransfer, user_id: str, direction: TransferDirection) -> bool:
    if direction == TransferDirection.SENT:
        return transfer.from_user_id == user_id
    return transfer.to_user_id == user_id


def transfers_for_month(
    transfers: Iterable[BudgetTransfer],
    user_id: str,
    month: str,
    direction: TransferDirection = TransferDirection.RECEIVED,
) -> list[BudgetTransfer]:
    return [t for t in transfers if t.month == month and _matches(t, user_id, direction)]


def total_transferred_for_month(
    transfers: Iterable[BudgetTransfer],
    user_id: str,
    month: str,
    direction: TransferDirection = TransferDirection.RECEIVED,
) -> float:
    return sum(t.amount for t in transfers_for_month(transfers, user_id, month, direction))


def accumulate_budget(
    transfers: Sequence[BudgetTransfer],
    user_id: str,
    target_month: str,
    direction: TransferDirection = TransferDirection.RECEIVED,
    expenses_by_month: Mapping[str, float] | None = None,
) -> AccumulatedBudget:
    """
    Running budget up to and including `target_month`.

    Each month adds the transfers in `direction` and subtracts that month's
    spending. `carryover` is the balance entering the target month; unlike the
    monthly budget engine it is not floored, so past overspending shows up as
    a negative carryover.
    """
    spent = expenses_by_month or {}
    months = sorted({t.month for t in transfers} | set(spent))

    running = 0.0
    carryover = 0.0
    has_negative_history = False
    for month in months:
        if month > target_month:
            break
        running += total_transferred_for_month(transfers, user_id, month, direction) - spent.get(month, 0.0)
        if running < 0:
            has_negative_history = True
        if month < target_month:
            carryover = running

    return AccumulatedBudget(remaining=running, carryover=carryover, has_negative_history=has_negative_history)
