"""
Carryover ledger shared by the real and forecast budget tracks.

One month of a track is a pure step over an immutable `LedgerState`:

    before  = income + carryover - expenses - overspend_allocated
    savings = round(before * rate(before), 2)      (rate 0 when savings are off)
    after   = before - max(savings, 0)
    next carryover = max(0, after)

`project_ledger` folds that step over the month rows. The two tracks differ
only in which income they read, so the caller passes an income selector.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, TypeVar

Row = TypeVar("Row")

# (upper bound exclusive, rate); balances at or above the last bound save 20%.
SAVINGS_TIERS: tuple[tuple[float, float], ...] = (
    (2000.0, 0.0),
    (3000.0, 0.10),
    (4000.0, 0.15),
)
TOP_SAVINGS_RATE = 0.20


def dynamic_savings_rate(balance: float) -> float:
    for bound, rate in SAVINGS_TIERS:
        if balance < bound:
            return rate
    return TOP_SAVINGS_RATE


@dataclass(frozen=True)
class LedgerState:
    carryover: float = 0.0
    savings_accumulated: float = 0.0


@dataclass(frozen=True)
class LedgerStep:
    carryover_in: float
    balance_before_savings: float
    savings_rate: float
    savings: float
    balance_after_savings: float
    state: LedgerState

    @property
    def carryover_out(self) -> float:
        return self.state.carryover


@dataclass(frozen=True)
class LedgerInputs:
    income: float
    expenses: float
    overspend_allocated: float = 0.0


def ledger_step(state: LedgerState, inputs: LedgerInputs, savings_enabled: bool = True) -> LedgerStep:
    before = inputs.income + state.carryover - inputs.expenses - inputs.overspend_allocated
    rate = dynamic_savings_rate(before) if savings_enabled else 0.0
    savings = round(before * rate, 2) if savings_enabled else 0.0
    kept = savings if savings > 0 else 0.0
    after = before - kept
    return LedgerStep(
        carryover_in=state.carryover,
        balance_before_savings=before,
        savings_rate=rate,
        savings=kept,
        balance_after_savings=after,
        state=LedgerState(
            carryover=after if after > 0 else 0.0,
            savings_accumulated=state.savings_accumulated + kept,
        ),
    )


def project_ledger(
    rows: Sequence[Row],
    income_of: Callable[[Row], float],
    expenses_of: Callable[[Row], float],
    overspend_of: Callable[[Row], float] = lambda _row: 0.0,
    savings_enabled: bool = True,
    initial: LedgerState | None = None,
) -> list[LedgerStep]:
    steps: list[LedgerStep] = []
    state = initial or LedgerState()
    for row in rows:
        inputs = LedgerInputs(income=income_of(row), expenses=expenses_of(row), overspend_allocated=overspend_of(row))
        step = ledger_step(state, inputs, savings_enabled)
        steps.append(step)
        state = step.state
    return steps
