"""
Freelancer work plan.

Starting from a balance (custom, trailing three-month carryover, or the real
banking balance), each forecast month adds the cash expected from invoices
and subtracts estimated spending, pension, family transfers and planned
one-off expenses. The running balance is translated into the number of
billable days needed at the configured daily rate.
"""
from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Callable, Sequence

from dateutil.relativedelta import relativedelta

from domain.models import (
    BudgetTransfer,
    ExpectedExpense,
    Expense,
    ExpenseClass,
    HistoricalMonth,
    HistoricalSummary,
    Invoice,
    InvoiceStatus,
    WorkPlan,
    WorkPlanMonth,
    WorkPlanStatus,
    WorkPlanSummary,
)
from domain.schemas import FinancialSettings
from forecasting.classifier import classify_expense, is_loan_payment, is_subscription, is_utility_bill
from forecasting.expected_expenses import expected_total_for_month
from forecasting.months import add_months, month_key, month_start, same_month
from forecasting.pension import pension_goal

DEFICIT_THRESHOLD = -100.0
SURPLUS_THRESHOLD = 500.0
TRAILING_MONTHS = 3

ExpenseFilter = Callable[[Expense], bool]


@dataclass(frozen=True)
class WorkPlanOptions:
    forecast_months: int = 12
    include_drafts: bool = False
    use_forecast_mode: bool = True


def is_fixed(expense: Expense) -> bool:
    return is_loan_payment(expense) or is_subscription(expense)


def is_variable(expense: Expense) -> bool:
    return classify_expense(expense) == ExpenseClass.VARIABLE


def _is_draft(invoice: Invoice) -> bool:
    return invoice.status == InvoiceStatus.BOZZA


def real_banking_balance(invoices: Sequence[Invoice], expenses: Sequence[Expense], today: date) -> float:
    """Everything cashed minus everything spent before the current month."""
    start = month_start(today)
    income = sum(
        inv.paid_amount
        for inv in invoices
        if not _is_draft(inv) and inv.paid_date is not None and inv.paid_date < start
    )
    spent = sum(exp.amount for exp in expenses if exp.date < start)
    return income - spent


def trailing_carryover(invoices: Sequence[Invoice], expenses: Sequence[Expense], today: date) -> float:
    """Net cash of the last three closed months, from actual payments and recorded expenses only."""
    balance = 0.0
    for offset in range(-TRAILING_MONTHS, 0):
        month = add_months(month_start(today), offset)
        income = sum(
            inv.paid_amount or inv.total_amount
            for inv in invoices
            if not _is_draft(inv) and inv.paid_date is not None and same_month(inv.paid_date, month)
        )
        spent = sum(exp.amount for exp in expenses if same_month(exp.date, month))
        balance += income - spent
    return balance


def _monthly_average(expenses: Sequence[Expense]) -> float:
    totals: dict[str, float] = defaultdict(float)
    for exp in expenses:
        totals[month_key(exp.date)] += exp.amount
    if not totals:
        return 0.0
    return sum(totals.values()) / len(totals)


def historical_average(expenses: Sequence[Expense], matches: ExpenseFilter, today: date) -> float:
    """Average monthly spend over the last three months, falling back to all history."""
    window_start = today - relativedelta(months=TRAILING_MONTHS)
    current = month_start(today)
    recent = [e for e in expenses if window_start <= e.date < current and matches(e)]
    if recent:
        return _monthly_average(recent)
    return _monthly_average([e for e in expenses if matches(e)])


def historical_months(invoices: Sequence[Invoice], daily_rate: float, today: date) -> dict[int, HistoricalMonth]:
    """Income of the past twelve months keyed by calendar month number."""
    since = today - relativedelta(years=1)
    by_month: dict[int, HistoricalMonth] = {}
    for inv in invoices:
        if _is_draft(inv) or not (since <= inv.invoice_date <= today):
            continue
        number = inv.invoice_date.month
        previous = by_month.get(number)
        total = (previous.total_income if previous else 0.0) + inv.total_amount
        year = inv.invoice_date.year
        if previous is not None and previous.year >= year:
            year, key = previous.year, previous.month_key
        else:
            key = month_key(inv.invoice_date)
        by_month[number] = HistoricalMonth(
            month_number=number,
            year=year,
            month_key=key,
            total_income=total,
            work_days=total / daily_rate if daily_rate > 0 else 0.0,
            invoice_count=(previous.invoice_count if previous else 0) + 1,
        )
    return by_month


def summarize_history(history: dict[int, HistoricalMonth]) -> HistoricalSummary:
    total_income = sum(h.total_income for h in history.values())
    total_days = sum(h.work_days for h in history.values())
    top = max(history.values(), key=lambda h: h.work_days, default=None)
    if top is not None and top.work_days <= 0:
        top = None
    return HistoricalSummary(
        total_income=total_income,
        total_work_days=round(total_days),
        average_work_days_per_month=round(total_days / 12) if history else 0,
        month_count=len(history),
        top_month=top.month_number if top else None,
        top_month_days=round(top.work_days) if top else 0,
        reference_year=max((h.year for h in history.values()), default=0),
    )


def starting_balance(
    settings: FinancialSettings,
    use_forecast_mode: bool,
    forecast_carryover: float,
    banking_balance: float,
) -> float:
    if settings.use_custom_initial_balance:
        return settings.initial_balance
    return forecast_carryover if use_forecast_mode else banking_balance


def _days(amount: float, rate: float, rounding: Callable[[float], int] = math.ceil) -> int:
    return rounding(amount / rate) if rate > 0 else 0


def _status(balance: float) -> WorkPlanStatus:
    if balance < DEFICIT_THRESHOLD:
        return WorkPlanStatus.DEFICIT
    if balance > SURPLUS_THRESHOLD:
        return WorkPlanStatus.SURPLUS
    return WorkPlanStatus.OK


def summarize_plan(months: Sequence[WorkPlanMonth]) -> WorkPlanSummary:
    deficits = [m for m in months if m.status == WorkPlanStatus.DEFICIT]
    lowest = min((m.cumulative_balance for m in months), default=0.0)
    first_expenses = months[0].total_expenses if months else 0.0
    return WorkPlanSummary(
        average_work_days=sum(m.work_days_needed for m in months) / len(months) if months else 0.0,
        total_deficit_months=len(deficits),
        total_surplus_months=sum(1 for m in months if m.status == WorkPlanStatus.SURPLUS),
        critical_months=tuple(m.month_key for m in deficits),
        annual_surplus=sum(m.balance for m in months if m.balance > 0),
        annual_deficit=sum(abs(m.balance) for m in months if m.balance < 0),
        final_balance=months[-1].cumulative_balance if months else 0.0,
        recommended_buffer=max(abs(lowest) if lowest < 0 else 0.0, first_expenses * 2),
    )


def build_work_plan(
    invoices: Sequence[Invoice],
    expenses: Sequence[Expense],
    transfers: Sequence[BudgetTransfer] = (),
    expected_expenses: Sequence[ExpectedExpense] = (),
    settings: FinancialSettings | None = None,
    options: WorkPlanOptions | None = None,
    today: date | None = None,
) -> WorkPlan:
    settings = settings or FinancialSettings()
    options = options or WorkPlanOptions()
    today = today or date.today()
    rate = settings.daily_rate

    banking = real_banking_balance(invoices, expenses, today)
    trailing = trailing_carryover(invoices, expenses, today)
    opening = starting_balance(settings, options.use_forecast_mode, trailing, banking)
    history = historical_months(invoices, rate, today)

    filters: tuple[ExpenseFilter, ExpenseFilter, ExpenseFilter] = (is_fixed, is_variable, is_utility_bill)
    averages = [historical_average(expenses, f, today) for f in filters]
    estimates = [settings.estimated_fixed_costs, settings.estimated_variable_costs, settings.estimated_bills_costs]

    months: list[WorkPlanMonth] = []
    running = opening
    for i in range(options.forecast_months):
        month = add_months(month_start(today), i)
        key = month_key(month)
        carryover = running

        cash_in_from_due = sum(
            inv.remaining_amount or inv.total_amount
            for inv in invoices
            if inv.status not in (InvoiceStatus.BOZZA, InvoiceStatus.PAGATA) and same_month(inv.due_date, month)
        )
        paid_this_month = 0.0
        if i == 0:
            paid_this_month = sum(
                inv.paid_amount
                for inv in invoices
                if not _is_draft(inv) and inv.paid_date is not None and same_month(inv.paid_date, month)
            )
        draft_income = 0.0
        planned_work = 0.0
        if options.include_drafts:
            draft_income = sum(inv.total_amount for inv in invoices if _is_draft(inv) and same_month(inv.due_date, month))
            planned_work = sum(
                inv.total_amount for inv in invoices if _is_draft(inv) and same_month(inv.invoice_date, month)
            )
        income = cash_in_from_due + paid_this_month + draft_income
        invoices_worked = sum(inv.total_amount for inv in invoices if same_month(inv.invoice_date, month))

        this_month = [e for e in expenses if same_month(e.date, month)]
        actuals = [sum(e.amount for e in this_month if f(e)) for f in filters]
        if settings.use_manual_estimates:
            chosen = list(estimates)
        elif i > 0:
            chosen = list(averages)
        else:
            chosen = [actual if actual > 0 else avg for actual, avg in zip(actuals, averages)]
        fixed, variable, bills = chosen

        pension = settings.pension_monthly_amount
        family = sum(t.amount for t in transfers if t.month == key)
        planned = expected_total_for_month(expected_expenses, key)
        extras = pension + family + planned
        total = fixed + variable + bills + extras

        balance = income - total
        running = carryover + balance

        needed = _days(total, rate)
        from_income = _days(income, rate, math.floor)
        deficit_days = _days(abs(carryover), rate) if carryover < 0 else 0
        status = _status(running)

        past = history.get(month.month)
        past_days = past.work_days if past else 0.0
        months.append(
            WorkPlanMonth(
                month=month,
                month_key=key,
                carryover=carryover,
                cash_in_from_due=cash_in_from_due,
                draft_income=draft_income,
                planned_work=planned_work,
                expected_income=income,
                invoices_worked=invoices_worked,
                fixed_expenses=fixed,
                variable_expenses=variable,
                bill_expenses=bills,
                pension_contribution=pension,
                family_transfers=family,
                expected_expenses=planned,
                total_expenses=total,
                estimated_expenses=sum(estimates) + extras,
                actual_expenses=sum(actuals) + extras,
                balance=balance,
                cumulative_balance=running,
                work_days_needed=needed,
                work_days_extra=max(0, needed - from_income + deficit_days),
                status=status,
                deficit_amount=abs(running) if status == WorkPlanStatus.DEFICIT else 0.0,
                surplus_amount=running if status == WorkPlanStatus.SURPLUS else 0.0,
                historical_work_days=round(past_days),
                historical_income=past.total_income if past else 0.0,
                historical_month_key=past.month_key if past else "",
                work_days_difference=round(past_days - needed),
            )
        )

    return WorkPlan(
        months=tuple(months),
        summary=summarize_plan(months),
        pension_goal=pension_goal(settings),
        historical_summary=summarize_history(history),
        starting_balance=opening,
        real_banking_balance=banking,
        forecast_carryover=trailing,
        use_forecast_mode=options.use_forecast_mode,
        settings=settings.model_dump(mode="json"),
    )
