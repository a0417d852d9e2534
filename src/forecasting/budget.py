from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Sequence

from domain.models import (
    UNKNOWN_PROVIDER,
    BillDetail,
    BudgetForecast,
    BudgetMonthSummary,
    BudgetTransfer,
    Expense,
    ExpenseClass,
    Household,
    Invoice,
    InvoiceStatus,
    LegacyCategory,
    OverspendAllocation,
    PaymentMethod,
    ProviderForecast,
)
from domain.utility_providers import DEFAULT_REGISTRY, ProviderRegistry
from forecasting.bill_cycle import (
    estimate_provider_forecasts,
    has_actual_bill,
    paid_bills,
    pending_bills,
    total_bill_estimate,
)
from forecasting.classifier import classify_expense, is_utility_bill
from forecasting.credit_card import booked_date_for
from forecasting.ledger import project_ledger
from forecasting.months import month_key, month_start, month_window


@dataclass(frozen=True)
class ForecastOptions:
    horizon_months: int = 3
    forecast_months: int = 12
    past_months: int = 0
    already_spent: float = 0.0
    family_transfers: tuple[BudgetTransfer, ...] = ()
    is_secondary: bool = False
    household: Household = field(default_factory=Household)
    registry: ProviderRegistry = DEFAULT_REGISTRY


@dataclass
class MonthBucket:
    """Mutable per-month accumulator, filled while bucketing and then read once."""

    month: date
    key: str
    is_past: bool
    expected_income: float = 0.0
    received_income: float = 0.0
    fixed_expenses: float = 0.0
    variable_expenses: float = 0.0
    credit_card_expenses: float = 0.0
    bill_expenses: float = 0.0
    bill_details: list[BillDetail] = field(default_factory=list)

    @property
    def total_expenses(self) -> float:
        return self.fixed_expenses + self.variable_expenses + self.credit_card_expenses + self.bill_expenses

    @property
    def forecast_income(self) -> float:
        return self.received_income + self.expected_income

    @property
    def raw_balance(self) -> float:
        return self.received_income - self.total_expenses


def _add_income(buckets: dict[str, MonthBucket], when: date, amount: float, expected: bool = False) -> None:
    bucket = buckets.get(month_key(when))
    if bucket is None:
        return
    if expected:
        bucket.expected_income += amount
    else:
        bucket.received_income += amount


def bucket_invoices(buckets: dict[str, MonthBucket], invoices: Iterable[Invoice]) -> None:
    for invoice in invoices:
        if invoice.exclude_from_budget:
            continue
        if invoice.status == InvoiceStatus.PAGATA:
            _add_income(buckets, invoice.paid_date or invoice.due_date, invoice.total_amount)
            continue
        if invoice.paid_amount > 0:
            _add_income(buckets, invoice.paid_date or invoice.invoice_date, invoice.paid_amount)
        _add_income(buckets, invoice.due_date, invoice.remaining_amount, expected=True)


def bucket_transfers(buckets: dict[str, MonthBucket], transfers: Iterable[BudgetTransfer]) -> None:
    for transfer in transfers:
        bucket = buckets.get(transfer.month)
        if bucket is not None:
            bucket.received_income += transfer.amount


def is_visible(expense: Expense, options: ForecastOptions) -> bool:
    if options.is_secondary:
        return expense.paid_by == options.household.own_payer
    return expense.paid_by not in options.household.secondary_payers


def bucket_expenses(buckets: dict[str, MonthBucket], expenses: Iterable[Expense], options: ForecastOptions) -> None:
    for expense in expenses:
        is_card = expense.payment_method == PaymentMethod.CARTA_CREDITO or expense.category == LegacyCategory.CARTA_CREDITO
        is_bill = expense.bill_type is not None or is_utility_bill(expense, options.registry)
        # Bills are merged separately, unless they went on the card.
        if is_bill and not is_card:
            continue
        if not is_visible(expense, options):
            continue

        expense_class = classify_expense(expense, options.registry)
        fixed = expense_class in (ExpenseClass.FIXED_LOAN, ExpenseClass.FIXED_SUB)

        if expense_class == ExpenseClass.CREDIT_CARD:
            bucket = buckets.get(month_key(booked_date_for(expense)))
            if bucket is not None:
                bucket.credit_card_expenses += expense.amount
        elif fixed and expense.recurring:
            for bucket in buckets.values():
                if not bucket.is_past:
                    bucket.fixed_expenses += expense.amount
        else:
            bucket = buckets.get(month_key(expense.effective_date))
            if bucket is None:
                continue
            if fixed:
                bucket.fixed_expenses += expense.amount
            else:
                bucket.variable_expenses += expense.amount


def merge_bills(
    buckets: dict[str, MonthBucket],
    expenses: Sequence[Expense],
    forecasts: Sequence[ProviderForecast],
) -> None:
    for bill in paid_bills(expenses) + pending_bills(expenses):
        bucket = buckets.get(month_key(bill.date))
        if bucket is None:
            continue
        bucket.bill_expenses += bill.amount
        bucket.bill_details.append(
            BillDetail(
                provider=bill.bill_provider or UNKNOWN_PROVIDER,
                bill_type=bill.bill_type,
                amount=bill.amount,
                is_forecast=False,
                is_actual=bool(bill.is_paid),
            )
        )

    for forecast in forecasts:
        for when in forecast.next_bill_dates:
            bucket = buckets.get(month_key(when))
            if bucket is None or bucket.is_past:
                continue
            if has_actual_bill(bucket.bill_details, forecast.provider, forecast.bill_type):
                continue
            bucket.bill_expenses += forecast.avg_amount
            bucket.bill_details.append(
                BillDetail(
                    provider=forecast.provider,
                    bill_type=forecast.bill_type,
                    amount=forecast.avg_amount,
                    is_forecast=True,
                )
            )


def split_overspend(
    overspend: float,
    start_index: int,
    rows: Sequence[MonthBucket],
    horizon: int,
) -> list[OverspendAllocation]:
    """Spread a deficit over the next `horizon` months, weighted by their received income."""
    if not overspend > 0:
        return []
    following = rows[start_index + 1 : start_index + 1 + horizon]
    if not following:
        return [OverspendAllocation(month=rows[start_index].key, amount=overspend)]

    total_income = sum(r.received_income for r in following)
    allocations: list[OverspendAllocation] = []
    remaining = overspend
    for idx, row in enumerate(following):
        if idx == len(following) - 1:
            amount = remaining
        elif total_income == 0:
            amount = round(overspend / len(following), 2)
        else:
            amount = round(overspend * row.received_income / total_income, 2)
        allocations.append(OverspendAllocation(month=row.key, amount=amount))
        remaining -= amount
    return allocations


def overspend_by_month(rows: Sequence[MonthBucket], horizon: int) -> dict[str, float]:
    totals: dict[str, float] = {}
    last = len(rows) - 1
    for idx, row in enumerate(rows):
        if row.raw_balance < 0 and idx < last and not row.is_past:
            for alloc in split_overspend(abs(row.raw_balance), idx, rows, horizon):
                totals[alloc.month] = totals.get(alloc.month, 0.0) + alloc.amount
    return totals


def build_buckets(
    invoices: Sequence[Invoice],
    expenses: Sequence[Expense],
    options: ForecastOptions,
    today: date,
    forecasts: Sequence[ProviderForecast] = (),
) -> list[MonthBucket]:
    current = month_start(today)
    rows = [
        MonthBucket(month=m, key=month_key(m), is_past=m < current)
        for m in month_window(today, options.past_months, options.forecast_months)
    ]
    buckets = {row.key: row for row in rows}
    if not options.is_secondary:
        bucket_invoices(buckets, invoices)
    else:
        bucket_transfers(buckets, options.family_transfers)
    bucket_expenses(buckets, expenses, options)
    merge_bills(buckets, expenses, forecasts)
    return rows


def forecast_budget(
    invoices: Sequence[Invoice],
    expenses: Sequence[Expense],
    options: ForecastOptions | None = None,
    today: date | None = None,
) -> BudgetForecast:
    options = options or ForecastOptions()
    today = today or date.today()
    current = month_start(today)

    forecasts = estimate_provider_forecasts(expenses, today, options.forecast_months)
    rows = build_buckets(invoices, expenses, options, today, forecasts)
    overspend = overspend_by_month(rows, options.horizon_months)
    savings_enabled = not options.is_secondary

    def expenses_of(row: MonthBucket) -> float:
        return row.total_expenses

    def overspend_of(row: MonthBucket) -> float:
        return overspend.get(row.key, 0.0)

    real = project_ledger(rows, lambda r: r.received_income, expenses_of, overspend_of, savings_enabled)
    projected = project_ledger(rows, lambda r: r.forecast_income, expenses_of, overspend_of, savings_enabled)

    summaries: list[BudgetMonthSummary] = []
    accumulated = 0.0
    for row, real_step, forecast_step in zip(rows, real, projected):
        is_current = row.month == current
        is_future = row.month > current
        shown = forecast_step if is_future else real_step
        accumulated += shown.savings
        spent_now = options.already_spent if is_current else 0.0
        real_spendable = real_step.balance_after_savings - spent_now
        forecast_spendable = forecast_step.balance_after_savings - spent_now
        spendable = forecast_spendable if is_future else real_spendable

        summaries.append(
            BudgetMonthSummary(
                month=row.month,
                month_key=row.key,
                expected_income=row.expected_income,
                received_income=row.received_income,
                total_income=row.expected_income + row.received_income,
                available_income=row.received_income + real_step.carryover_in,
                fixed_expenses=row.fixed_expenses,
                variable_expenses=row.variable_expenses,
                credit_card_expenses=row.credit_card_expenses,
                bill_expenses=row.bill_expenses,
                total_expenses=row.total_expenses,
                carryover=shown.carryover_in,
                overspend_allocated=overspend_of(row),
                savings_monthly=shown.savings,
                savings_accumulated=accumulated,
                applied_savings_rate=shown.savings_rate,
                already_spent=spent_now,
                spendable=spendable,
                real_spendable=real_spendable,
                forecast_spendable=forecast_spendable,
                balance=spendable,
                pending_income=row.expected_income,
                is_estimated_bills=any(d.is_forecast for d in row.bill_details),
                is_current_month=is_current,
                is_past_month=row.is_past,
                bill_details=tuple(row.bill_details),
            )
        )

    current_idx = next((i for i, s in enumerate(summaries) if s.is_current_month), -1)
    current_summary = summaries[current_idx] if current_idx >= 0 else None
    return BudgetForecast(
        summaries=tuple(summaries),
        current_month=current_summary,
        future_months=tuple(summaries[current_idx + 1 :]) if current_idx >= 0 else (),
        past_months=tuple(summaries[:current_idx]) if current_idx >= 0 else (),
        provider_forecasts=tuple(forecasts),
        total_bill_estimate=total_bill_estimate(forecasts),
    )
