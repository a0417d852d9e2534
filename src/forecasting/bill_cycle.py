from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable, Sequence

from domain.models import (
    UNKNOWN_PROVIDER,
    BillDetail,
    BillType,
    Expense,
    MonthlyBillForecast,
    ProviderForecast,
)
from forecasting.months import add_months, month_key, month_start

DEFAULT_FREQUENCY_MONTHS = 2


def billing_frequency_months(bill: Expense) -> int:
    """Months between two bills, inferred from the billed period length."""
    if bill.bill_period_start is None or bill.bill_period_end is None:
        # Italian utilities bill bimonthly when nothing says otherwise.
        return DEFAULT_FREQUENCY_MONTHS
    days = (bill.bill_period_end - bill.bill_period_start).days
    if days <= 35:
        return 1
    if days <= 65:
        return 2
    if days <= 95:
        return 3
    if days <= 190:
        return 6
    return 12


def paid_bills(expenses: Iterable[Expense]) -> list[Expense]:
    return [e for e in expenses if e.bill_type is not None and e.is_paid is True]


def pending_bills(expenses: Iterable[Expense]) -> list[Expense]:
    return [e for e in expenses if e.bill_type is not None and e.is_paid is False]


def estimate_provider_forecasts(
    expenses: Iterable[Expense],
    today: date,
    forecast_months: int = 12,
) -> list[ProviderForecast]:
    groups: dict[tuple[BillType, str], list[Expense]] = defaultdict(list)
    for bill in paid_bills(expenses):
        groups[(bill.bill_type, bill.bill_provider or UNKNOWN_PROVIDER)].append(bill)

    horizon_end = add_months(month_start(today), forecast_months)
    forecasts: list[ProviderForecast] = []
    for (bill_type, provider), bills in groups.items():
        latest = max(bills, key=lambda b: b.date)
        frequency = billing_frequency_months(latest)

        next_dates: list[date] = []
        cursor = add_months(month_start(latest.date), frequency)
        while cursor <= horizon_end:
            next_dates.append(cursor)
            cursor = add_months(cursor, frequency)

        forecasts.append(
            ProviderForecast(
                bill_type=bill_type,
                provider=provider,
                avg_amount=sum(b.amount for b in bills) / len(bills),
                billing_frequency_months=frequency,
                last_bill_date=latest.date,
                next_bill_dates=tuple(next_dates),
                count=len(bills),
            )
        )
    return forecasts


def has_actual_bill(details: Sequence[BillDetail], provider: str, bill_type: BillType) -> bool:
    return any(d.provider == provider and d.bill_type == bill_type and not d.is_forecast for d in details)


def forecast_lands_in(forecast: ProviderForecast, key: str) -> bool:
    return any(month_key(d) == key for d in forecast.next_bill_dates)


def monthly_bill_forecast(
    expenses: Sequence[Expense],
    today: date,
    forecast_months: int = 12,
    forecasts: Sequence[ProviderForecast] | None = None,
) -> list[MonthlyBillForecast]:
    """Per month from the current one: actual and pending bills, plus projections where no actual exists."""
    if forecasts is None:
        forecasts = estimate_provider_forecasts(expenses, today, forecast_months)
    paid = paid_bills(expenses)
    pending = pending_bills(expenses)
    current = month_start(today)

    result: list[MonthlyBillForecast] = []
    for i in range(forecast_months):
        month = add_months(current, i)
        key = month_key(month)
        bills: list[BillDetail] = []
        for bill, actual in [(b, True) for b in paid] + [(b, False) for b in pending]:
            if month_key(bill.date) == key:
                bills.append(
                    BillDetail(
                        provider=bill.bill_provider or UNKNOWN_PROVIDER,
                        bill_type=bill.bill_type,
                        amount=bill.amount,
                        is_forecast=False,
                        is_actual=actual,
                    )
                )
        for forecast in forecasts:
            if forecast_lands_in(forecast, key) and not has_actual_bill(bills, forecast.provider, forecast.bill_type):
                bills.append(
                    BillDetail(
                        provider=forecast.provider,
                        bill_type=forecast.bill_type,
                        amount=forecast.avg_amount,
                        is_forecast=True,
                    )
                )
        result.append(
            MonthlyBillForecast(
                month=month,
                month_key=key,
                total_estimated=sum(b.amount for b in bills),
                bills=tuple(bills),
            )
        )
    return result


def average_monthly_bill_estimate(months: Sequence[MonthlyBillForecast]) -> float:
    """Mean monthly bill outlay over the window, zero when nothing is projected."""
    if not months or not any(b.is_forecast for m in months for b in m.bills):
        return 0.0
    return sum(m.total_estimated for m in months) / len(months)


def total_bill_estimate(forecasts: Iterable[ProviderForecast]) -> float:
    return sum(f.avg_amount / f.billing_frequency_months for f in forecasts)
