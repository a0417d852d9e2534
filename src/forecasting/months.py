from __future__ import annotations

from datetime import date

from dateutil.relativedelta import relativedelta


def month_start(value: date) -> date:
    return value.replace(day=1)


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def add_months(value: date, months: int) -> date:
    return value + relativedelta(months=months)


def parse_month_key(key: str) -> date:
    year, month = key.split("-")
    return date(int(year), int(month), 1)


def same_month(a: date, b: date) -> bool:
    return a.year == b.year and a.month == b.month


def month_window(today: date, past_months: int, forecast_months: int) -> list[date]:
    """Month starts from `past_months` back to `forecast_months - 1` ahead of today's month."""
    current = month_start(today)
    months = [add_months(current, -i) for i in range(past_months, 0, -1)]
    months.extend(add_months(current, i) for i in range(forecast_months))
    return months


def months_between(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)
