from __future__ import annotations

from datetime import date

from domain.models import Expense, PaymentMethod
from forecasting.months import add_months, month_start

STATEMENT_DAY = 10


def credit_card_booked_date(purchase: date) -> date:
    """Statement date for a card purchase: day 10 of the following month."""
    return add_months(month_start(purchase), 1).replace(day=STATEMENT_DAY)


def booked_date_for(expense: Expense) -> date:
    return credit_card_booked_date(expense.purchase_date or expense.date)


def is_credit_card_booked(expense: Expense, today: date) -> bool:
    if expense.payment_method != PaymentMethod.CARTA_CREDITO:
        return True
    booked = expense.booked_date or credit_card_booked_date(expense.date)
    return today >= booked
