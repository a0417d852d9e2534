from __future__ import annotations

import math
from dataclasses import dataclass

from domain.models import PensionGoal
from domain.schemas import FinancialSettings


@dataclass(frozen=True)
class FundProjection:
    future_value: float
    total_contributed: float
    total_returns: float


def required_monthly_contribution(target: float, years: int, annual_rate: float) -> float:
    """Monthly saving that compounds to `target` after `years` at `annual_rate`."""
    months = years * 12
    if months <= 0:
        return 0.0
    monthly_rate = annual_rate / 12
    if monthly_rate == 0:
        return target / months
    return target * (monthly_rate / ((1 + monthly_rate) ** months - 1))


def pension_fund_projection(contribution: float, years: int, annual_rate: float = 0.10) -> FundProjection:
    """Future value of contributions paid at the start of each month (annuity due)."""
    months = years * 12
    monthly_rate = annual_rate / 12
    if monthly_rate == 0:
        future_value = contribution * months
    else:
        future_value = contribution * (((1 + monthly_rate) ** months - 1) / monthly_rate) * (1 + monthly_rate)
    total = contribution * months
    return FundProjection(future_value=future_value, total_contributed=total, total_returns=future_value - total)


def pension_goal(settings: FinancialSettings) -> PensionGoal | None:
    target = settings.pension_target_amount
    years = settings.pension_target_years
    if target <= 0 or years <= 0:
        return None

    rate = settings.sp500_return_rate
    current = settings.pension_monthly_amount
    required = required_monthly_contribution(target, years, rate)
    gap = required - current
    extra_days = gap / settings.daily_rate if settings.daily_rate > 0 else 0.0
    fund = pension_fund_projection(current, years, rate)

    return PensionGoal(
        target_amount=target,
        target_years=years,
        expected_return_rate=rate,
        required_monthly_contribution=required,
        current_monthly_contribution=current,
        gap_monthly=max(0.0, gap),
        extra_work_days_needed=max(0, math.ceil(extra_days)),
        projected_final_amount=fund.future_value,
        total_contributions=fund.total_contributed,
        total_returns=fund.total_returns,
    )
