from __future__ import annotations

import unittest
from datetime import date

from domain.models import (
    BudgetTransfer,
    ExpectedExpense,
    ExpectedExpenseKind,
    Expense,
    Invoice,
    InvoiceStatus,
    WorkPlanStatus,
)
from domain.schemas import FinancialSettings
from forecasting.expected_expenses import expected_total_for_month, falls_in_month
from forecasting.pension import pension_fund_projection, pension_goal, required_monthly_contribution
from forecasting.work_plan import WorkPlanOptions, build_work_plan

TODAY = date(2024, 3, 10)


def _settings(**overrides) -> FinancialSettings:
    base = {"daily_rate": 500.0, "use_manual_estimates": True}
    return FinancialSettings(**{**base, **overrides})


class WorkPlanTests(unittest.TestCase):
    def test_statuses_and_summary(self) -> None:
        settings = _settings(estimated_fixed_costs=1000.0, use_custom_initial_balance=True, initial_balance=1500.0)
        plan = build_work_plan([], [], settings=settings, options=WorkPlanOptions(forecast_months=3), today=TODAY)
        march, april, may = plan.months

        self.assertEqual([m.month_key for m in plan.months], ["2024-03", "2024-04", "2024-05"])
        self.assertEqual(plan.starting_balance, 1500.0)
        self.assertEqual(march.status, WorkPlanStatus.OK)
        self.assertAlmostEqual(march.cumulative_balance, 500.0)
        self.assertEqual(march.work_days_needed, 2)
        self.assertEqual(april.status, WorkPlanStatus.DEFICIT)
        self.assertAlmostEqual(april.deficit_amount, 500.0)
        self.assertEqual(may.work_days_extra, 3)

        summary = plan.summary
        self.assertEqual(summary.total_deficit_months, 2)
        self.assertEqual(summary.critical_months, ("2024-04", "2024-05"))
        self.assertAlmostEqual(summary.final_balance, -1500.0)
        self.assertAlmostEqual(summary.annual_deficit, 3000.0)
        self.assertAlmostEqual(summary.recommended_buffer, 2000.0)
        self.assertAlmostEqual(summary.average_work_days, 2.0)
        self.assertIsNone(plan.pension_goal)

    def test_surplus_month(self) -> None:
        settings = _settings(use_custom_initial_balance=True, initial_balance=2000.0)
        plan = build_work_plan([], [], settings=settings, options=WorkPlanOptions(forecast_months=1), today=TODAY)

        self.assertEqual(plan.months[0].status, WorkPlanStatus.SURPLUS)
        self.assertAlmostEqual(plan.months[0].surplus_amount, 2000.0)
        self.assertEqual(plan.summary.total_surplus_months, 1)

    def test_due_invoices_transfers_and_planned_expenses(self) -> None:
        invoices = [
            Invoice(id="i1", status=InvoiceStatus.INVIATA, invoice_date=date(2024, 2, 15),
                    due_date=date(2024, 4, 15), total_amount=3000.0),
        ]
        transfers = [BudgetTransfer(id="t1", from_user_id="u1", to_user_id="u2", amount=300.0, month="2024-04")]
        expected = [
            ExpectedExpense(id="x1", description="Assicurazione", amount=250.0, expected_date=date(2024, 3, 15),
                            kind=ExpectedExpenseKind.RICORRENTE, recurrence_months=3),
        ]
        plan = build_work_plan(invoices, [], transfers, expected, settings=_settings(),
                               options=WorkPlanOptions(forecast_months=4), today=TODAY)
        months = {m.month_key: m for m in plan.months}

        self.assertAlmostEqual(months["2024-04"].cash_in_from_due, 3000.0)
        self.assertAlmostEqual(months["2024-04"].family_transfers, 300.0)
        self.assertEqual([months[k].expected_expenses for k in ("2024-03", "2024-04", "2024-05", "2024-06")],
                         [250.0, 0.0, 0.0, 250.0])
        self.assertEqual(plan.historical_summary.top_month, 2)
        self.assertEqual(plan.historical_summary.total_work_days, 6)
        self.assertEqual(months["2024-04"].historical_work_days, 0)

    def test_starting_balance_modes(self) -> None:
        invoices = [
            Invoice(id="i1", status=InvoiceStatus.PAGATA, invoice_date=date(2024, 2, 10), due_date=date(2024, 2, 10),
                    total_amount=1000.0, paid_amount=1000.0, paid_date=date(2024, 2, 10)),
        ]
        expenses = [
            Expense(id="e1", description="Supermercato", amount=300.0, date=date(2024, 2, 12)),
            Expense(id="e2", description="Supermercato", amount=200.0, date=date(2023, 10, 5)),
        ]
        forecast_mode = build_work_plan(invoices, expenses, settings=_settings(),
                                        options=WorkPlanOptions(forecast_months=1), today=TODAY)
        banking_mode = build_work_plan(invoices, expenses, settings=_settings(),
                                       options=WorkPlanOptions(forecast_months=1, use_forecast_mode=False), today=TODAY)

        self.assertAlmostEqual(forecast_mode.forecast_carryover, 700.0)
        self.assertAlmostEqual(forecast_mode.real_banking_balance, 500.0)
        self.assertAlmostEqual(forecast_mode.starting_balance, 700.0)
        self.assertAlmostEqual(banking_mode.starting_balance, 500.0)

    def test_historical_averages_replace_manual_estimates(self) -> None:
        history = [
            Expense(id="e1", description="Supermercato", amount=300.0, date=date(2024, 1, 12)),
            Expense(id="e2", description="Supermercato", amount=500.0, date=date(2024, 2, 8)),
        ]
        current = Expense(id="e3", description="Supermercato", amount=100.0, date=date(2024, 3, 4))
        settings = _settings(use_manual_estimates=False, estimated_variable_costs=9999.0)
        options = WorkPlanOptions(forecast_months=2)

        with_actual = build_work_plan([], [*history, current], settings=settings, options=options, today=TODAY)
        without_actual = build_work_plan([], history, settings=settings, options=options, today=TODAY)

        march, april = with_actual.months
        self.assertAlmostEqual(march.variable_expenses, 100.0)
        self.assertAlmostEqual(april.variable_expenses, 400.0)
        self.assertAlmostEqual(without_actual.months[0].variable_expenses, 400.0)
        self.assertAlmostEqual(march.fixed_expenses, 0.0)
        self.assertAlmostEqual(march.bill_expenses, 0.0)

    def test_empty_history_has_no_top_month(self) -> None:
        plan = build_work_plan([], [], settings=_settings(), options=WorkPlanOptions(forecast_months=1), today=TODAY)
        self.assertIsNone(plan.historical_summary.top_month)
        self.assertEqual(plan.settings["daily_rate"], 500.0)


class PensionTests(unittest.TestCase):
    def test_zero_rate_falls_back_to_linear(self) -> None:
        self.assertAlmostEqual(required_monthly_contribution(120000.0, 10, 0.0), 1000.0)
        fund = pension_fund_projection(100.0, 1, 0.0)
        self.assertAlmostEqual(fund.future_value, 1200.0)
        self.assertAlmostEqual(fund.total_returns, 0.0)

    def test_goal_with_compounding(self) -> None:
        settings = _settings(pension_target_amount=100000.0, pension_target_years=20, sp500_return_rate=0.10)
        goal = pension_goal(settings)

        self.assertAlmostEqual(goal.required_monthly_contribution, 131.69, delta=0.05)
        self.assertAlmostEqual(goal.gap_monthly, goal.required_monthly_contribution)
        self.assertEqual(goal.extra_work_days_needed, 1)
        self.assertEqual(goal.projected_final_amount, 0.0)

    def test_contribution_above_requirement_has_no_gap(self) -> None:
        settings = _settings(pension_target_amount=100000.0, pension_target_years=20, pension_monthly_amount=500.0)
        goal = pension_goal(settings)

        self.assertEqual(goal.gap_monthly, 0.0)
        self.assertEqual(goal.extra_work_days_needed, 0)
        self.assertGreater(goal.total_returns, 0.0)


class ExpectedExpenseTests(unittest.TestCase):
    def test_one_off_and_recurring(self) -> None:
        one_off = ExpectedExpense(id="a", description="Dentista", amount=90.0, expected_date=date(2024, 5, 20))
        done = ExpectedExpense(id="b", description="Bollo", amount=200.0, expected_date=date(2024, 5, 2),
                               is_completed=True)
        yearly = ExpectedExpense(id="c", description="Assicurazione", amount=400.0, expected_date=date(2023, 5, 28),
                                 kind=ExpectedExpenseKind.RICORRENTE, recurrence_months=12)
        broken = ExpectedExpense(id="d", description="Senza ricorrenza", amount=10.0, expected_date=date(2024, 1, 1),
                                 kind=ExpectedExpenseKind.RICORRENTE)

        self.assertTrue(falls_in_month(yearly, "2023-05"))
        self.assertFalse(falls_in_month(yearly, "2023-04"))
        self.assertFalse(falls_in_month(broken, "2024-01"))
        self.assertAlmostEqual(expected_total_for_month([one_off, done, yearly, broken], "2024-05"), 490.0)


if __name__ == "__main__":
    unittest.main()
