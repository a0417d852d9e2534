from __future__ import annotations

import unittest
from datetime import date
from unittest.mock import patch

from application.engine import BudgetDashboardEngine
from application.planner import PlannerService
from application.tool_executor import ToolExecutor
from application.validator import ValidatorService
from domain.models import BudgetTransfer, Expense, Invoice, InvoiceStatus
from domain.schemas import DashboardRequest
from infrastructure.get_records import GetRecords
from infrastructure.ledger_providers.memory_provider import InMemoryProvider
from infrastructure.ledger_providers.provider import RecordProviderError
from tools.registry import registry

TODAY = date(2024, 3, 20)


class _BrokenProvider(InMemoryProvider):
    name = "broken"

    def fetch_expenses(self, user_id: str) -> list[Expense]:
        raise RecordProviderError("expenses table unreachable")


def _provider() -> InMemoryProvider:
    return InMemoryProvider(
        invoices={
            "u1": [
                Invoice(id="i1", status=InvoiceStatus.PAGATA, invoice_date=date(2024, 3, 1), due_date=date(2024, 3, 31),
                        total_amount=2500.0, paid_amount=2500.0, paid_date=date(2024, 3, 5)),
            ]
        },
        expenses={
            "u1": [Expense(id="e1", description="Supermercato", amount=80.0, date=date(2024, 3, 10))],
            "u2": [Expense(id="s1", description="Farmacia", amount=40.0, date=date(2024, 3, 11))],
        },
        transfers=[BudgetTransfer(id="t1", from_user_id="u1", to_user_id="u2", amount=500.0, month="2024-03")],
    )


class BudgetDashboardEngineTests(unittest.TestCase):
    def _build_engine(self, records: GetRecords) -> BudgetDashboardEngine:
        import tools  # noqa: F401

        patcher = patch("tools._records_support.get_records", records)
        patcher.start()
        self.addCleanup(patcher.stop)
        return BudgetDashboardEngine(
            planner=PlannerService(registry=registry),
            tool_executor=ToolExecutor(registry),
            validator=ValidatorService(),
            records=records,
        )

    def test_primary_dashboard_runs_default_views(self) -> None:
        engine = self._build_engine(GetRecords([_provider()]))
        response = engine.run(DashboardRequest(request_id="req_test_001", user_id="u1"), today=TODAY)

        self.assertEqual(response.schema_version, "budgetcast.dashboard.v1")
        self.assertEqual(
            [r.tool for r in response.results],
            ["ledger.classify_expenses", "detect.bill_cycles", "forecast.budget_months", "forecast.work_plan"],
        )
        self.assertTrue(all(r.ok for r in response.results))
        self.assertEqual(response.issues, [])
        budget = response.results[2].result
        self.assertEqual(budget["current_month"], "2024-03")
        self.assertEqual(budget["summaries"][0]["savings_monthly"], 242.0)

    def test_secondary_dashboard(self) -> None:
        engine = self._build_engine(GetRecords([_provider()]))
        request = DashboardRequest(request_id="req_test_002", user_id="u2", role="secondary")
        response = engine.run(request, today=TODAY)

        self.assertEqual(
            [r.tool for r in response.results],
            ["forecast.budget_months", "ledger.accumulated_budget", "ledger.classify_expenses"],
        )
        accumulated = response.results[1].result
        self.assertEqual(accumulated["target_month"], "2024-03")
        self.assertEqual(accumulated["remaining"], 460.0)

    def test_requested_views_and_overrides(self) -> None:
        engine = self._build_engine(GetRecords([_provider()]))
        request = DashboardRequest(
            request_id="req_test_003",
            user_id="u1",
            views=["forecast.budget_months", "ledger.unknown"],
            args={"forecast.budget_months": {"forecast_months": 2}},
        )
        response = engine.run(request, today=TODAY)

        [result] = response.results
        self.assertEqual(len(result.result["summaries"]), 2)

    def test_record_failures_are_reported_as_issues(self) -> None:
        engine = self._build_engine(GetRecords([_BrokenProvider()]))
        response = engine.run(DashboardRequest(request_id="req_test_004", user_id="u1"), today=TODAY)
        codes = [issue["code"] for issue in response.issues]

        self.assertEqual(codes[0], "RECORDS_UNAVAILABLE")
        self.assertIn("TOOL_FAILED", codes)
        self.assertFalse(any(r.ok for r in response.results))

    def test_planner_injects_reference_day(self) -> None:
        import tools  # noqa: F401

        plan = PlannerService(registry).plan(DashboardRequest(request_id="r", user_id="u1", role="secondary"), TODAY)
        args = {call.tool: call.args for call in plan.calls}

        self.assertEqual(args["forecast.budget_months"]["today"], "2024-03-20")
        self.assertEqual(args["ledger.accumulated_budget"]["target_month"], "2024-03")
        self.assertEqual([c.id for c in plan.calls], ["t1", "t2", "t3"])


if __name__ == "__main__":
    unittest.main()
