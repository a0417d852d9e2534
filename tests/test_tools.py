from __future__ import annotations

import unittest
from datetime import date
from unittest.mock import patch

import tools  # noqa: F401
from application.tool_executor import ToolExecutor
from domain.models import BillType, BudgetTransfer, Expense, Invoice, InvoiceStatus
from domain.schemas import CategorySuggestion, ToolContext, ToolRequest
from infrastructure.get_records import GetRecords
from infrastructure.ledger_providers.memory_provider import InMemoryProvider
from tools.ledger.suggest_categories import SuggestCategoriesTool
from tools.registry import registry


def _records() -> GetRecords:
    provider = InMemoryProvider(
        invoices={
            "u1": [
                Invoice(id="i1", status=InvoiceStatus.PAGATA, invoice_date=date(2024, 3, 1), due_date=date(2024, 3, 31),
                        total_amount=1000.0, paid_amount=1000.0, paid_date=date(2024, 3, 5)),
            ]
        },
        expenses={
            "u1": [
                Expense(id="e1", description="Supermercato", amount=80.0, date=date(2024, 3, 10)),
                Expense(id="e2", description="Bolletta", amount=120.0, date=date(2024, 3, 2), bill_type=BillType.LUCE,
                        bill_provider="Enel Energia", is_paid=True, bill_period_start=date(2024, 1, 1),
                        bill_period_end=date(2024, 3, 1)),
                Expense(id="e3", description="Bonifico mamma", amount=200.0, date=date(2024, 3, 12)),
            ],
            "u2": [
                Expense(id="s1", description="Supermercato", amount=1200.0, date=date(2024, 1, 15), paid_by="Anna"),
            ],
        },
        transfers=[BudgetTransfer(id="t1", from_user_id="u1", to_user_id="u2", amount=1000.0, month="2024-01")],
        settings={"u1": {"daily_rate": 400.0}},
    )
    return GetRecords([provider])


def _request(tool: str, args: dict | None = None, user_id: str = "u1", role: str = "primary") -> ToolRequest:
    return ToolRequest(
        request_id=f"req:{tool}",
        tool=tool,
        args=args or {},
        context=ToolContext(user_id=user_id, role=role),
    )


class RecordToolTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = patch("tools._records_support.get_records", _records())
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_budget_months(self) -> None:
        response = registry.get_tool("forecast.budget_months").run(
            _request("forecast.budget_months", {"today": "2024-03-20", "forecast_months": 3})
        )

        self.assertTrue(response.ok)
        result = response.result
        self.assertEqual(result["current_month"], "2024-03")
        self.assertEqual(result["future_month_keys"], ["2024-04", "2024-05"])
        march = result["summaries"][0]
        self.assertEqual(march["month"], "2024-03-01")
        self.assertEqual(march["received_income"], 1000.0)
        self.assertEqual(march["bill_expenses"], 120.0)
        self.assertEqual(march["variable_expenses"], 280.0)
        self.assertEqual(result["total_bill_estimate"], 60.0)

    def test_budget_months_for_secondary_profile(self) -> None:
        response = registry.get_tool("forecast.budget_months").run(
            _request(
                "forecast.budget_months",
                {"today": "2024-01-20", "forecast_months": 1, "household": {"own_payer": "Anna"}},
                user_id="u2",
                role="secondary",
            )
        )
        [january] = response.result["summaries"]

        self.assertTrue(response.result["is_secondary"])
        self.assertEqual(january["received_income"], 1000.0)
        self.assertEqual(january["variable_expenses"], 1200.0)
        self.assertEqual(january["spendable"], -200.0)

    def test_classify_expenses(self) -> None:
        response = registry.get_tool("ledger.classify_expenses").run(
            _request("ledger.classify_expenses", {"month": "2024-03"})
        )
        result = response.result

        self.assertEqual(result["expense_count"], 3)
        self.assertEqual(result["totals_by_class"], {"variable": 280.0, "utility_bill": 120.0})
        self.assertEqual(result["family_transfer_ids"], ["e3"])
        self.assertEqual(result["tags"][1]["detected_provider"], "Enel Energia")

    def test_bill_cycles(self) -> None:
        response = registry.get_tool("detect.bill_cycles").run(
            _request("detect.bill_cycles", {"today": "2024-03-20", "forecast_months": 3})
        )
        [forecast] = response.result["provider_forecasts"]

        self.assertEqual(forecast["provider"], "Enel Energia")
        self.assertEqual(forecast["next_bill_dates"], ["2024-05-01"])
        self.assertEqual(response.result["pending_bills"], [])

    def test_work_plan_uses_stored_settings(self) -> None:
        response = registry.get_tool("forecast.work_plan").run(
            _request("forecast.work_plan", {"today": "2024-03-20", "forecast_months": 2})
        )
        result = response.result

        self.assertEqual(result["settings"]["daily_rate"], 400.0)
        self.assertEqual([m["month_key"] for m in result["months"]], ["2024-03", "2024-04"])
        self.assertIn(result["months"][0]["status"], {"ok", "surplus", "deficit"})

    def test_accumulated_budget_for_receiver_and_sender(self) -> None:
        tool = registry.get_tool("ledger.accumulated_budget")
        received = tool.run(
            _request("ledger.accumulated_budget", {"target_month": "2024-02"}, user_id="u2", role="secondary")
        ).result
        sent = tool.run(
            _request(
                "ledger.accumulated_budget",
                {"target_month": "2024-02", "direction": "sent", "counterpart_user_id": "u2"},
            )
        ).result

        for result in (received, sent):
            self.assertEqual(result["carryover"], -200.0)
            self.assertTrue(result["has_negative_history"])
        self.assertEqual(received["month_budget"], 0.0)

    def test_suggest_categories_with_stub_client(self) -> None:
        class _StubClient:
            configured = True

            def suggest(self, expenses, user_id):
                return [CategorySuggestion(expense_id=e.id, category_parent="alimentari", confidence=0.8)
                        for e in expenses]

        response = SuggestCategoriesTool(client=_StubClient()).run(
            _request("ledger.suggest_categories", {"expense_ids": ["e1"]})
        )

        self.assertEqual(response.result["requested_count"], 1)
        self.assertEqual(response.result["auto_selected_count"], 1)
        self.assertTrue(response.result["suggestions"][0]["auto_selected"])

    def test_invalid_args_become_failed_response(self) -> None:
        response = ToolExecutor(registry).run(
            _request("ledger.accumulated_budget", {"target_month": "febbraio"})
        )

        self.assertFalse(response.ok)
        self.assertIn("Invalid arguments", response.errors[0])

    def test_unknown_tool_becomes_failed_response(self) -> None:
        response = ToolExecutor(registry).run(_request("ledger.nope"))
        self.assertFalse(response.ok)


if __name__ == "__main__":
    unittest.main()
