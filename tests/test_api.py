from __future__ import annotations

import itertools
import unittest
from datetime import date
from unittest.mock import patch

from fastapi.testclient import TestClient

import interface.api as api
from application.transfers import TransferService
from domain.models import Expense
from infrastructure.get_records import GetRecords
from infrastructure.ledger_providers.memory_provider import InMemoryProvider
from infrastructure.settings.financial_settings import FinancialSettingsStore


class ApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.provider = InMemoryProvider(
            expenses={"u1": [Expense(id="e1", description="Supermercato", amount=80.0, date=date(2024, 3, 10))]},
        )
        records = GetRecords([self.provider])
        counter = itertools.count(1)
        service = TransferService(self.provider, id_factory=lambda: f"t{next(counter)}")

        for patcher in (
            patch("tools._records_support.get_records", records),
            patch.object(api.engine, "_records", records),
            patch.object(api, "settings_store", FinancialSettingsStore(self.provider)),
            patch.object(api, "build_transfer_service", return_value=service),
        ):
            patcher.start()
            self.addCleanup(patcher.stop)
        self.client = TestClient(api.app)

    def test_health_and_tool_listing(self) -> None:
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})
        names = {spec["name"] for spec in self.client.get("/tools").json()}
        self.assertIn("forecast.budget_months", names)

    def test_run_single_tool(self) -> None:
        res = self.client.post(
            "/tools/ledger.classify_expenses",
            json={"context": {"user_id": "u1"}, "args": {"month": "2024-03"}},
        )

        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["result"]["totals_by_class"], {"variable": 80.0})

    def test_unknown_tool_is_404(self) -> None:
        res = self.client.post("/tools/ledger.nope", json={"context": {"user_id": "u1"}, "args": {}})
        self.assertEqual(res.status_code, 404)

    def test_dashboard(self) -> None:
        res = self.client.post("/dashboard", json={"request_id": "req_api_1", "user_id": "u1"})

        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertEqual(body["schema"], "budgetcast.dashboard.v1")
        self.assertEqual(len(body["results"]), 4)

    def test_transfer_lifecycle(self) -> None:
        res = self.client.post(
            "/transfers",
            json={"from_user_id": "u1", "to_user_id": "u2", "amount": 400, "month": "2024-03"},
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["id"], "t1")

        bulk = self.client.post(
            "/transfers/bulk",
            json={"user_id": "u1", "rows": [{"amount": 50, "month": "2024-04", "to_user_id": "u2", "bank_row_key": "k"}]},
        )
        self.assertEqual(bulk.json()["imported_count"], 1)
        self.assertEqual(len(self.provider.list_transfers("u2")), 2)

        self.assertEqual(self.client.delete("/transfers/t1").status_code, 200)
        self.assertEqual(self.client.delete("/transfers/t1").status_code, 404)

    def test_bad_transfer_month_is_rejected(self) -> None:
        res = self.client.post(
            "/transfers",
            json={"from_user_id": "u1", "to_user_id": "u2", "amount": 400, "month": "marzo"},
        )
        self.assertEqual(res.status_code, 422)

    def test_settings_read_and_update(self) -> None:
        self.assertEqual(self.client.get("/settings/u1").json()["daily_rate"], 500.0)

        res = self.client.put("/settings/u1", json={"daily_rate": 450})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(self.client.get("/settings/u1").json()["daily_rate"], 450.0)

        self.assertEqual(self.client.put("/settings/u1", json={"daily_rate": "tanto"}).status_code, 400)


if __name__ == "__main__":
    unittest.main()
