from __future__ import annotations

from typing import Any, Iterable

from domain.models import BudgetTransfer, ExpectedExpense, Expense, Invoice
from infrastructure.ledger_providers.provider import Provider, SettingsStore, TransferStore


class InMemoryProvider(Provider, TransferStore, SettingsStore):
    """Records held in process memory, keyed by user id. Transfers are shared by the household."""

    name = "memory"

    def __init__(
        self,
        invoices: dict[str, Iterable[Invoice]] | None = None,
        expenses: dict[str, Iterable[Expense]] | None = None,
        transfers: Iterable[BudgetTransfer] | None = None,
        expected_expenses: dict[str, Iterable[ExpectedExpense]] | None = None,
        settings: dict[str, dict[str, Any]] | None = None,
        name: str | None = None,
    ) -> None:
        if name:
            self.name = name
        self._invoices = {user: list(rows) for user, rows in (invoices or {}).items()}
        self._expenses = {user: list(rows) for user, rows in (expenses or {}).items()}
        self._transfers: list[BudgetTransfer] = list(transfers or [])
        self._expected = {user: list(rows) for user, rows in (expected_expenses or {}).items()}
        self._settings = {user: dict(values) for user, values in (settings or {}).items()}

    def fetch_invoices(self, user_id: str) -> list[Invoice]:
        return list(self._invoices.get(user_id, []))

    def fetch_expenses(self, user_id: str) -> list[Expense]:
        return list(self._expenses.get(user_id, []))

    def fetch_transfers(self, user_id: str) -> list[BudgetTransfer]:
        return self.list_transfers(user_id)

    def fetch_expected_expenses(self, user_id: str) -> list[ExpectedExpense]:
        return list(self._expected.get(user_id, []))

    def fetch_settings(self, user_id: str) -> dict[str, Any] | None:
        return self.load_settings(user_id)

    # ---- transfers ----
    def insert_transfer(self, transfer: BudgetTransfer) -> None:
        self._transfers.append(transfer)

    def delete_transfer(self, transfer_id: str) -> bool:
        before = len(self._transfers)
        self._transfers = [t for t in self._transfers if t.id != transfer_id]
        return len(self._transfers) < before

    def find_by_row_key(self, to_user_id: str, bank_row_key: str) -> BudgetTransfer | None:
        for transfer in self._transfers:
            if transfer.to_user_id == to_user_id and transfer.bank_row_key == bank_row_key:
                return transfer
        return None

    def list_transfers(self, user_id: str) -> list[BudgetTransfer]:
        return [t for t in self._transfers if user_id in (t.from_user_id, t.to_user_id)]

    # ---- settings ----
    def load_settings(self, user_id: str) -> dict[str, Any] | None:
        values = self._settings.get(user_id)
        return dict(values) if values is not None else None

    def save_settings(self, user_id: str, values: dict[str, Any]) -> None:
        self._settings[user_id] = dict(values)
