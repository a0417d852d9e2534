from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from domain.models import BudgetTransfer, ExpectedExpense, Expense, Invoice


class RecordProviderError(RuntimeError):
    pass


class Provider(ABC):
    """Base provider contract for a household's normalized finance records."""

    name: str = "provider"

    @abstractmethod
    def fetch_invoices(self, user_id: str) -> list[Invoice]:
        raise NotImplementedError

    @abstractmethod
    def fetch_expenses(self, user_id: str) -> list[Expense]:
        raise NotImplementedError

    @abstractmethod
    def fetch_transfers(self, user_id: str) -> list[BudgetTransfer]:
        """Transfers where the user is either sender or recipient."""
        raise NotImplementedError

    def fetch_expected_expenses(self, user_id: str) -> list[ExpectedExpense]:
        return []

    def fetch_settings(self, user_id: str) -> dict[str, Any] | None:
        return None


class TransferStore(ABC):
    """Write side for budget transfers. Transfers are immutable: insert and delete only."""

    @abstractmethod
    def insert_transfer(self, transfer: BudgetTransfer) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_transfer(self, transfer_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def find_by_row_key(self, to_user_id: str, bank_row_key: str) -> BudgetTransfer | None:
        raise NotImplementedError

    @abstractmethod
    def list_transfers(self, user_id: str) -> list[BudgetTransfer]:
        raise NotImplementedError


class SettingsStore(ABC):
    @abstractmethod
    def load_settings(self, user_id: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def save_settings(self, user_id: str, values: dict[str, Any]) -> None:
        raise NotImplementedError
