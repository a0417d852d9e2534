from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from domain.models import BudgetTransfer, ExpectedExpense, Expense, Invoice
from infrastructure.ledger_providers.json_provider import JsonFileProvider
from infrastructure.ledger_providers.provider import Provider, SettingsStore, TransferStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserRecords:
    user_id: str
    invoices: tuple[Invoice, ...] = ()
    expenses: tuple[Expense, ...] = ()
    transfers: tuple[BudgetTransfer, ...] = ()
    expected_expenses: tuple[ExpectedExpense, ...] = ()
    settings: dict[str, Any] = field(default_factory=dict)
    sources: tuple[str, ...] = ()


class GetRecords:
    """
    Aggregates a user's records across registered providers.

    Dynamic behavior:
    - Providers can be added/removed at runtime via add_provider/remove_provider
    - If no source filter is passed, reads from all registered providers
    - Settings rows are merged in registration order, later providers win
    """

    def __init__(self, providers: Iterable[Provider] | None = None) -> None:
        self._providers: dict[str, Provider] = {}
        for provider in providers if providers is not None else [JsonFileProvider()]:
            self.add_provider(provider)

    # ---- dynamic provider management ----
    def add_provider(self, provider: Provider) -> None:
        self._providers[provider.name] = provider

    def remove_provider(self, provider_name: str) -> None:
        self._providers.pop(provider_name, None)

    def list_provider_names(self) -> list[str]:
        return sorted(self._providers.keys())

    def load(self, user_id: str, sources: Sequence[str] | None = None) -> UserRecords:
        selected = self._select_providers(sources)
        invoices: list[Invoice] = []
        expenses: list[Expense] = []
        transfers: dict[str, BudgetTransfer] = {}
        expected: list[ExpectedExpense] = []
        settings: dict[str, Any] = {}
        for provider in selected:
            invoices.extend(provider.fetch_invoices(user_id))
            expenses.extend(provider.fetch_expenses(user_id))
            for transfer in provider.fetch_transfers(user_id):
                transfers.setdefault(transfer.id, transfer)
            expected.extend(provider.fetch_expected_expenses(user_id))
            settings.update(provider.fetch_settings(user_id) or {})

        logger.info(
            "GetRecords loaded user=%s providers=%s invoices=%d expenses=%d transfers=%d expected=%d",
            user_id,
            [p.name for p in selected],
            len(invoices),
            len(expenses),
            len(transfers),
            len(expected),
        )
        return UserRecords(
            user_id=user_id,
            invoices=tuple(invoices),
            expenses=tuple(expenses),
            transfers=tuple(transfers.values()),
            expected_expenses=tuple(expected),
            settings=settings,
            sources=tuple(p.name for p in selected),
        )

    def get_invoices(self, user_id: str, sources: Sequence[str] | None = None) -> list[Invoice]:
        return [inv for p in self._select_providers(sources) for inv in p.fetch_invoices(user_id)]

    def get_expenses(self, user_id: str, sources: Sequence[str] | None = None) -> list[Expense]:
        return [exp for p in self._select_providers(sources) for exp in p.fetch_expenses(user_id)]

    # ---- write-side lookup ----
    def transfer_store(self) -> TransferStore | None:
        return next((p for p in self._providers.values() if isinstance(p, TransferStore)), None)

    def settings_store(self) -> SettingsStore | None:
        return next((p for p in self._providers.values() if isinstance(p, SettingsStore)), None)

    # ---- provider filtering ----
    def _select_providers(self, sources: Sequence[str] | None) -> list[Provider]:
        if not sources:
            return list(self._providers.values())
        requested = {str(name) for name in sources}
        return [p for name, p in self._providers.items() if name in requested]


# Singleton instance used across the codebase.
get_records = GetRecords()
