from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, TypeVar

from domain.models import BudgetTransfer, ExpectedExpense, Expense, Invoice
from infrastructure.ledger_providers.provider import Provider, RecordProviderError, SettingsStore, TransferStore
from infrastructure.ledger_providers.row_normalizer import (
    RowError,
    normalize_expected_expense,
    normalize_expense,
    normalize_invoice,
    normalize_transfer,
    transfer_to_row,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSFERS_FILE = "transfers.json"


class JsonFileProvider(Provider, TransferStore, SettingsStore):
    """
    Reads records exported as JSON arrays.

    Layout under the data directory:
      <user_id>/invoices.json, expenses.json, expected_expenses.json, settings.json
      transfers.json (shared by the household)
    """

    name = "json"

    def __init__(self, data_dir: str | Path | None = None) -> None:
        self._data_dir = Path(data_dir or os.getenv("BUDGET_DATA_DIR", "data"))

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def fetch_invoices(self, user_id: str) -> list[Invoice]:
        return self._load_rows(self._user_file(user_id, "invoices.json"), normalize_invoice)

    def fetch_expenses(self, user_id: str) -> list[Expense]:
        return self._load_rows(self._user_file(user_id, "expenses.json"), normalize_expense)

    def fetch_transfers(self, user_id: str) -> list[BudgetTransfer]:
        return self.list_transfers(user_id)

    def fetch_expected_expenses(self, user_id: str) -> list[ExpectedExpense]:
        return self._load_rows(self._user_file(user_id, "expected_expenses.json"), normalize_expected_expense)

    def fetch_settings(self, user_id: str) -> dict[str, Any] | None:
        return self.load_settings(user_id)

    # ---- transfers ----
    def insert_transfer(self, transfer: BudgetTransfer) -> None:
        rows = self._read_json(self._data_dir / TRANSFERS_FILE, default=[])
        rows.append(transfer_to_row(transfer))
        self._write_json(self._data_dir / TRANSFERS_FILE, rows)

    def delete_transfer(self, transfer_id: str) -> bool:
        path = self._data_dir / TRANSFERS_FILE
        rows = self._read_json(path, default=[])
        kept = [row for row in rows if str(row.get("id")) != transfer_id]
        if len(kept) == len(rows):
            return False
        self._write_json(path, kept)
        return True

    def find_by_row_key(self, to_user_id: str, bank_row_key: str) -> BudgetTransfer | None:
        for transfer in self._all_transfers():
            if transfer.to_user_id == to_user_id and transfer.bank_row_key == bank_row_key:
                return transfer
        return None

    def list_transfers(self, user_id: str) -> list[BudgetTransfer]:
        return [t for t in self._all_transfers() if user_id in (t.from_user_id, t.to_user_id)]

    def _all_transfers(self) -> list[BudgetTransfer]:
        return self._load_rows(self._data_dir / TRANSFERS_FILE, normalize_transfer)

    # ---- settings ----
    def load_settings(self, user_id: str) -> dict[str, Any] | None:
        payload = self._read_json(self._user_file(user_id, "settings.json"), default=None)
        if payload is not None and not isinstance(payload, dict):
            raise RecordProviderError(f"Expected settings object for user {user_id}, got {type(payload).__name__}")
        return payload

    def save_settings(self, user_id: str, values: dict[str, Any]) -> None:
        self._write_json(self._user_file(user_id, "settings.json"), values)

    # ---- file helpers ----
    def _user_file(self, user_id: str, filename: str) -> Path:
        return self._data_dir / user_id / filename

    def _load_rows(self, path: Path, normalize: Callable[[dict[str, Any]], T]) -> list[T]:
        rows = self._read_json(path, default=[])
        if not isinstance(rows, list):
            raise RecordProviderError(f"Expected a JSON array in {path}, got {type(rows).__name__}")
        try:
            records = [normalize(row) for row in rows if isinstance(row, dict)]
        except RowError as exc:
            raise RecordProviderError(f"Invalid row in {path}: {exc}") from exc
        logger.info("JSON provider loaded path=%s count=%d", path, len(records))
        return records

    def _read_json(self, path: Path, default: Any) -> Any:
        if not path.exists():
            return default
        try:
            with path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise RecordProviderError(f"Unable to read {path}: {exc}") from exc

    def _write_json(self, path: Path, payload: Any) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, ensure_ascii=False)
        except OSError as exc:
            raise RecordProviderError(f"Unable to write {path}: {exc}") from exc
