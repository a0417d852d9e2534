from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Callable, Iterable

from domain.models import AccumulatedBudget, BudgetTransfer, TransferDirection
from domain.schemas import BulkImportResult, TransferBulkRow, TransferCreate, validate_month_key
from forecasting.carryover import accumulate_budget, total_transferred_for_month, transfers_for_month
from infrastructure.ledger_providers.provider import TransferStore

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Trasferimento budget familiare"
SECONDARY_DESCRIPTION = "Trasferimento passato"
IMPORTED_DESCRIPTION = "Trasferimento importato"
RESET_DESCRIPTION = "Azzeramento storico pregresso"


class TransferError(ValueError):
    pass


def _new_id() -> str:
    return uuid.uuid4().hex


class TransferService:
    """
    Budget transfers between household members.

    Transfers are immutable once stored: corrections are new (possibly
    negative) transfers, and the only other mutation is deletion.
    """

    def __init__(self, store: TransferStore, id_factory: Callable[[], str] = _new_id):
        self._store = store
        self._new_id = id_factory

    def create_transfer(self, payload: TransferCreate) -> BudgetTransfer:
        transfer = BudgetTransfer(
            id=self._new_id(),
            from_user_id=payload.from_user_id,
            to_user_id=payload.to_user_id,
            amount=payload.amount,
            month=payload.month,
            description=payload.description or DEFAULT_DESCRIPTION,
            transfer_date=payload.transfer_date,
            bank_row_key=payload.bank_row_key,
        )
        self._store.insert_transfer(transfer)
        logger.info(
            "Transfer created id=%s from=%s to=%s month=%s amount=%.2f",
            transfer.id,
            transfer.from_user_id,
            transfer.to_user_id,
            transfer.month,
            transfer.amount,
        )
        return transfer

    def create_transfer_as_secondary(self, secondary_user_id: str, primary_user_id: str, amount: float, month: str,
                                     description: str | None = None, transfer_date: date | None = None) -> BudgetTransfer:
        """A secondary profile records money it received from the primary one."""
        return self.create_transfer(
            TransferCreate(
                from_user_id=primary_user_id,
                to_user_id=secondary_user_id,
                amount=amount,
                month=month,
                description=description or SECONDARY_DESCRIPTION,
                transfer_date=transfer_date,
            )
        )

    def create_transfers_bulk(self, user_id: str, rows: Iterable[TransferBulkRow]) -> BulkImportResult:
        """
        Import bank rows sent by `user_id`.

        Rows whose `(to_user_id, bank_row_key)` is already stored are skipped,
        so re-importing the same statement is a no-op. Rows without a key are
        always inserted.
        """
        imported: list[str] = []
        skipped = 0
        for row in rows:
            to_user_id = row.to_user_id or user_id
            if row.bank_row_key and self._store.find_by_row_key(to_user_id, row.bank_row_key) is not None:
                skipped += 1
                continue
            transfer = self.create_transfer(
                TransferCreate(
                    from_user_id=row.from_user_id or user_id,
                    to_user_id=to_user_id,
                    amount=row.amount,
                    month=row.month,
                    description=row.description or IMPORTED_DESCRIPTION,
                    transfer_date=row.transfer_date,
                    bank_row_key=row.bank_row_key,
                )
            )
            imported.append(transfer.id)
        logger.info("Bulk transfer import user=%s imported=%d skipped=%d", user_id, len(imported), skipped)
        return BulkImportResult(imported_count=len(imported), skipped_count=skipped, transfer_ids=imported)

    def delete_transfer(self, transfer_id: str) -> None:
        if not self._store.delete_transfer(transfer_id):
            raise TransferError(f"Transfer not found: {transfer_id}")
        logger.info("Transfer deleted id=%s", transfer_id)

    def transfers_by_month(self, user_id: str, month: str,
                           direction: TransferDirection = TransferDirection.RECEIVED) -> list[BudgetTransfer]:
        return transfers_for_month(self._store.list_transfers(user_id), user_id, month, direction)

    def total_transferred_for_month(self, user_id: str, month: str,
                                    direction: TransferDirection = TransferDirection.RECEIVED) -> float:
        return total_transferred_for_month(self._store.list_transfers(user_id), user_id, month, direction)

    def accumulated_budget(self, user_id: str, target_month: str,
                           direction: TransferDirection = TransferDirection.RECEIVED,
                           expenses_by_month: dict[str, float] | None = None) -> AccumulatedBudget:
        return accumulate_budget(self._store.list_transfers(user_id), user_id, target_month, direction, expenses_by_month)

    def reset_carryover(self, from_user_id: str, to_user_id: str, month: str, carryover: float) -> BudgetTransfer:
        """Cover a negative carryover with a compensating transfer from the primary profile."""
        if carryover >= 0:
            raise TransferError("Only a negative carryover can be reset")
        return self.create_transfer(
            TransferCreate(
                from_user_id=from_user_id,
                to_user_id=to_user_id,
                amount=abs(carryover),
                month=validate_month_key(month),
                description=RESET_DESCRIPTION,
            )
        )

    def reset_carryover_as_secondary(self, secondary_user_id: str, primary_user_id: str, month: str,
                                     carryover: float) -> BudgetTransfer:
        """Zero out any carryover, positive or negative, from the secondary profile's side."""
        if carryover == 0:
            raise TransferError("Carryover is already zero")
        return self.create_transfer(
            TransferCreate(
                from_user_id=primary_user_id,
                to_user_id=secondary_user_id,
                amount=-carryover,
                month=validate_month_key(month),
                description=f"Azzeramento pregresso da {month}",
            )
        )
