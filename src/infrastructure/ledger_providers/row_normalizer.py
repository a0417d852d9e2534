"""
Row normalization at the ingestion boundary.

Rows arrive in the shape of the backing tables, with either camelCase or
snake_case keys. Dates accept several formats, enum fields degrade to a safe
value when unknown, and the legacy flat `category` is mapped onto
`category_parent` when the row carries no hierarchical tag.
"""
from __future__ import annotations

import math
from datetime import date
from enum import Enum
from typing import Any, Optional, TypeVar

from domain.categories import map_legacy_category
from domain.models import (
    BillType,
    BudgetTransfer,
    ExpectedExpense,
    ExpectedExpenseKind,
    Expense,
    Invoice,
    InvoiceStatus,
    LegacyCategory,
    PaymentMethod,
)
from domain.schemas import coerce_date_value

E = TypeVar("E", bound=Enum)


class RowError(ValueError):
    def __init__(self, kind: str, row_id: Any, field: str, message: str) -> None:
        super().__init__(f"{kind} {row_id!r}: {field} {message}")
        self.kind = kind
        self.row_id = row_id
        self.field = field


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _get(row: dict[str, Any], name: str, default: Any = None) -> Any:
    if name in row and row[name] is not None:
        return row[name]
    camel = _camel(name)
    if camel in row and row[camel] is not None:
        return row[camel]
    return default


def _date(row: dict[str, Any], name: str) -> Optional[date]:
    value = coerce_date_value(_get(row, name))
    return value if isinstance(value, date) else None


def _required_date(row: dict[str, Any], name: str, kind: str) -> date:
    value = _date(row, name)
    if value is None:
        raise RowError(kind, row.get("id"), name, f"is missing or not a date: {_get(row, name)!r}")
    return value


def _amount(row: dict[str, Any], name: str, default: float = 0.0) -> float:
    value = _get(row, name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        # Kept as NaN so the validator can report it.
        return math.nan


def _optional_amount(row: dict[str, Any], name: str) -> Optional[float]:
    if _get(row, name) is None:
        return None
    return _amount(row, name)


def _enum(enum_type: type[E], value: Any, default: Optional[E] = None) -> Optional[E]:
    if value is None:
        return default
    try:
        return enum_type(str(value).strip().lower())
    except ValueError:
        return default


def _bool(value: Any, default: Optional[bool] = False) -> Optional[bool]:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "si", "sì"}
    return bool(value)


def normalize_expense(row: dict[str, Any]) -> Expense:
    category = _enum(LegacyCategory, _get(row, "category"))
    parent = _get(row, "category_parent") or map_legacy_category(category)
    bill_type_raw = _get(row, "bill_type")
    return Expense(
        id=str(row.get("id")),
        description=str(_get(row, "description", "")),
        amount=_amount(row, "amount"),
        date=_required_date(row, "date", "expense"),
        booked_date=_date(row, "booked_date"),
        purchase_date=_date(row, "purchase_date"),
        category=category,
        category_parent=parent,
        category_child=_get(row, "category_child"),
        payment_method=_enum(PaymentMethod, _get(row, "payment_method")),
        recurring=bool(_bool(_get(row, "recurring"))),
        bill_type=_enum(BillType, bill_type_raw, BillType.ALTRO) if bill_type_raw else None,
        bill_provider=_get(row, "bill_provider"),
        bill_period_start=_date(row, "bill_period_start"),
        bill_period_end=_date(row, "bill_period_end"),
        consumption_value=_optional_amount(row, "consumption_value"),
        consumption_unit=_get(row, "consumption_unit"),
        is_paid=_bool(_get(row, "is_paid"), default=None),
        paid_at=_date(row, "paid_at"),
        paid_by=_get(row, "paid_by"),
        subscription_type=_get(row, "subscription_type"),
        linked_transfer_id=_get(row, "linked_transfer_id"),
        is_family_expense=bool(_bool(_get(row, "is_family_expense"))),
    )


def normalize_invoice(row: dict[str, Any]) -> Invoice:
    invoice_date = _required_date(row, "invoice_date", "invoice")
    return Invoice(
        id=str(row.get("id")),
        status=_enum(InvoiceStatus, _get(row, "status"), InvoiceStatus.BOZZA),
        invoice_date=invoice_date,
        due_date=_date(row, "due_date") or invoice_date,
        total_amount=_amount(row, "total_amount"),
        paid_amount=_amount(row, "paid_amount"),
        paid_date=_date(row, "paid_date"),
        stored_remaining_amount=_optional_amount(row, "remaining_amount"),
        exclude_from_budget=bool(_bool(_get(row, "exclude_from_budget"))),
    )


def normalize_transfer(row: dict[str, Any]) -> BudgetTransfer:
    return BudgetTransfer(
        id=str(row.get("id")),
        from_user_id=str(_get(row, "from_user_id", "")),
        to_user_id=str(_get(row, "to_user_id", "")),
        amount=_amount(row, "amount"),
        month=str(_get(row, "month", "")),
        description=str(_get(row, "description", "")),
        transfer_date=_date(row, "transfer_date"),
        bank_row_key=_get(row, "bank_row_key"),
    )


def _recurrence(row: dict[str, Any]) -> Optional[int]:
    value = _get(row, "recurrence_months")
    if not value:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise RowError(
            "expected expense", row.get("id"), "recurrence_months", f"is not a whole number: {value!r}"
        ) from exc


def normalize_expected_expense(row: dict[str, Any]) -> ExpectedExpense:
    # The backing table stores the kind under `category`.
    kind = _get(row, "kind") or _get(row, "category")
    return ExpectedExpense(
        id=str(row.get("id")),
        description=str(_get(row, "description", "")),
        amount=_amount(row, "amount"),
        expected_date=_required_date(row, "expected_date", "expected expense"),
        kind=_enum(ExpectedExpenseKind, kind, ExpectedExpenseKind.UNA_TANTUM),
        recurrence_months=_recurrence(row),
        is_completed=bool(_bool(_get(row, "is_completed"))),
    )


def transfer_to_row(transfer: BudgetTransfer) -> dict[str, Any]:
    return {
        "id": transfer.id,
        "from_user_id": transfer.from_user_id,
        "to_user_id": transfer.to_user_id,
        "amount": transfer.amount,
        "month": transfer.month,
        "description": transfer.description,
        "transfer_date": transfer.transfer_date.isoformat() if transfer.transfer_date else None,
        "bank_row_key": transfer.bank_row_key,
    }
