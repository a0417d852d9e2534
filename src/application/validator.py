from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from domain.models import BudgetTransfer, ExpectedExpense, ExpectedExpenseKind, Expense, Invoice, InvoiceStatus
from domain.schemas import MONTH_KEY_RE, ToolResponse
from infrastructure.get_records import UserRecords


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    path: str = ""
    severity: str = "error"  # "error" | "warn"


def _finite(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


class ValidatorService:
    """
    Deterministic checks on the records fed to the forecasting functions.

    The forecasts themselves never validate: a NaN amount flows through to
    NaN balances. Problems are reported here instead, next to the results:
      - non-finite amounts
      - invoice remainder inconsistent with status and payments
      - malformed transfer month keys
      - reversed bill periods and bills excluded for lack of a paid flag
      - failed tool calls
    """

    REMAINDER_TOLERANCE = 0.01

    def validate_records(self, records: UserRecords) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        issues.extend(self._check_invoices(records.invoices))
        issues.extend(self._check_expenses(records.expenses))
        issues.extend(self._check_transfers(records.transfers))
        issues.extend(self._check_expected(records.expected_expenses))
        return issues

    def validate_responses(self, responses: Iterable[ToolResponse]) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for response in responses:
            if not response.ok:
                issues.append(ValidationIssue(
                    code="TOOL_FAILED",
                    message="; ".join(response.errors) or "tool returned ok=false",
                    path=response.tool,
                ))
        return issues

    # ---------------- helpers ----------------

    def _check_invoices(self, invoices: Iterable[Invoice]) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for inv in invoices:
            path = f"invoices[{inv.id}]"
            for field_name in ("total_amount", "paid_amount"):
                if not _finite(getattr(inv, field_name)):
                    issues.append(ValidationIssue(
                        code="NON_FINITE_AMOUNT",
                        message=f"Invoice {inv.id} has non-finite {field_name}",
                        path=f"{path}.{field_name}",
                    ))
            stored = inv.stored_remaining_amount
            if stored is not None:
                expected = 0.0 if inv.status == InvoiceStatus.PAGATA else inv.total_amount - inv.paid_amount
                if not _finite(stored) or abs(stored - expected) > self.REMAINDER_TOLERANCE:
                    issues.append(ValidationIssue(
                        code="INVOICE_REMAINDER_MISMATCH",
                        message=f"Invoice {inv.id} remaining {stored!r} but status {inv.status.value} implies {expected:.2f}",
                        path=f"{path}.remaining_amount",
                    ))
            if _finite(inv.paid_amount) and _finite(inv.total_amount) and inv.paid_amount > inv.total_amount:
                issues.append(ValidationIssue(
                    code="INVOICE_OVERPAID",
                    message=f"Invoice {inv.id} paid {inv.paid_amount:.2f} of {inv.total_amount:.2f}",
                    path=f"{path}.paid_amount",
                    severity="warn",
                ))
            if inv.due_date < inv.invoice_date:
                issues.append(ValidationIssue(
                    code="DUE_BEFORE_INVOICE",
                    message=f"Invoice {inv.id} is due before it was issued",
                    path=f"{path}.due_date",
                    severity="warn",
                ))
        return issues

    def _check_expenses(self, expenses: Iterable[Expense]) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for exp in expenses:
            path = f"expenses[{exp.id}]"
            if not _finite(exp.amount):
                issues.append(ValidationIssue(
                    code="NON_FINITE_AMOUNT",
                    message=f"Expense {exp.id} has non-finite amount",
                    path=f"{path}.amount",
                ))
            elif exp.amount < 0:
                issues.append(ValidationIssue(
                    code="NEGATIVE_EXPENSE",
                    message=f"Expense {exp.id} has negative amount {exp.amount:.2f}",
                    path=f"{path}.amount",
                    severity="warn",
                ))
            if exp.bill_period_start and exp.bill_period_end and exp.bill_period_end < exp.bill_period_start:
                issues.append(ValidationIssue(
                    code="BILL_PERIOD_REVERSED",
                    message=f"Bill {exp.id} period ends before it starts",
                    path=f"{path}.bill_period_end",
                    severity="warn",
                ))
            if exp.bill_type is not None and exp.is_paid is None:
                issues.append(ValidationIssue(
                    code="BILL_WITHOUT_PAID_FLAG",
                    message=f"Bill {exp.id} has no paid flag and is left out of bill totals",
                    path=f"{path}.is_paid",
                    severity="warn",
                ))
        return issues

    def _check_transfers(self, transfers: Iterable[BudgetTransfer]) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for transfer in transfers:
            path = f"transfers[{transfer.id}]"
            if not MONTH_KEY_RE.match(transfer.month):
                issues.append(ValidationIssue(
                    code="BAD_MONTH_KEY",
                    message=f"Transfer {transfer.id} month {transfer.month!r} is not yyyy-MM",
                    path=f"{path}.month",
                ))
            if not _finite(transfer.amount):
                issues.append(ValidationIssue(
                    code="NON_FINITE_AMOUNT",
                    message=f"Transfer {transfer.id} has non-finite amount",
                    path=f"{path}.amount",
                ))
        return issues

    def _check_expected(self, expected: Iterable[ExpectedExpense]) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for item in expected:
            if item.kind == ExpectedExpenseKind.RICORRENTE and not item.recurrence_months:
                issues.append(ValidationIssue(
                    code="RECURRENCE_MISSING",
                    message=f"Recurring expected expense {item.id} has no recurrence_months and is never counted",
                    path=f"expected_expenses[{item.id}].recurrence_months",
                    severity="warn",
                ))
        return issues
