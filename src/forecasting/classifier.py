"""
Expense classification.

Every expense lands in exactly one bucket, first matching rule wins:

  1. credit card payment method -> credit_card (booked on the next statement)
  2. utility bill (explicit bill type, known biller, biller named in the text) -> utility_bill
  3. loan installment ("Rata 3/48", loan keywords, finance parent category) -> fixed_loan
  4. subscription (subscription type, category, streaming names, keywords) -> fixed_sub
  5. everything else -> variable

Transfers to family members are detected but still count as variable; the
tag is kept on `ExpenseTags.is_family_transfer` for callers that need it.
"""
from __future__ import annotations

import re
from typing import Iterable

from domain.models import BillType, Expense, ExpenseClass, ExpenseTags, LegacyCategory, PaymentMethod
from domain.utility_providers import DEFAULT_REGISTRY, ProviderRegistry

_INSTALLMENT_RE = re.compile(r"rata\s+\d+/\d+", re.IGNORECASE)
_LOAN_KEYWORDS_RE = re.compile(r"prestito|mutuo|finanziamento|leasing", re.IGNORECASE)
_LOAN_FALSE_POSITIVES_RE = re.compile(r"amazon|assicurazione|owen|mantenimento", re.IGNORECASE)
_LOAN_LENDERS_RE = re.compile(r"younited", re.IGNORECASE)
_SUBSCRIPTION_RE = re.compile(r"abbonamento|subscription|mensile|palestra|gym|fitness", re.IGNORECASE)
_TRANSFER_WORDING_RE = re.compile(r"trasferimento|bonifico")

LOAN_MIN_AMOUNT = 30.0
LOAN_PARENT_CATEGORY = "finanza_obblighi"
SUBSCRIPTION_CATEGORY = "abbonamenti"


def _description(expense: Expense) -> str:
    return (expense.description or "").lower()


def is_utility_bill(expense: Expense, registry: ProviderRegistry = DEFAULT_REGISTRY) -> bool:
    if expense.bill_type is not None and expense.bill_type != BillType.ALTRO:
        return True
    if expense.bill_provider:
        return registry.is_utility_provider(expense.bill_provider)
    return registry.is_utility_provider(expense.description)


def is_loan_payment(expense: Expense) -> bool:
    desc = _description(expense)
    if _INSTALLMENT_RE.search(desc):
        return True
    if expense.amount >= LOAN_MIN_AMOUNT and _LOAN_KEYWORDS_RE.search(desc):
        return not _LOAN_FALSE_POSITIVES_RE.search(desc)
    if _LOAN_LENDERS_RE.search(desc):
        return True
    return expense.category_parent == LOAN_PARENT_CATEGORY


def is_subscription(expense: Expense, registry: ProviderRegistry = DEFAULT_REGISTRY) -> bool:
    if expense.subscription_type:
        return True
    if expense.category == LegacyCategory.ABBONAMENTI or expense.category_parent == SUBSCRIPTION_CATEGORY:
        return True
    desc = _description(expense)
    if registry.mentions_streaming(desc):
        return True
    return bool(_SUBSCRIPTION_RE.search(desc))


def is_family_transfer(expense: Expense, registry: ProviderRegistry = DEFAULT_REGISTRY) -> bool:
    desc = _description(expense)
    if registry.is_family_transfer_text(desc):
        return True
    if expense.category == LegacyCategory.FISSA and _TRANSFER_WORDING_RE.search(desc):
        # Bills paid by bank transfer are not family transfers.
        return not (expense.bill_type or expense.bill_provider)
    if expense.linked_transfer_id:
        return True
    return bool(expense.is_family_expense)


def classify_expense(expense: Expense, registry: ProviderRegistry = DEFAULT_REGISTRY) -> ExpenseClass:
    if expense.payment_method == PaymentMethod.CARTA_CREDITO:
        return ExpenseClass.CREDIT_CARD
    if is_utility_bill(expense, registry):
        return ExpenseClass.UTILITY_BILL
    if is_loan_payment(expense):
        return ExpenseClass.FIXED_LOAN
    if is_subscription(expense, registry):
        return ExpenseClass.FIXED_SUB
    return ExpenseClass.VARIABLE


def detect_billing_cycle(expense: Expense) -> str:
    if expense.bill_period_start is None or expense.bill_period_end is None:
        return "monthly"
    days = abs((expense.bill_period_end - expense.bill_period_start).days)
    if days <= 35:
        return "monthly"
    if days <= 70:
        return "bimonthly"
    if days <= 100:
        return "quarterly"
    return "yearly"


def tag_expense(expense: Expense, registry: ProviderRegistry = DEFAULT_REGISTRY) -> ExpenseTags:
    text = f"{expense.description or ''} {expense.bill_provider or ''}"
    return ExpenseTags(
        expense_id=expense.id,
        expense_class=classify_expense(expense, registry),
        is_family_transfer=is_family_transfer(expense, registry),
        detected_provider=registry.detect_provider(text).provider,
        billing_cycle=detect_billing_cycle(expense),
    )


def classify_expenses(expenses: Iterable[Expense], registry: ProviderRegistry = DEFAULT_REGISTRY) -> list[ExpenseTags]:
    return [tag_expense(expense, registry) for expense in expenses]
