from __future__ import annotations

import unittest
from datetime import date

from domain.models import BillType, Expense, ExpenseClass, LegacyCategory, PaymentMethod
from domain.utility_providers import ProviderRegistry
from forecasting.classifier import (
    classify_expense,
    classify_expenses,
    detect_billing_cycle,
    is_family_transfer,
    tag_expense,
)
from forecasting.credit_card import credit_card_booked_date, is_credit_card_booked


def _expense(description: str, amount: float = 50.0, **kwargs) -> Expense:
    return Expense(id=kwargs.pop("id", "e1"), description=description, amount=amount,
                   date=kwargs.pop("date", date(2024, 3, 15)), **kwargs)


class ClassifierTests(unittest.TestCase):
    def test_credit_card_wins_over_bill_type(self) -> None:
        expense = _expense("Bolletta luce", bill_type=BillType.LUCE, payment_method=PaymentMethod.CARTA_CREDITO)
        self.assertEqual(classify_expense(expense), ExpenseClass.CREDIT_CARD)

    def test_explicit_bill_type_is_utility(self) -> None:
        self.assertEqual(classify_expense(_expense("Bolletta", bill_type=BillType.GAS)), ExpenseClass.UTILITY_BILL)

    def test_known_provider_in_description_is_utility(self) -> None:
        self.assertEqual(classify_expense(_expense("Enel Energia fattura marzo")), ExpenseClass.UTILITY_BILL)

    def test_bill_provider_field_is_checked_instead_of_description(self) -> None:
        expense = _expense("Enel Energia", bill_provider="Negozio sotto casa")
        self.assertNotEqual(classify_expense(expense), ExpenseClass.UTILITY_BILL)

    def test_installment_is_fixed_loan(self) -> None:
        expense = _expense("Rata 3/48 - Prestito Auto", amount=200.0)
        self.assertEqual(classify_expense(expense), ExpenseClass.FIXED_LOAN)

    def test_loan_keyword_false_positive_is_not_a_loan(self) -> None:
        expense = _expense("Assicurazione auto prestito", amount=100.0)
        self.assertEqual(classify_expense(expense), ExpenseClass.VARIABLE)

    def test_small_loan_keyword_amount_is_variable(self) -> None:
        self.assertEqual(classify_expense(_expense("Prestito amico", amount=20.0)), ExpenseClass.VARIABLE)

    def test_finance_parent_category_is_fixed_loan(self) -> None:
        expense = _expense("Pagamento", category_parent="finanza_obblighi")
        self.assertEqual(classify_expense(expense), ExpenseClass.FIXED_LOAN)

    def test_streaming_is_subscription_not_utility(self) -> None:
        self.assertEqual(classify_expense(_expense("Netflix", amount=15.99)), ExpenseClass.FIXED_SUB)
        self.assertEqual(
            classify_expense(_expense("Quota", category=LegacyCategory.ABBONAMENTI)), ExpenseClass.FIXED_SUB
        )

    def test_family_transfer_is_tagged_but_stays_variable(self) -> None:
        expense = _expense("Bonifico mamma", amount=300.0)
        tags = tag_expense(expense)

        self.assertTrue(tags.is_family_transfer)
        self.assertEqual(tags.expense_class, ExpenseClass.VARIABLE)

    def test_fixed_transfer_wording_for_bill_is_not_family_transfer(self) -> None:
        expense = _expense("Bonifico condominio", category=LegacyCategory.FISSA, bill_type=BillType.CONDOMINIO)
        self.assertFalse(is_family_transfer(expense))
        self.assertTrue(is_family_transfer(_expense("Spesa", linked_transfer_id="t1")))

    def test_injected_registry_drives_provider_detection(self) -> None:
        registry = ProviderRegistry(energy=("Quokkaenergy",), water=(), telecom=(), streaming=(), waste=())
        expense = _expense("Quokkaenergy fattura")

        self.assertEqual(classify_expense(expense), ExpenseClass.VARIABLE)
        self.assertEqual(classify_expense(expense, registry), ExpenseClass.UTILITY_BILL)
        self.assertEqual(tag_expense(expense, registry).detected_provider, "Quokkaenergy")

    def test_classification_is_deterministic(self) -> None:
        expenses = [
            _expense("Rata 1/12", id="a"),
            _expense("Spotify", id="b"),
            _expense("Supermercato", id="c"),
        ]
        self.assertEqual(classify_expenses(expenses), classify_expenses(expenses))

    def test_billing_cycle_from_period(self) -> None:
        expense = _expense("Bolletta", bill_period_start=date(2024, 1, 1), bill_period_end=date(2024, 3, 1))
        self.assertEqual(detect_billing_cycle(expense), "bimonthly")
        self.assertEqual(detect_billing_cycle(_expense("Bolletta")), "monthly")


class CreditCardBookingTests(unittest.TestCase):
    def test_purchase_books_on_tenth_of_next_month(self) -> None:
        self.assertEqual(credit_card_booked_date(date(2024, 3, 15)), date(2024, 4, 10))
        self.assertEqual(credit_card_booked_date(date(2024, 12, 31)), date(2025, 1, 10))

    def test_card_expense_is_booked_only_from_statement_day(self) -> None:
        expense = _expense("Libreria", payment_method=PaymentMethod.CARTA_CREDITO)

        self.assertEqual(classify_expense(expense), ExpenseClass.CREDIT_CARD)
        self.assertFalse(is_credit_card_booked(expense, date(2024, 4, 9)))
        self.assertTrue(is_credit_card_booked(expense, date(2024, 4, 10)))
        self.assertTrue(is_credit_card_booked(_expense("Libreria"), date(2024, 3, 1)))


if __name__ == "__main__":
    unittest.main()
