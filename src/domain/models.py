from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class PaymentMethod(str, Enum):
    CONTANTI = "contanti"
    BANCOMAT = "bancomat"
    CARTA_CREDITO = "carta_credito"
    BONIFICO = "bonifico"


class BillType(str, Enum):
    LUCE = "luce"
    GAS = "gas"
    ACQUA = "acqua"
    TELEFONO = "telefono"
    INTERNET = "internet"
    RIFIUTI = "rifiuti"
    CONDOMINIO = "condominio"
    ALTRO = "altro"


class InvoiceStatus(str, Enum):
    BOZZA = "bozza"
    INVIATA = "inviata"
    PARZIALE = "parziale"
    PAGATA = "pagata"


class LegacyCategory(str, Enum):
    FISSA = "fissa"
    VARIABILE = "variabile"
    CARTA_CREDITO = "carta_credito"
    CASA = "casa"
    SALUTE = "salute"
    TRASPORTI = "trasporti"
    CIBO = "cibo"
    SVAGO = "svago"
    ABBONAMENTI = "abbonamenti"
    ANIMALI = "animali"
    VIAGGI = "viaggi"
    VARIE = "varie"


class ExpenseClass(str, Enum):
    VARIABLE = "variable"
    FIXED_LOAN = "fixed_loan"
    FIXED_SUB = "fixed_sub"
    UTILITY_BILL = "utility_bill"
    CREDIT_CARD = "credit_card"


class UtilityType(str, Enum):
    ENERGY = "energy"
    WATER = "water"
    TELECOM = "telecom"
    STREAMING = "streaming"
    WASTE = "waste"
    CONDOMINIUM = "condominium"


class ExpectedExpenseKind(str, Enum):
    UNA_TANTUM = "una_tantum"
    RICORRENTE = "ricorrente"


class TransferDirection(str, Enum):
    SENT = "sent"
    RECEIVED = "received"


class WorkPlanStatus(str, Enum):
    OK = "ok"
    SURPLUS = "surplus"
    DEFICIT = "deficit"


UNKNOWN_PROVIDER = "Sconosciuto"


@dataclass(frozen=True)
class Expense:
    id: str
    description: str
    amount: float
    date: date
    booked_date: date | None = None
    purchase_date: date | None = None
    category: LegacyCategory | None = None
    category_parent: str | None = None
    category_child: str | None = None
    payment_method: PaymentMethod | None = None
    recurring: bool = False
    bill_type: BillType | None = None
    bill_provider: str | None = None
    bill_period_start: date | None = None
    bill_period_end: date | None = None
    consumption_value: float | None = None
    consumption_unit: str | None = None
    is_paid: bool | None = None
    paid_at: date | None = None
    paid_by: str | None = None
    subscription_type: str | None = None
    linked_transfer_id: str | None = None
    is_family_expense: bool = False

    @property
    def is_bill(self) -> bool:
        return self.bill_type is not None

    @property
    def effective_date(self) -> date:
        return self.booked_date or self.date


@dataclass(frozen=True)
class Invoice:
    id: str
    status: InvoiceStatus
    invoice_date: date
    due_date: date
    total_amount: float
    paid_amount: float = 0.0
    paid_date: date | None = None
    stored_remaining_amount: float | None = None
    exclude_from_budget: bool = False

    @property
    def remaining_amount(self) -> float:
        if self.status == InvoiceStatus.PAGATA:
            return 0.0
        if self.stored_remaining_amount is not None:
            return self.stored_remaining_amount
        return self.total_amount - self.paid_amount


@dataclass(frozen=True)
class BudgetTransfer:
    id: str
    from_user_id: str
    to_user_id: str
    amount: float
    month: str
    description: str = ""
    transfer_date: date | None = None
    bank_row_key: str | None = None


@dataclass(frozen=True)
class ExpectedExpense:
    id: str
    description: str
    amount: float
    expected_date: date
    kind: ExpectedExpenseKind = ExpectedExpenseKind.UNA_TANTUM
    recurrence_months: int | None = None
    is_completed: bool = False


@dataclass(frozen=True)
class Household:
    """Who pays for what: drives which expenses each profile sees."""

    secondary_payers: frozenset[str] = frozenset()
    own_payer: str | None = None


@dataclass(frozen=True)
class ExpenseTags:
    expense_id: str
    expense_class: ExpenseClass
    is_family_transfer: bool
    detected_provider: str | None = None
    billing_cycle: str | None = None


@dataclass(frozen=True)
class BillDetail:
    provider: str
    bill_type: BillType
    amount: float
    is_forecast: bool
    is_actual: bool = False


@dataclass(frozen=True)
class ProviderForecast:
    bill_type: BillType
    provider: str
    avg_amount: float
    billing_frequency_months: int
    last_bill_date: date
    next_bill_dates: tuple[date, ...] = ()
    count: int = 0

    @property
    def avg_monthly(self) -> float:
        return self.avg_amount / self.billing_frequency_months


@dataclass(frozen=True)
class MonthlyBillForecast:
    month: date
    month_key: str
    total_estimated: float
    bills: tuple[BillDetail, ...] = ()


@dataclass(frozen=True)
class OverspendAllocation:
    month: str
    amount: float


@dataclass(frozen=True)
class BudgetMonthSummary:
    month: date
    month_key: str
    expected_income: float
    received_income: float
    total_income: float
    available_income: float
    fixed_expenses: float
    variable_expenses: float
    credit_card_expenses: float
    bill_expenses: float
    total_expenses: float
    carryover: float
    overspend_allocated: float
    savings_monthly: float
    savings_accumulated: float
    applied_savings_rate: float
    already_spent: float
    spendable: float
    real_spendable: float
    forecast_spendable: float
    balance: float
    pending_income: float
    is_estimated_bills: bool
    is_current_month: bool
    is_past_month: bool
    bill_details: tuple[BillDetail, ...] = ()


@dataclass(frozen=True)
class BudgetForecast:
    summaries: tuple[BudgetMonthSummary, ...]
    current_month: BudgetMonthSummary | None
    future_months: tuple[BudgetMonthSummary, ...]
    past_months: tuple[BudgetMonthSummary, ...]
    provider_forecasts: tuple[ProviderForecast, ...]
    total_bill_estimate: float

    @property
    def bill_forecasts(self) -> list[dict[str, Any]]:
        return [
            {"bill_type": f.bill_type.value, "provider": f.provider, "avg_monthly": f.avg_monthly}
            for f in self.provider_forecasts
        ]


@dataclass(frozen=True)
class AccumulatedBudget:
    remaining: float
    carryover: float
    has_negative_history: bool


@dataclass(frozen=True)
class WorkPlanMonth:
    month: date
    month_key: str
    carryover: float
    cash_in_from_due: float
    draft_income: float
    planned_work: float
    expected_income: float
    invoices_worked: float
    fixed_expenses: float
    variable_expenses: float
    bill_expenses: float
    pension_contribution: float
    family_transfers: float
    expected_expenses: float
    total_expenses: float
    estimated_expenses: float
    actual_expenses: float
    balance: float
    cumulative_balance: float
    work_days_needed: int
    work_days_extra: int
    status: WorkPlanStatus
    deficit_amount: float
    surplus_amount: float
    historical_work_days: int
    historical_income: float
    historical_month_key: str
    work_days_difference: int


@dataclass(frozen=True)
class WorkPlanSummary:
    average_work_days: float
    total_deficit_months: int
    total_surplus_months: int
    critical_months: tuple[str, ...]
    annual_surplus: float
    annual_deficit: float
    final_balance: float
    recommended_buffer: float


@dataclass(frozen=True)
class PensionGoal:
    target_amount: float
    target_years: int
    expected_return_rate: float
    required_monthly_contribution: float
    current_monthly_contribution: float
    gap_monthly: float
    extra_work_days_needed: int
    projected_final_amount: float
    total_contributions: float
    total_returns: float


@dataclass(frozen=True)
class HistoricalMonth:
    month_number: int
    year: int
    month_key: str
    total_income: float
    work_days: float
    invoice_count: int


@dataclass(frozen=True)
class HistoricalSummary:
    total_income: float
    total_work_days: int
    average_work_days_per_month: int
    month_count: int
    top_month: int | None
    top_month_days: int
    reference_year: int


@dataclass(frozen=True)
class WorkPlan:
    months: tuple[WorkPlanMonth, ...]
    summary: WorkPlanSummary
    pension_goal: PensionGoal | None
    historical_summary: HistoricalSummary
    starting_balance: float
    real_banking_balance: float
    forecast_carryover: float
    use_forecast_mode: bool
    settings: dict[str, Any] = field(default_factory=dict)
