from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MONTH_KEY_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

ProfileRole = Literal["primary", "secondary"]


def coerce_date_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return value

    text = value.strip()
    if not text:
        return None

    # Canonical format first.
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%d/%m/%Y", "%d-%m-%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return value


def validate_month_key(value: str) -> str:
    text = str(value).strip()
    if not MONTH_KEY_RE.match(text):
        raise ValueError(f"month must be a yyyy-MM key, got {value!r}")
    return text


class ToolContext(BaseModel):
    user_id: str
    role: ProfileRole = "primary"
    timezone: str = "Europe/Rome"


class ToolRequest(BaseModel):
    request_id: str
    tool: str
    args: Dict[str, Any] = Field(default_factory=dict)
    context: ToolContext


class ToolResponse(BaseModel):
    request_id: str
    tool: str
    ok: bool = True
    result: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
    context: ToolContext


class _DatedArgs(BaseModel):
    today: Optional[date] = Field(
        default=None,
        description="Reference day for past/current/future month decisions (YYYY-MM-DD). Defaults to the real today.",
    )

    @field_validator("today", mode="before")
    @classmethod
    def coerce_today(cls, value: Any) -> Any:
        return coerce_date_value(value)


class HouseholdArgs(BaseModel):
    secondary_payers: List[str] = Field(
        default_factory=list,
        description="Payer names (spouse, dependents) whose expenses a primary profile does not see.",
    )
    own_payer: Optional[str] = Field(
        default=None,
        description="Payer name of a secondary profile; only its expenses are counted.",
    )


class BudgetForecastArgs(_DatedArgs):
    horizon_months: int = Field(default=3, ge=0, description="Future months an overspend is spread over.")
    forecast_months: int = Field(default=12, ge=1, description="Months projected from the current month.")
    past_months: int = Field(default=0, ge=0, description="Past months included before the current month.")
    already_spent: float = Field(default=0.0, description="Manual adjustment subtracted from the current month.")
    household: HouseholdArgs = Field(default_factory=HouseholdArgs)


class WorkPlanArgs(_DatedArgs):
    forecast_months: int = Field(default=12, ge=1)
    include_drafts: bool = False
    use_forecast_mode: bool = True


class BillCycleArgs(_DatedArgs):
    forecast_months: int = Field(default=12, ge=1)


class ClassifyArgs(BaseModel):
    month: Optional[str] = None

    @field_validator("month")
    @classmethod
    def check_month(cls, value: Optional[str]) -> Optional[str]:
        return validate_month_key(value) if value is not None else None


class AccumulatedBudgetArgs(BaseModel):
    target_month: str
    direction: Literal["sent", "received"] = "received"
    counterpart_user_id: Optional[str] = Field(
        default=None,
        description="For direction=sent, whose expenses are charged against the transfers. Defaults to the caller.",
    )
    expenses_by_month: Optional[Dict[str, float]] = None

    @field_validator("target_month")
    @classmethod
    def check_target_month(cls, value: str) -> str:
        return validate_month_key(value)


class SuggestCategoriesArgs(BaseModel):
    expense_ids: List[str] = Field(default_factory=list)
    only_uncategorized: bool = True
    threshold: float = Field(default=0.7, ge=0.0, le=1.0)


class PlanCall(BaseModel):
    id: str
    tool: str
    args: Dict[str, Any] = Field(default_factory=dict)
    purpose: str


class DashboardPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    schema_version: str = Field(default="budgetcast.plan.v1", alias="schema")
    objective: str
    calls: List[PlanCall] = Field(default_factory=list)


class DashboardRequest(BaseModel):
    request_id: str
    user_id: str
    role: ProfileRole = "primary"
    views: List[str] = Field(
        default_factory=list,
        description="Tool names to run. Empty means the default set for the role.",
    )
    args: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Per-tool argument overrides keyed by tool name.",
    )


class DashboardResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    schema_version: str = Field(default="budgetcast.dashboard.v1", alias="schema")
    request_id: str
    user_id: str
    results: List[ToolResponse] = Field(default_factory=list)
    issues: List[Dict[str, Any]] = Field(default_factory=list)


class FinancialSettings(BaseModel):
    daily_rate: float = 500.0
    pension_monthly_amount: float = 0.0
    sp500_return_rate: float = 0.10
    pension_target_amount: float = 0.0
    pension_target_years: int = 20
    payment_delay_days: int = 60
    estimated_fixed_costs: float = 0.0
    estimated_variable_costs: float = 0.0
    estimated_bills_costs: float = 0.0
    use_manual_estimates: bool = True
    initial_balance: float = 0.0
    initial_balance_date: Optional[date] = None
    use_custom_initial_balance: bool = False

    @field_validator("initial_balance_date", mode="before")
    @classmethod
    def coerce_balance_date(cls, value: Any) -> Any:
        return coerce_date_value(value)


class TransferCreate(BaseModel):
    from_user_id: str
    to_user_id: str
    amount: float
    month: str
    description: Optional[str] = None
    transfer_date: Optional[date] = None
    bank_row_key: Optional[str] = None

    @field_validator("month")
    @classmethod
    def check_month(cls, value: str) -> str:
        return validate_month_key(value)

    @field_validator("transfer_date", mode="before")
    @classmethod
    def coerce_transfer_date(cls, value: Any) -> Any:
        return coerce_date_value(value)


class TransferBulkRow(TransferCreate):
    from_user_id: Optional[str] = None  # type: ignore[assignment]
    to_user_id: Optional[str] = None  # type: ignore[assignment]


class TransferBulkRequest(BaseModel):
    user_id: str
    rows: List[TransferBulkRow] = Field(default_factory=list)


class BulkImportResult(BaseModel):
    imported_count: int
    skipped_count: int
    transfer_ids: List[str] = Field(default_factory=list)


class CategorySuggestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    expense_id: str = Field(alias="expenseId")
    category_parent: str = Field(default="altro", alias="categoryParent")
    category_child: Optional[str] = Field(default=None, alias="categoryChild")
    confidence: float = 0.0
    reasoning: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def accept_id_alias(cls, data: Any) -> Any:
        if isinstance(data, dict) and "expenseId" not in data and "expense_id" not in data and "id" in data:
            data = {**data, "expenseId": data["id"]}
        return data
