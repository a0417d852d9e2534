from __future__ import annotations

from domain.schemas import BudgetForecastArgs, ToolRequest, ToolResponse
from forecasting.budget import ForecastOptions, forecast_budget
from tools._records_support import household_from, load_user_records, parse_args, reference_day, to_jsonable
from tools.base import Tool, ToolSpec
from tools.registry import register_tool


@register_tool
class BudgetForecastTool(Tool):
    name = "forecast.budget_months"
    description = (
        "Monthly budget summaries with real and forecast carryover, dynamic savings, "
        "overspend redistribution and projected utility bills. Secondary profiles use received "
        "family transfers as income."
    )

    def run(self, request: ToolRequest) -> ToolResponse:
        args = parse_args(BudgetForecastArgs, request)
        records = load_user_records(request)
        user_id = request.context.user_id
        is_secondary = request.context.role == "secondary"

        options = ForecastOptions(
            horizon_months=args.horizon_months,
            forecast_months=args.forecast_months,
            past_months=args.past_months,
            already_spent=args.already_spent,
            family_transfers=tuple(t for t in records.transfers if t.to_user_id == user_id) if is_secondary else (),
            is_secondary=is_secondary,
            household=household_from(args.household),
        )
        forecast = forecast_budget(records.invoices, records.expenses, options, reference_day(args.today))

        result = {
            "summaries": to_jsonable(forecast.summaries),
            "current_month": forecast.current_month.month_key if forecast.current_month else None,
            "future_month_keys": [s.month_key for s in forecast.future_months],
            "past_month_keys": [s.month_key for s in forecast.past_months],
            "provider_forecasts": to_jsonable(forecast.provider_forecasts),
            "bill_forecasts": forecast.bill_forecasts,
            "total_bill_estimate": round(forecast.total_bill_estimate, 2),
            "is_secondary": is_secondary,
        }
        return self.respond(request, result)

    def spec(self) -> ToolSpec:
        return ToolSpec(name=self.name, description=self.description, args_schema=BudgetForecastArgs.model_json_schema())
