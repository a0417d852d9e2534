from __future__ import annotations

from domain.schemas import BillCycleArgs, ToolRequest, ToolResponse
from forecasting.bill_cycle import (
    average_monthly_bill_estimate,
    estimate_provider_forecasts,
    monthly_bill_forecast,
    pending_bills,
    total_bill_estimate,
)
from tools._records_support import load_user_records, parse_args, reference_day, to_jsonable
from tools.base import Tool, ToolSpec
from tools.registry import register_tool


@register_tool
class BillCyclesTool(Tool):
    name = "detect.bill_cycles"
    description = (
        "Infer each utility provider's billing frequency and average bill from paid bills, "
        "and project the next bill dates month by month."
    )

    def run(self, request: ToolRequest) -> ToolResponse:
        args = parse_args(BillCycleArgs, request)
        records = load_user_records(request)
        today = reference_day(args.today)

        forecasts = estimate_provider_forecasts(records.expenses, today, args.forecast_months)
        months = monthly_bill_forecast(records.expenses, today, args.forecast_months, forecasts=forecasts)
        pending = pending_bills(records.expenses)

        result = {
            "provider_forecasts": to_jsonable(forecasts),
            "monthly_forecasts": to_jsonable(months),
            "pending_bills": [
                {"id": b.id, "provider": b.bill_provider, "bill_type": b.bill_type.value, "amount": b.amount}
                for b in pending
            ],
            "total_bill_estimate": round(total_bill_estimate(forecasts), 2),
            "average_monthly_estimate": round(average_monthly_bill_estimate(months), 2),
        }
        return self.respond(request, result)

    def spec(self) -> ToolSpec:
        return ToolSpec(name=self.name, description=self.description, args_schema=BillCycleArgs.model_json_schema())
