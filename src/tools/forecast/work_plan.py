from __future__ import annotations

from domain.schemas import ToolRequest, ToolResponse, WorkPlanArgs
from forecasting.work_plan import WorkPlanOptions, build_work_plan
from infrastructure.settings.financial_settings import FinancialSettingsStore
from tools._records_support import load_user_records, parse_args, reference_day, to_jsonable
from tools.base import Tool, ToolSpec
from tools.registry import register_tool


@register_tool
class WorkPlanTool(Tool):
    name = "forecast.work_plan"
    description = (
        "Freelancer work plan: per-month expected cash, expenses, cumulative balance and work days "
        "needed at the daily rate, with a pension goal and last-year comparison."
    )

    def __init__(self, settings_store: FinancialSettingsStore | None = None) -> None:
        self._settings_store = settings_store or FinancialSettingsStore()

    def run(self, request: ToolRequest) -> ToolResponse:
        args = parse_args(WorkPlanArgs, request)
        records = load_user_records(request)
        settings = self._settings_store.resolve(records.settings)

        plan = build_work_plan(
            records.invoices,
            records.expenses,
            transfers=[t for t in records.transfers if t.from_user_id == request.context.user_id],
            expected_expenses=records.expected_expenses,
            settings=settings,
            options=WorkPlanOptions(
                forecast_months=args.forecast_months,
                include_drafts=args.include_drafts,
                use_forecast_mode=args.use_forecast_mode,
            ),
            today=reference_day(args.today),
        )
        return self.respond(request, to_jsonable(plan))

    def spec(self) -> ToolSpec:
        return ToolSpec(name=self.name, description=self.description, args_schema=WorkPlanArgs.model_json_schema())
