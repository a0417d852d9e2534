from __future__ import annotations

from collections import defaultdict

from domain.models import Expense, TransferDirection
from domain.schemas import AccumulatedBudgetArgs, ToolRequest, ToolResponse
from forecasting.carryover import accumulate_budget, total_transferred_for_month
from forecasting.months import month_key
from tools._records_support import load_records_for, load_user_records, parse_args, to_jsonable
from tools.base import Tool, ToolSpec
from tools.registry import register_tool


def spending_by_month(expenses: list[Expense]) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for expense in expenses:
        totals[month_key(expense.date)] += expense.amount
    return dict(totals)


@register_tool
class AccumulatedBudgetTool(Tool):
    name = "ledger.accumulated_budget"
    description = (
        "Running family budget up to a target month: transfers received (or sent) minus spending, "
        "with a carryover that keeps negative history."
    )

    def run(self, request: ToolRequest) -> ToolResponse:
        args = parse_args(AccumulatedBudgetArgs, request)
        records = load_user_records(request)
        user_id = request.context.user_id
        direction = TransferDirection(args.direction)

        spent = args.expenses_by_month
        if spent is None:
            spender = records
            if args.counterpart_user_id and args.counterpart_user_id != user_id:
                spender = load_records_for(args.counterpart_user_id, request)
            spent = spending_by_month(list(spender.expenses))

        budget = accumulate_budget(records.transfers, user_id, args.target_month, direction, spent)
        result = {
            "target_month": args.target_month,
            "direction": direction.value,
            **to_jsonable(budget),
            "month_budget": total_transferred_for_month(records.transfers, user_id, args.target_month, direction),
            "month_spent": spent.get(args.target_month, 0.0),
        }
        return self.respond(request, result)

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name=self.name, description=self.description, args_schema=AccumulatedBudgetArgs.model_json_schema()
        )
