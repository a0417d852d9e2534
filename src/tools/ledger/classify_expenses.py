from __future__ import annotations

from collections import Counter

from domain.schemas import ClassifyArgs, ToolRequest, ToolResponse
from forecasting.classifier import classify_expenses
from forecasting.months import month_key
from tools._records_support import load_user_records, parse_args, to_jsonable
from tools.base import Tool, ToolSpec
from tools.registry import register_tool


@register_tool
class ClassifyExpensesTool(Tool):
    name = "ledger.classify_expenses"
    description = (
        "Classify expenses into variable, fixed_loan, fixed_sub, utility_bill or credit_card, "
        "tagging family transfers, detected utility providers and billing cycles. "
        "Optional `month` (yyyy-MM) restricts the expenses."
    )

    def run(self, request: ToolRequest) -> ToolResponse:
        args = parse_args(ClassifyArgs, request)
        records = load_user_records(request)
        expenses = [e for e in records.expenses if args.month is None or month_key(e.date) == args.month]

        tags = classify_expenses(expenses)
        amounts = {e.id: e.amount for e in expenses}
        totals: Counter[str] = Counter()
        for tag in tags:
            totals[tag.expense_class.value] += amounts[tag.expense_id]

        result = {
            "month": args.month,
            "expense_count": len(expenses),
            "tags": to_jsonable(tags),
            "totals_by_class": {name: round(total, 2) for name, total in totals.items()},
            "family_transfer_ids": [t.expense_id for t in tags if t.is_family_transfer],
        }
        return self.respond(request, result)

    def spec(self) -> ToolSpec:
        return ToolSpec(name=self.name, description=self.description, args_schema=ClassifyArgs.model_json_schema())
