from __future__ import annotations

from domain.schemas import SuggestCategoriesArgs, ToolRequest, ToolResponse
from infrastructure.ai.categorizer_client import CategorizerClient, auto_selected
from tools._records_support import load_user_records, parse_args
from tools.base import Tool, ToolSpec
from tools.registry import register_tool


@register_tool
class SuggestCategoriesTool(Tool):
    name = "ledger.suggest_categories"
    description = (
        "Ask the categorization service for category suggestions on uncategorized expenses; "
        "suggestions at or above the confidence threshold are marked for auto-selection."
    )

    def __init__(self, client: CategorizerClient | None = None) -> None:
        self._client = client or CategorizerClient()

    def run(self, request: ToolRequest) -> ToolResponse:
        args = parse_args(SuggestCategoriesArgs, request)
        records = load_user_records(request)

        wanted = set(args.expense_ids)
        expenses = [
            e
            for e in records.expenses
            if (not wanted or e.id in wanted) and not (args.only_uncategorized and e.category_parent)
        ]
        suggestions = self._client.suggest(expenses, request.context.user_id)
        selected = {s.expense_id for s in auto_selected(suggestions, args.threshold)}

        result = {
            "requested_count": len(expenses),
            "suggestions": [
                {**s.model_dump(), "auto_selected": s.expense_id in selected} for s in suggestions
            ],
            "auto_selected_count": len(selected),
            "service_configured": self._client.configured,
        }
        return self.respond(request, result)

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name=self.name, description=self.description, args_schema=SuggestCategoriesArgs.model_json_schema()
        )
