from __future__ import annotations

from datetime import datetime

from application.engine import BudgetDashboardEngine
from application.planner import PlannerService
from application.tool_executor import ToolExecutor
from application.transfers import TransferService
from application.validator import ValidatorService
from domain.schemas import DashboardRequest
from infrastructure.get_records import get_records
from infrastructure.settings.financial_settings import FinancialSettingsStore
from tools.registry import registry


def build_engine() -> BudgetDashboardEngine:
    import tools  # noqa: F401

    return BudgetDashboardEngine(
        planner=PlannerService(registry=registry),
        tool_executor=ToolExecutor(registry),
        validator=ValidatorService(),
        records=get_records,
    )


def build_transfer_service() -> TransferService | None:
    store = get_records.transfer_store()
    return TransferService(store) if store is not None else None


def build_settings_store() -> FinancialSettingsStore:
    return FinancialSettingsStore(get_records.settings_store())


def main() -> None:
    user_id = input("Budgetcast user id > ").strip() or "u_cli"
    role = input("Role [primary/secondary] > ").strip().lower() or "primary"
    if role not in ("primary", "secondary"):
        role = "primary"

    request = DashboardRequest(
        request_id=f"req_cli_{datetime.now().strftime('%Y%m%d%H%M%S')}",
        user_id=user_id,
        role=role,
    )
    engine = build_engine()
    response = engine.run(request)
    print(response.model_dump_json(indent=2, by_alias=True))


if __name__ == "__main__":
    main()
