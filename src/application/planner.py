from __future__ import annotations

import logging
from datetime import date

from domain.schemas import DashboardPlan, DashboardRequest, PlanCall
from forecasting.months import month_key
from tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

PRIMARY_VIEWS: tuple[tuple[str, str], ...] = (
    ("ledger.classify_expenses", "Bucket expenses and tag family transfers"),
    ("detect.bill_cycles", "Project utility bills per provider"),
    ("forecast.budget_months", "Monthly budget with carryover and savings"),
    ("forecast.work_plan", "Work days needed and pension goal"),
)

SECONDARY_VIEWS: tuple[tuple[str, str], ...] = (
    ("forecast.budget_months", "Monthly budget funded by family transfers"),
    ("ledger.accumulated_budget", "Running family budget and carryover"),
    ("ledger.classify_expenses", "Bucket own expenses"),
)


class PlannerService:
    """Maps a dashboard request to an ordered list of tool calls."""

    def __init__(self, registry: ToolRegistry):
        self._registry = registry

    def plan(self, request: DashboardRequest, today: date | None = None) -> DashboardPlan:
        defaults = PRIMARY_VIEWS if request.role == "primary" else SECONDARY_VIEWS
        purposes = dict(defaults)
        views = list(request.views) or [name for name, _ in defaults]

        calls: list[PlanCall] = []
        for idx, tool in enumerate(views, start=1):
            if not self._registry.has_tool(tool):
                logger.warning("PlannerService skipping unknown view request_id=%s tool=%s", request.request_id, tool)
                continue
            args = dict(request.args.get(tool, {}))
            if today is not None:
                args.setdefault("today", today.isoformat())
            if tool == "ledger.accumulated_budget":
                args.setdefault("target_month", month_key(today or date.today()))
            calls.append(PlanCall(id=f"t{idx}", tool=tool, args=args, purpose=purposes.get(tool, "Requested view")))

        logger.info(
            "PlannerService planned request_id=%s role=%s calls=%d",
            request.request_id,
            request.role,
            len(calls),
        )
        return DashboardPlan(objective=f"{request.role} dashboard for {request.user_id}", calls=calls)
