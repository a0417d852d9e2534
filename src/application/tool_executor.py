from __future__ import annotations

import logging
import time

from domain.schemas import DashboardPlan, DashboardRequest, ToolContext, ToolRequest, ToolResponse
from tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolExecutor:
    def __init__(self, registry: ToolRegistry):
        self._registry = registry

    def run_calls(self, plan: DashboardPlan, request: DashboardRequest) -> list[ToolResponse]:
        context = ToolContext(user_id=request.user_id, role=request.role)
        return [
            self.run(ToolRequest(request_id=f"{request.request_id}:{call.id}", tool=call.tool, args=call.args, context=context))
            for call in plan.calls
        ]

    def run(self, req: ToolRequest) -> ToolResponse:
        logger.info("ToolExecutor running request_id=%s tool=%s", req.request_id, req.tool)
        t = time.perf_counter()
        try:
            tool = self._registry.get_tool(req.tool)
            response = tool.run(req)
        except Exception as exc:
            logger.exception("ToolExecutor failed request_id=%s tool=%s", req.request_id, req.tool)
            response = ToolResponse(
                request_id=req.request_id,
                tool=req.tool,
                ok=False,
                errors=[str(exc) or exc.__class__.__name__],
                context=req.context,
            )
        logger.info(
            "ToolExecutor finished request_id=%s tool=%s in %.2fs ok=%s",
            req.request_id,
            req.tool,
            time.perf_counter() - t,
            response.ok,
        )
        return response
