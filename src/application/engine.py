from __future__ import annotations

import logging
import time
from dataclasses import asdict
from datetime import date

from application.planner import PlannerService
from application.tool_executor import ToolExecutor
from application.validator import ValidationIssue, ValidatorService
from domain.schemas import DashboardRequest, DashboardResponse
from infrastructure.get_records import GetRecords
from infrastructure.ledger_providers.provider import RecordProviderError

logger = logging.getLogger(__name__)


class BudgetDashboardEngine:
    def __init__(
        self,
        planner: PlannerService,
        tool_executor: ToolExecutor,
        validator: ValidatorService,
        records: GetRecords,
    ):
        self._planner = planner
        self._tool_executor = tool_executor
        self._validator = validator
        self._records = records

    def run(self, request: DashboardRequest, today: date | None = None) -> DashboardResponse:
        logger.info("Engine run start request_id=%s user_id=%s role=%s", request.request_id, request.user_id, request.role)
        t0 = time.perf_counter()

        t = time.perf_counter()
        plan = self._planner.plan(request, today=today)
        logger.info("Planner complete in %.2fs calls=%d", time.perf_counter() - t, len(plan.calls))

        t = time.perf_counter()
        try:
            record_issues = self._validator.validate_records(self._records.load(request.user_id))
        except RecordProviderError as exc:
            logger.exception("Engine could not load records user_id=%s", request.user_id)
            record_issues = [ValidationIssue(code="RECORDS_UNAVAILABLE", message=str(exc), path="records")]
        logger.info("Record validation complete in %.2fs issues=%d", time.perf_counter() - t, len(record_issues))

        t = time.perf_counter()
        results = self._tool_executor.run_calls(plan, request)
        logger.info("Tool execution complete in %.2fs responses=%d", time.perf_counter() - t, len(results))

        issues = record_issues + self._validator.validate_responses(results)
        logger.info("Engine run complete in %.2fs issues=%d", time.perf_counter() - t0, len(issues))
        return DashboardResponse(
            request_id=request.request_id,
            user_id=request.user_id,
            results=results,
            issues=[asdict(issue) for issue in issues],
        )
