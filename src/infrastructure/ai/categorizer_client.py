from __future__ import annotations

import json
import logging
import os
import socket
import time
import urllib.error
import urllib.request
from typing import Any, Iterable

from pydantic import ValidationError

from domain.categories import normalize_ai_child, normalize_ai_parent
from domain.models import Expense
from domain.schemas import CategorySuggestion

logger = logging.getLogger(__name__)

AUTO_SELECT_THRESHOLD = 0.7


class CategorizerClient:
    """Client for the hosted expense-categorization function."""

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.url = url or os.getenv("CATEGORIZER_URL", "")
        self.api_key = api_key or os.getenv("CATEGORIZER_API_KEY", "")
        self.timeout_seconds = timeout_seconds or float(os.getenv("CATEGORIZER_TIMEOUT_SECONDS", "30"))

    @property
    def configured(self) -> bool:
        return bool(self.url)

    def suggest(self, expenses: Iterable[Expense], user_id: str) -> list[CategorySuggestion]:
        items = [
            {"id": e.id, "description": e.description, "amount": e.amount, "date": e.date.isoformat()}
            for e in expenses
        ]
        if not items:
            return []
        if not self.configured:
            logger.warning("CategorizerClient has no CATEGORIZER_URL; skipping %d expenses", len(items))
            return []

        body = self._post({"expenses": items, "userId": user_id})
        if not body:
            return []
        if body.get("error"):
            logger.warning("CategorizerClient service error: %s", body["error"])
            return []
        return self._parse_suggestions(body.get("suggestions"))

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        started = time.perf_counter()
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        req = urllib.request.Request(
            url=self.url,
            data=json.dumps(payload).encode("utf-8"),
            headers=headers,
            method="POST",
        )
        try:
            logger.info(
                "CategorizerClient request start url=%s expenses=%d timeout=%.1fs",
                self.url,
                len(payload.get("expenses", [])),
                self.timeout_seconds,
            )
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                body = json.loads(resp.read().decode("utf-8"))
        except (socket.timeout, urllib.error.URLError, TimeoutError, json.JSONDecodeError) as exc:
            elapsed = time.perf_counter() - started
            logger.warning("CategorizerClient request failed after %.2fs: %s", elapsed, exc)
            # Fail-soft: uncategorized expenses simply stay uncategorized.
            return {}

        elapsed = time.perf_counter() - started
        logger.info("CategorizerClient request complete in %.2fs", elapsed)
        return body if isinstance(body, dict) else {}

    def _parse_suggestions(self, raw: Any) -> list[CategorySuggestion]:
        if not isinstance(raw, list):
            return []
        suggestions: list[CategorySuggestion] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            try:
                suggestion = CategorySuggestion.model_validate(item)
            except ValidationError as exc:
                logger.warning("CategorizerClient dropped malformed suggestion: %s", exc)
                continue
            suggestions.append(
                suggestion.model_copy(
                    update={
                        "category_parent": normalize_ai_parent(suggestion.category_parent),
                        "category_child": normalize_ai_child(suggestion.category_child),
                    }
                )
            )
        return suggestions


def auto_selected(
    suggestions: Iterable[CategorySuggestion],
    threshold: float = AUTO_SELECT_THRESHOLD,
) -> list[CategorySuggestion]:
    return [s for s in suggestions if s.confidence >= threshold]
