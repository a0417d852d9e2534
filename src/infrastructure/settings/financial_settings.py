from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from domain.schemas import FinancialSettings
from infrastructure.ledger_providers.provider import SettingsStore

logger = logging.getLogger(__name__)


class FinancialSettingsStore:
    """Per-user financial settings: stored overrides merged over the defaults."""

    def __init__(self, store: SettingsStore | None = None) -> None:
        self._store = store
        self._defaults = FinancialSettings()

    @property
    def defaults(self) -> FinancialSettings:
        return self._defaults

    def resolve(self, overrides: dict[str, Any] | None) -> FinancialSettings:
        merged = {**self._defaults.model_dump(), **{k: v for k, v in (overrides or {}).items() if v is not None}}
        return FinancialSettings.model_validate(merged)

    def fetch_settings(self, user_id: str) -> FinancialSettings:
        stored = self._store.load_settings(user_id) if self._store else None
        return self.resolve(stored)

    def upsert_settings(self, user_id: str, updates: dict[str, Any]) -> FinancialSettings:
        if self._store is None:
            raise RuntimeError("No settings store configured")
        current = self._store.load_settings(user_id) or {}
        try:
            resolved = self.resolve({**current, **updates})
        except ValidationError as exc:
            raise ValueError(f"Invalid financial settings: {exc}") from exc
        self._store.save_settings(user_id, resolved.model_dump(mode="json"))
        logger.info("Financial settings saved user=%s keys=%s", user_id, sorted(updates))
        return resolved
