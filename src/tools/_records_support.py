from __future__ import annotations

from datetime import date
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from domain.models import Household
from domain.schemas import HouseholdArgs, ToolRequest
from infrastructure.get_records import UserRecords, get_records

M = TypeVar("M", bound=BaseModel)
_JSON: TypeAdapter[Any] = TypeAdapter(Any)


def parse_args(model: type[M], request: ToolRequest) -> M:
    args = request.args if isinstance(request.args, dict) else {}
    try:
        return model.model_validate(args)
    except ValidationError as exc:
        raise ValueError(f"Invalid arguments for {request.tool}: {exc}") from exc


def load_user_records(request: ToolRequest) -> UserRecords:
    return load_records_for(request.context.user_id, request)


def reference_day(value: date | None) -> date:
    return value or date.today()


def household_from(args: HouseholdArgs) -> Household:
    return Household(secondary_payers=frozenset(args.secondary_payers), own_payer=args.own_payer)


def to_jsonable(value: Any) -> Any:
    """Dataclass projections (dates, enums, tuples) to plain JSON values."""
    return _JSON.dump_python(value, mode="json")


def load_records_for(user_id: str, request: ToolRequest) -> UserRecords:
    sources = request.args.get("sources") if isinstance(request.args, dict) else None
    return get_records.load(user_id, sources=sources)
