"""Shared pydantic base for domain models."""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DomainModel(BaseModel):
    """Immutable model exported with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


def normalize_line_range(data: dict, start_key: str, end_key: str) -> dict:
    """Clamp start to >= 1 and default a missing or smaller end to start.

    Works on raw input before validation, so both snake_case and camelCase
    keys are checked.
    """
    if not isinstance(data, dict):
        return data

    data = dict(data)
    start_alias = to_camel(start_key)
    end_alias = to_camel(end_key)

    start_field = start_alias if start_alias in data and start_key not in data else start_key
    end_field = end_alias if end_alias in data and end_key not in data else end_key

    try:
        start = int(data.get(start_field) or 1)
    except (TypeError, ValueError):
        start = 1
    start = max(1, start)

    try:
        end = int(data.get(end_field) or start)
    except (TypeError, ValueError):
        end = start

    data[start_field] = start
    data[end_field] = max(start, end)
    return data
