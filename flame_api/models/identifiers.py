"""Common identifier and timestamp types shared across models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic.functional_serializers import PlainSerializer
from pydantic.functional_validators import AfterValidator, BeforeValidator


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _validate_entity_id(value: Any) -> str:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("identifier must not be empty")
        try:
            return str(uuid.UUID(text))
        except ValueError as exc:
            raise ValueError("identifier must be a UUID") from exc
    raise TypeError("identifier must be a string")


def _ensure_utc(value: datetime) -> datetime:
    # Mongo hands back naive datetimes unless the client is tz-aware
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


EntityId = Annotated[str, BeforeValidator(_validate_entity_id)]

UtcDatetime = Annotated[
    datetime,
    AfterValidator(_ensure_utc),
    PlainSerializer(lambda value: value.isoformat(), return_type=str),
]

__all__ = ["EntityId", "UtcDatetime", "new_id", "utc_now"]
