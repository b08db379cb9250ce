"""Shared base for request and response payloads."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, model_serializer

from riftrelay.utils.datetime_helpers import ensure_utc


def format_timestamp(dt: datetime) -> str:
    """ISO 8601 in UTC with a ``Z`` suffix, e.g. ``2025-03-12T12:20:00Z``."""
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def _timestamps_to_text(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, (list, tuple)):
        return [_timestamps_to_text(item) for item in value]
    if isinstance(value, dict):
        return {key: _timestamps_to_text(item) for key, item in value.items()}
    return value


class BaseSchema(BaseModel):
    """Payload base: builds from catalog entries and stored documents, emits UTC timestamps."""

    model_config = ConfigDict(from_attributes=True)

    @model_serializer(mode="wrap")
    def serialize_model(self, handler):
        return _timestamps_to_text(handler(self))
