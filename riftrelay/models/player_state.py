"""Legacy saved-game state (level, free-form data, best score) per player."""
from datetime import datetime
from typing import Any, Optional
import json
import logging

from pydantic import BaseModel, ValidationError, field_validator
from pydantic_core import PydanticUseDefault

from riftrelay.models.progression import is_finite_number
from riftrelay.utils.datetime_helpers import ensure_utc

logger = logging.getLogger(__name__)


class StoredState(BaseModel):
    username: str
    level: Optional[float] = None
    best_score: Optional[float] = None
    data: Optional[dict[str, Any]] = None
    updated_at: datetime

    @field_validator("level", "best_score", mode="before")
    @classmethod
    def drop_non_finite(cls, value: Any) -> Any:
        if not is_finite_number(value):
            raise PydanticUseDefault()
        return value

    @field_validator("data", mode="before")
    @classmethod
    def drop_non_object(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            raise PydanticUseDefault()
        return value

    @field_validator("updated_at")
    @classmethod
    def updated_at_is_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


def parse_stored_state(raw: Optional[str]) -> Optional[StoredState]:
    """Decode a stored state; documents without a username or timestamp are ignored."""
    if not raw:
        return None
    try:
        return StoredState.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as e:
        logger.error(f"Failed to parse stored state: {e}")
        return None
