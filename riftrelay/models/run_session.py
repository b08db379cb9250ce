"""Run session: the single-use ticket that authorizes one reward conversion."""
from datetime import datetime
from typing import Optional
import json
import logging

from pydantic import BaseModel, ValidationError, field_validator

from riftrelay.models.enums import ChallengeMode
from riftrelay.utils.datetime_helpers import ensure_utc

logger = logging.getLogger(__name__)


class RunSession(BaseModel):
    """Parameters fixed when a run starts. Never mutated after creation."""

    ticket: str
    mode: ChallengeMode
    seed: int
    offered_mutator_ids: list[str]
    default_mutator_ids: list[str]
    selected_perk_ids: list[str]
    challenge_cycle_key: Optional[str] = None
    started_at: datetime
    expires_at: datetime

    @field_validator("started_at", "expires_at")
    @classmethod
    def timestamps_are_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def is_expired(self, now: datetime) -> bool:
        return ensure_utc(now) > self.expires_at


def parse_run_session(raw: Optional[str]) -> Optional[RunSession]:
    """Decode a stored session. Corrupt documents are treated as absent."""
    if not raw:
        return None
    try:
        return RunSession.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as e:
        logger.error(f"Failed to parse stored run session: {e}")
        return None
