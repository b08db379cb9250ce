"""Legacy saved-state and score submission schemas."""
from datetime import datetime
from typing import Any, Optional

from pydantic import FiniteFloat, model_validator

from riftrelay.schemas.base import BaseSchema
from riftrelay.schemas.leaderboard import LeaderboardResponse


class StateResponse(BaseSchema):
    username: str
    level: Optional[float] = None
    best_score: Optional[float] = None
    data: Optional[dict[str, Any]] = None
    updated_at: datetime


class StateUpsertRequest(BaseSchema):
    """Partial update; omitted fields keep their stored value."""
    level: Optional[FiniteFloat] = None
    data: Optional[dict[str, Any]] = None

    @model_validator(mode="after")
    def require_some_field(self):
        if self.level is None and self.data is None:
            raise ValueError("Provide at least one of level or data")
        return self


class ScoreSubmitRequest(BaseSchema):
    score: FiniteFloat


class ScoreSubmitResponse(BaseSchema):
    username: str
    score: int
    updated_at: datetime


class InitResponse(BaseSchema):
    post_id: str
    username: str
    previous_time: str
    state: Optional[StateResponse] = None
    leaderboard: LeaderboardResponse
