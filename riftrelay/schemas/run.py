"""Run lifecycle schemas."""
from datetime import datetime
from typing import Any, Optional

from pydantic import Field, FiniteFloat

from riftrelay.models.enums import ChallengeMode
from riftrelay.schemas.base import BaseSchema
from riftrelay.schemas.leaderboard import LeaderboardResponse
from riftrelay.schemas.meta import ChallengeResponse, ProfileResponse, QuestResponse


class RunStartRequest(BaseSchema):
    mode: ChallengeMode = ChallengeMode.NORMAL
    selected_perk_ids: Optional[list[str]] = None


class RunStartResponse(BaseSchema):
    ticket: str
    mode: ChallengeMode
    seed: int
    offered_mutator_ids: list[str]
    default_mutator_ids: list[str]
    challenge: Optional[ChallengeResponse] = None
    started_at: datetime
    expires_at: datetime
    profile: ProfileResponse


class RunCompleteRequest(BaseSchema):
    """Client report of a finished run. Only ``ticket`` and ``score`` are required."""
    ticket: str = Field(min_length=1)
    score: FiniteFloat
    survived_seconds: Optional[FiniteFloat] = None
    selected_mutator_ids: Optional[list[str]] = None
    stats: Optional[dict[str, Any]] = None  # Logged only, never used for rewards


class RewardBreakdownResponse(BaseSchema):
    xp_gained: int
    currency_gained: int
    score_multiplier: float
    streak_bonus: float
    challenge_bonus: int
    perk_bonus: float
    level_ups: int


class RunSummaryResponse(BaseSchema):
    mutator_ids: list[str]
    completed_challenges: list[str]


class RunCompleteResponse(BaseSchema):
    mode: ChallengeMode
    score: int
    best_score: int
    reward: RewardBreakdownResponse
    profile: ProfileResponse
    leaderboard: LeaderboardResponse
    quests: list[QuestResponse]
    run_summary: RunSummaryResponse
    completed_at: datetime
