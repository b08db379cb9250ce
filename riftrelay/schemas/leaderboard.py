"""Leaderboard schemas."""
from datetime import datetime
from typing import Optional

from riftrelay.models.enums import ChallengeMode
from riftrelay.schemas.base import BaseSchema


class LeaderboardEntry(BaseSchema):
    rank: int
    username: str
    score: int


class LeaderboardResponse(BaseSchema):
    """Top of a ranking plus the caller's own position, if ranked."""
    top: list[LeaderboardEntry]
    me: Optional[LeaderboardEntry] = None
    total_players: int
    generated_at: datetime


class ChallengeLeaderboardResponse(LeaderboardResponse):
    mode: ChallengeMode
    cycle_key: str
