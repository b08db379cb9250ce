"""Leaderboard service backed by store sorted sets.

Scores are personal bests: every write is an atomic max-merge, so concurrent
submissions never lower a stored score and need no locking.
"""
from datetime import datetime
from typing import Optional
import logging

from riftrelay.config import get_settings
from riftrelay.models.enums import ChallengeMode
from riftrelay.schemas.leaderboard import (
    ChallengeLeaderboardResponse,
    LeaderboardEntry,
    LeaderboardResponse,
)
from riftrelay.utils.store_client import StoreClient, StoreKeys

logger = logging.getLogger(__name__)


class LeaderboardService:
    """Global and per-challenge best-score rankings."""

    def __init__(self, store: StoreClient):
        self.store = store
        self.settings = get_settings()

    def clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.settings.leaderboard_default_limit
        return min(max(int(limit), 1), self.settings.leaderboard_max_limit)

    def submit_best(self, scope: str, username: str, score: int) -> int:
        """Merge ``score`` into the global board. Returns the stored personal best."""
        best = int(self.store.zadd_max(StoreKeys.leaderboard(scope), username, score))
        logger.debug(f"Leaderboard {scope}: {username} submitted {score}, best {best}")
        return best

    def record_challenge_score(
        self,
        scope: str,
        mode: ChallengeMode,
        cycle_key: str,
        username: str,
        score: int,
    ) -> int:
        """Merge ``score`` into the per-challenge board for one cycle."""
        key = StoreKeys.challenge_leaderboard(scope, mode.value, cycle_key)
        return int(self.store.zadd_max(key, username, score))

    def _read_ranking(self, key: str, username: str, limit: int) -> tuple[list[LeaderboardEntry], Optional[LeaderboardEntry], int]:
        rows = self.store.zrevrange(key, 0, limit - 1)
        top = [
            LeaderboardEntry(rank=index + 1, username=member, score=int(score))
            for index, (member, score) in enumerate(rows)
        ]

        total = self.store.zcard(key)
        me = None
        rank = self.store.zrevrank(key, username)
        if rank is not None:
            score = self.store.zscore(key, username)
            me = LeaderboardEntry(rank=rank + 1, username=username, score=int(score or 0))
        return top, me, total

    def snapshot(self, scope: str, username: str, limit: Optional[int], now: datetime) -> LeaderboardResponse:
        top, me, total = self._read_ranking(StoreKeys.leaderboard(scope), username, self.clamp_limit(limit))
        return LeaderboardResponse(top=top, me=me, total_players=total, generated_at=now)

    def challenge_snapshot(
        self,
        scope: str,
        mode: ChallengeMode,
        cycle_key: str,
        username: str,
        limit: Optional[int],
        now: datetime,
    ) -> ChallengeLeaderboardResponse:
        key = StoreKeys.challenge_leaderboard(scope, mode.value, cycle_key)
        top, me, total = self._read_ranking(key, username, self.clamp_limit(limit))
        return ChallengeLeaderboardResponse(
            mode=mode,
            cycle_key=cycle_key,
            top=top,
            me=me,
            total_players=total,
            generated_at=now,
        )
