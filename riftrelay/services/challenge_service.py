"""Daily and weekly challenge derivation.

A challenge is never stored: every field is derived from ``(mode, cycle_key)``
through the seeded hash, so all players see the same challenge for a cycle.
Only the per-player claim is persisted on the progression.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from riftrelay.catalog import MUTATOR_POOL
from riftrelay.models.enums import ChallengeMode
from riftrelay.schemas.meta import ChallengeResponse
from riftrelay.utils import datetime_helpers
from riftrelay.utils.seeded_random import hash_string, pick_unique


@dataclass(frozen=True)
class ChallengeRules:
    mutator_count: int
    target_base: int
    target_spread: int
    bonus_base: int
    bonus_spread: int
    title_prefix: str
    description: str


CHALLENGE_RULES = {
    ChallengeMode.DAILY: ChallengeRules(
        mutator_count=2,
        target_base=9000,
        target_spread=4000,
        bonus_base=90,
        bonus_spread=40,
        title_prefix="Daily Rift",
        description="Fixed mutators for all players today. Beat the target score to secure the bonus.",
    ),
    ChallengeMode.WEEKLY: ChallengeRules(
        mutator_count=3,
        target_base=22000,
        target_spread=8000,
        bonus_base=220,
        bonus_spread=90,
        title_prefix="Weekly Gauntlet",
        description="Three mutators, one week. Score above target once to lock in the seasonal bonus.",
    ),
}


@dataclass(frozen=True)
class ChallengeSnapshot:
    mode: ChallengeMode
    cycle_key: str
    title: str
    description: str
    mutator_ids: tuple[str, ...]
    target_score: int
    reward_bonus: int
    expires_at: datetime

    @property
    def claim_key(self) -> str:
        return f"{self.mode.value}:{self.cycle_key}"

    def to_response(self, completed: Optional[bool] = None) -> ChallengeResponse:
        return ChallengeResponse(
            mode=self.mode,
            cycle_key=self.cycle_key,
            title=self.title,
            description=self.description,
            mutator_ids=list(self.mutator_ids),
            target_score=self.target_score,
            reward_bonus=self.reward_bonus,
            expires_at=self.expires_at,
            completed=completed,
        )


class ChallengeService:
    """Pure derivation of challenge snapshots."""

    @staticmethod
    def current_cycle_key(mode: ChallengeMode, now: datetime) -> str:
        if mode == ChallengeMode.DAILY:
            return datetime_helpers.day_key(now)
        if mode == ChallengeMode.WEEKLY:
            return datetime_helpers.week_key(now)
        raise ValueError(f"Mode {mode.value} has no challenge cycle")

    @staticmethod
    def cycle_expiry(mode: ChallengeMode, cycle_key: str) -> datetime:
        """Start of the cycle following ``cycle_key``."""
        if mode == ChallengeMode.DAILY:
            return datetime_helpers.day_key_to_datetime(datetime_helpers.add_days(cycle_key, 1))
        return datetime_helpers.week_key_to_datetime(cycle_key) + timedelta(days=7)

    @staticmethod
    def for_cycle(mode: ChallengeMode, cycle_key: str) -> ChallengeSnapshot:
        """Derive the challenge for an explicit cycle key.

        Raises:
            ValueError: If ``mode`` is normal or the key is malformed.
        """
        rules = CHALLENGE_RULES.get(mode)
        if rules is None:
            raise ValueError(f"Mode {mode.value} has no challenge")

        expires_at = ChallengeService.cycle_expiry(mode, cycle_key)
        seed = hash_string(f"{mode.value}:{cycle_key}")
        return ChallengeSnapshot(
            mode=mode,
            cycle_key=cycle_key,
            title=f"{rules.title_prefix} {cycle_key}",
            description=rules.description,
            mutator_ids=tuple(pick_unique(seed, rules.mutator_count, MUTATOR_POOL)),
            target_score=rules.target_base + seed % rules.target_spread,
            reward_bonus=rules.bonus_base + seed % rules.bonus_spread,
            expires_at=expires_at,
        )

    @staticmethod
    def current(mode: ChallengeMode, now: datetime) -> ChallengeSnapshot:
        return ChallengeService.for_cycle(mode, ChallengeService.current_cycle_key(mode, now))

    @staticmethod
    def active(now: datetime) -> list[ChallengeSnapshot]:
        """Daily then weekly challenge for ``now``."""
        return [
            ChallengeService.current(ChallengeMode.DAILY, now),
            ChallengeService.current(ChallengeMode.WEEKLY, now),
        ]
