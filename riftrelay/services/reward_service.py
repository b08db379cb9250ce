"""Reward engine: converts a validated run into XP, currency and progression changes.

Everything here is pure. ``compute_reward`` works on a deep copy of the
progression and returns the updated copy in its outcome; persisting it is the
caller's job.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence
import logging
import math

from riftrelay.catalog import (
    HIGH_RISK_DIFFICULTY,
    LEVEL_UP_CURRENCY,
    MAX_BASE_SCORE,
    MODE_MULTIPLIERS,
    MUTATORS_BY_ID,
    xp_to_next_level,
)
from riftrelay.models.enums import ChallengeMode
from riftrelay.models.progression import PlayerProgression
from riftrelay.models.run_session import RunSession
from riftrelay.schemas.meta import QuestResponse
from riftrelay.schemas.run import RewardBreakdownResponse
from riftrelay.services.challenge_service import ChallengeService, ChallengeSnapshot
from riftrelay.services.progression_service import ProgressionService
from riftrelay.services.quest_service import QuestService

logger = logging.getLogger(__name__)

MAX_PERK_BONUS = 0.75
STREAK_BONUS = 0.1
STREAK_BONUS_THRESHOLD = 3
TEMPO_CORE_MIN_SECONDS = 120
MIN_XP = 10
MIN_CURRENCY = 5


@dataclass
class RewardOutcome:
    """Result of scoring one run."""
    progression: PlayerProgression
    base_score: int
    adjusted_score: int
    mutator_ids: list[str]
    xp_gained: int
    currency_gained: int
    score_multiplier: float
    streak_bonus: float
    perk_bonus: float
    challenge_bonus: int = 0
    level_ups: int = 0
    challenge: Optional[ChallengeSnapshot] = None
    quests: list[QuestResponse] = field(default_factory=list)
    completed_challenges: list[str] = field(default_factory=list)

    def breakdown(self) -> RewardBreakdownResponse:
        return RewardBreakdownResponse(
            xp_gained=self.xp_gained,
            currency_gained=self.currency_gained,
            score_multiplier=self.score_multiplier,
            streak_bonus=self.streak_bonus,
            challenge_bonus=self.challenge_bonus,
            perk_bonus=self.perk_bonus,
            level_ups=self.level_ups,
        )


class RewardService:
    """Reward formulas and the run scoring pipeline."""

    @staticmethod
    def sanitize_base_score(score: float) -> int:
        """Truncate toward zero and clamp into ``[0, MAX_BASE_SCORE]``."""
        return min(max(math.trunc(score), 0), MAX_BASE_SCORE)

    @staticmethod
    def merge_mutator_selection(
        offered_mutator_ids: Sequence[str],
        default_mutator_ids: Sequence[str],
        requested_mutator_ids: Optional[Sequence[str]],
    ) -> list[str]:
        """Keep requested ids that were offered (client order, de-duplicated), else the defaults."""
        offered = set(offered_mutator_ids)
        selected: list[str] = []
        for mutator_id in requested_mutator_ids or []:
            if mutator_id in offered and mutator_id not in selected:
                selected.append(mutator_id)
        return selected if selected else list(default_mutator_ids)

    @staticmethod
    def mutator_multiplier(mutator_ids: Sequence[str]) -> float:
        multiplier = 1.0
        for mutator_id in mutator_ids:
            definition = MUTATORS_BY_ID.get(mutator_id)
            if definition is not None:
                multiplier *= definition.score_multiplier
        return multiplier

    @staticmethod
    def mode_multiplier(mode: ChallengeMode) -> float:
        return MODE_MULTIPLIERS[mode]

    @staticmethod
    def adjusted_score(base_score: int, mutator_multiplier: float, mode_multiplier: float) -> int:
        return max(1, math.trunc(base_score * mutator_multiplier * mode_multiplier))

    @staticmethod
    def perk_bonus(
        perk_ids: Sequence[str],
        streak: int,
        mutator_ids: Sequence[str],
        survived_seconds: Optional[float] = None,
    ) -> float:
        """Sum of the perk contributions, clamped to ``[0, MAX_PERK_BONUS]``."""
        risk_count = sum(
            1 for mutator_id in mutator_ids
            if mutator_id in MUTATORS_BY_ID and MUTATORS_BY_ID[mutator_id].difficulty >= HIGH_RISK_DIFFICULTY
        )

        bonus = 0.0
        for perk_id in perk_ids:
            if perk_id == "arc_synth":
                bonus += 0.12
            elif perk_id == "volatile_matrix":
                bonus += 0.06 * risk_count
            elif perk_id == "streak_resonator":
                if streak >= STREAK_BONUS_THRESHOLD:
                    bonus += 0.1
            elif perk_id == "tempo_core":
                if survived_seconds is not None and survived_seconds >= TEMPO_CORE_MIN_SECONDS:
                    bonus += 0.08

        return min(max(bonus, 0.0), MAX_PERK_BONUS)

    @staticmethod
    def streak_bonus(streak: int) -> float:
        return STREAK_BONUS if streak >= STREAK_BONUS_THRESHOLD else 0.0

    @staticmethod
    def xp_gained(base_score: int, mode_multiplier: float, perk_bonus: float, streak_bonus: float) -> int:
        xp_base = max(MIN_XP, math.trunc(math.sqrt(base_score + 1) * 18))
        return max(MIN_XP, math.trunc(xp_base * mode_multiplier * (1 + perk_bonus + streak_bonus)))

    @staticmethod
    def currency_gained(base_score: int, mutator_count: int, perk_bonus: float, streak_bonus: float) -> int:
        """Run currency before challenge and quest bonuses."""
        currency_base = max(MIN_CURRENCY, math.trunc(base_score / 700 + mutator_count * 4))
        return max(MIN_CURRENCY, math.trunc(currency_base * (1 + streak_bonus + perk_bonus)))

    @staticmethod
    def apply_level_ups(progression: PlayerProgression, xp_gained: int) -> int:
        """Add XP and advance levels while the threshold is met. Returns the level-up count.

        Each level-up grants ``LEVEL_UP_CURRENCY`` directly to the balance.
        """
        progression.xp += xp_gained
        level_ups = 0
        while progression.xp >= xp_to_next_level(progression.level):
            progression.xp -= xp_to_next_level(progression.level)
            progression.level += 1
            progression.currency += LEVEL_UP_CURRENCY
            level_ups += 1
        return level_ups

    @staticmethod
    def compute_reward(
        score: float,
        session: RunSession,
        progression: PlayerProgression,
        now: datetime,
        survived_seconds: Optional[float] = None,
        requested_mutator_ids: Optional[Sequence[str]] = None,
    ) -> RewardOutcome:
        """Score a run against its session and return the updated progression.

        Order matters: quests roll over first, then the streak is updated so the
        streak-dependent bonuses see today's value, then score, challenge, XP,
        currency, level-ups, perk unlocks, lifetime stats and finally quests.
        """
        updated = progression.model_copy(deep=True)
        base_score = RewardService.sanitize_base_score(score)
        mutator_ids = RewardService.merge_mutator_selection(
            session.offered_mutator_ids, session.default_mutator_ids, requested_mutator_ids
        )
        mutator_count = sum(1 for mutator_id in mutator_ids if mutator_id in MUTATORS_BY_ID)
        mutator_multiplier = RewardService.mutator_multiplier(mutator_ids)
        mode_multiplier = RewardService.mode_multiplier(session.mode)

        QuestService.normalize_quest_progress(updated, now)
        ProgressionService.update_streak(updated, now)

        perk_bonus = RewardService.perk_bonus(
            session.selected_perk_ids, updated.streak, mutator_ids, survived_seconds
        )
        streak_bonus = RewardService.streak_bonus(updated.streak)
        adjusted_score = RewardService.adjusted_score(base_score, mutator_multiplier, mode_multiplier)

        challenge = None
        challenge_bonus = 0
        completed_challenges: list[str] = []
        if session.mode.is_challenge:
            cycle_key = session.challenge_cycle_key or ChallengeService.current_cycle_key(session.mode, now)
            challenge = ChallengeService.for_cycle(session.mode, cycle_key)
            already_claimed = updated.challenge_claims.get(challenge.claim_key, False)
            if not already_claimed and adjusted_score >= challenge.target_score:
                updated.challenge_claims[challenge.claim_key] = True
                challenge_bonus = challenge.reward_bonus
                completed_challenges.append(challenge.claim_key)
                logger.info(
                    f"Challenge {challenge.claim_key} claimed by {updated.username} "
                    f"with {adjusted_score} >= {challenge.target_score}"
                )

        xp_gained = RewardService.xp_gained(base_score, mode_multiplier, perk_bonus, streak_bonus)
        currency_gained = RewardService.currency_gained(base_score, mutator_count, perk_bonus, streak_bonus)

        level_ups = RewardService.apply_level_ups(updated, xp_gained)
        if level_ups:
            logger.info(f"{updated.username} gained {level_ups} level(s), now level {updated.level}")
        updated.refresh_perks()

        updated.lifetime_runs += 1
        updated.lifetime_best_score = max(updated.lifetime_best_score, adjusted_score)

        quest_result = QuestService.apply_run(updated, now, adjusted_score)
        currency_gained += challenge_bonus + quest_result.currency_bonus
        updated.currency += currency_gained
        completed_challenges.extend(quest_result.completed_quest_ids)

        return RewardOutcome(
            progression=updated,
            base_score=base_score,
            adjusted_score=adjusted_score,
            mutator_ids=mutator_ids,
            xp_gained=xp_gained,
            currency_gained=currency_gained,
            score_multiplier=round(mutator_multiplier * mode_multiplier, 3),
            streak_bonus=streak_bonus,
            perk_bonus=perk_bonus,
            challenge_bonus=challenge_bonus,
            level_ups=level_ups,
            challenge=challenge,
            quests=quest_result.quests,
            completed_challenges=completed_challenges,
        )
