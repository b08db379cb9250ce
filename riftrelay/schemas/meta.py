"""Progression, quest, challenge and catalog schemas."""
from datetime import datetime
from typing import Optional

from riftrelay.models.enums import ChallengeMode, MutatorTheme, QuestMetric, QuestScope
from riftrelay.schemas.base import BaseSchema
from riftrelay.schemas.leaderboard import LeaderboardResponse


class EquippedPerkResponse(BaseSchema):
    perk_id: str
    level: int


class ProfileResponse(BaseSchema):
    """Client view of a player's progression."""
    username: str
    level: int
    xp: int
    xp_to_next_level: int
    currency: int
    streak: int
    equipped_perks: list[EquippedPerkResponse]
    unlocked_perk_ids: list[str]
    lifetime_runs: int
    lifetime_best_score: int
    last_played_day_key: Optional[str] = None
    updated_at: datetime


class QuestResponse(BaseSchema):
    id: str
    scope: QuestScope
    metric: QuestMetric
    title: str
    description: str
    target: int
    progress: int
    reward_currency: int
    completed: bool
    claimable: bool


class ChallengeResponse(BaseSchema):
    """Derived daily/weekly challenge. ``completed`` is only set for signed-in players."""
    mode: ChallengeMode
    cycle_key: str
    title: str
    description: str
    mutator_ids: list[str]
    target_score: int
    reward_bonus: int
    expires_at: datetime
    completed: Optional[bool] = None


class PerkDefinitionResponse(BaseSchema):
    id: str
    name: str
    description: str
    unlock_level: int
    max_level: int


class MutatorDefinitionResponse(BaseSchema):
    id: str
    name: str
    description: str
    score_multiplier: float
    difficulty: int
    theme: MutatorTheme


class CatalogResponse(BaseSchema):
    perks: list[PerkDefinitionResponse]
    mutators: list[MutatorDefinitionResponse]


class MetaResponse(BaseSchema):
    profile: ProfileResponse
    quests: list[QuestResponse]
    active_challenges: list[ChallengeResponse]
    catalog: CatalogResponse
    leaderboard: LeaderboardResponse
    generated_at: datetime


class PerkEquipRequest(BaseSchema):
    perk_id: str


class PerkEquipResponse(BaseSchema):
    profile: ProfileResponse
    equipped_perks: list[EquippedPerkResponse]
