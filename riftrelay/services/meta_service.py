"""Meta view: profile, quests, active challenges, catalog and leaderboard in one payload."""
from datetime import datetime
from typing import Optional
import logging

from riftrelay.catalog import MUTATOR_CATALOG, PERK_CATALOG
from riftrelay.models.progression import PlayerProgression
from riftrelay.schemas.meta import (
    CatalogResponse,
    MetaResponse,
    MutatorDefinitionResponse,
    PerkDefinitionResponse,
    PerkEquipResponse,
)
from riftrelay.services.challenge_service import ChallengeService
from riftrelay.services.identity import ensure_player, is_anonymous
from riftrelay.services.leaderboard_service import LeaderboardService
from riftrelay.services.progression_service import ProgressionService
from riftrelay.services.quest_service import QuestService
from riftrelay.utils.store_client import StoreClient

logger = logging.getLogger(__name__)


def build_catalog() -> CatalogResponse:
    return CatalogResponse(
        perks=[PerkDefinitionResponse.model_validate(perk) for perk in PERK_CATALOG],
        mutators=[MutatorDefinitionResponse.model_validate(mutator) for mutator in MUTATOR_CATALOG],
    )


class MetaService:

    def __init__(self, store: StoreClient):
        self.store = store
        self.progression_service = ProgressionService(store)
        self.leaderboard_service = LeaderboardService(store)

    def get_meta(self, scope: str, username: str, now: datetime, limit: Optional[int] = None) -> MetaResponse:
        """Build the meta payload.

        Signed-in players get their quests rolled over and perks re-normalized,
        and the result is saved. Anonymous callers get read-only defaults and
        nothing is written.
        """
        if is_anonymous(username):
            return MetaResponse(
                profile=ProgressionService.build_profile(PlayerProgression.default(username)),
                quests=[],
                active_challenges=[challenge.to_response() for challenge in ChallengeService.active(now)],
                catalog=build_catalog(),
                leaderboard=self.leaderboard_service.snapshot(scope, username, limit, now),
                generated_at=now,
            )

        progression = self.progression_service.load(scope, username)
        QuestService.normalize_quest_progress(progression, now)
        progression.refresh_perks()
        self.progression_service.save(scope, username, progression, now)

        challenges = [
            challenge.to_response(completed=progression.challenge_claims.get(challenge.claim_key, False))
            for challenge in ChallengeService.active(now)
        ]

        return MetaResponse(
            profile=ProgressionService.build_profile(progression),
            quests=QuestService.build_quest_snapshot(progression, now),
            active_challenges=challenges,
            catalog=build_catalog(),
            leaderboard=self.leaderboard_service.snapshot(scope, username, limit, now),
            generated_at=now,
        )

    def equip_perk(self, scope: str, username: str, perk_id: str, now: datetime) -> PerkEquipResponse:
        ensure_player(username)
        progression = self.progression_service.toggle_perk(scope, username, perk_id, now)
        profile = ProgressionService.build_profile(progression)
        return PerkEquipResponse(profile=profile, equipped_perks=profile.equipped_perks)
