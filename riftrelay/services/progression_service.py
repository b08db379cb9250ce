"""Player progression persistence, streak rule and perk loadout."""
from datetime import datetime
from typing import Optional, Sequence
import logging

from riftrelay.catalog import MAX_EQUIPPED_PERKS, PERKS_BY_ID
from riftrelay.models.progression import EquippedPerk, PlayerProgression, parse_progression
from riftrelay.schemas.meta import EquippedPerkResponse, ProfileResponse
from riftrelay.utils import datetime_helpers
from riftrelay.utils.exceptions import GameValidationError
from riftrelay.utils.store_client import StoreClient, StoreKeys

logger = logging.getLogger(__name__)


class ProgressionService:
    """Loads and saves ``PlayerProgression`` documents for one post scope."""

    def __init__(self, store: StoreClient):
        self.store = store

    def load(self, scope: str, username: str) -> PlayerProgression:
        raw = self.store.get(StoreKeys.progression(scope, username))
        return parse_progression(raw, username)

    def save(self, scope: str, username: str, progression: PlayerProgression, now: datetime) -> None:
        progression.updated_at = datetime_helpers.ensure_utc(now)
        self.store.set(StoreKeys.progression(scope, username), progression.model_dump_json())

    @staticmethod
    def update_streak(progression: PlayerProgression, now: datetime) -> None:
        """Apply the daily streak rule for a run completed at ``now``.

        Same day keeps the streak (at least 1), the day after increments it,
        anything else restarts at 1.
        """
        today = datetime_helpers.day_key(now)
        last_played = progression.last_played_day_key

        if not last_played:
            progression.streak = 1
        elif last_played == today:
            progression.streak = max(1, progression.streak)
        elif last_played == datetime_helpers.add_days(today, -1):
            progression.streak += 1
        else:
            progression.streak = 1

        progression.last_played_day_key = today

    @staticmethod
    def resolve_run_perks(
        progression: PlayerProgression,
        requested_perk_ids: Optional[Sequence[str]],
    ) -> list[str]:
        """Perks that apply to a new run.

        Without a request the equipped loadout is used; a request is filtered to
        known, unlocked, distinct perk ids and capped at the slot count.
        """
        if requested_perk_ids is None:
            return progression.equipped_perk_ids

        unlocked = set(progression.unlocked_perk_ids)
        selected: list[str] = []
        for perk_id in requested_perk_ids:
            if perk_id in PERKS_BY_ID and perk_id in unlocked and perk_id not in selected:
                selected.append(perk_id)
        return selected[:MAX_EQUIPPED_PERKS]

    def toggle_perk(self, scope: str, username: str, perk_id: str, now: datetime) -> PlayerProgression:
        """Unequip ``perk_id`` if equipped, otherwise equip it into a free slot.

        Raises:
            GameValidationError: unknown_perk, perk_locked or perk_slots_full
        """
        if perk_id not in PERKS_BY_ID:
            raise GameValidationError("unknown_perk")

        progression = self.load(scope, username)
        progression.refresh_perks()

        if perk_id not in progression.unlocked_perk_ids:
            raise GameValidationError("perk_locked")

        if perk_id in progression.equipped_perk_ids:
            progression.equipped_perks = [
                perk for perk in progression.equipped_perks if perk.perk_id != perk_id
            ]
            logger.info(f"{username} unequipped perk {perk_id} in {scope}")
        else:
            if len(progression.equipped_perks) >= MAX_EQUIPPED_PERKS:
                raise GameValidationError("perk_slots_full")
            progression.equipped_perks.append(EquippedPerk(perk_id=perk_id, level=1))
            logger.info(f"{username} equipped perk {perk_id} in {scope}")

        progression.refresh_perks()
        self.save(scope, username, progression, now)
        return progression

    @staticmethod
    def build_profile(progression: PlayerProgression) -> ProfileResponse:
        return ProfileResponse(
            username=progression.username,
            level=progression.level,
            xp=progression.xp,
            xp_to_next_level=progression.xp_to_next_level,
            currency=progression.currency,
            streak=progression.streak,
            equipped_perks=[
                EquippedPerkResponse(perk_id=perk.perk_id, level=perk.level)
                for perk in progression.equipped_perks
            ],
            unlocked_perk_ids=list(progression.unlocked_perk_ids),
            lifetime_runs=progression.lifetime_runs,
            lifetime_best_score=progression.lifetime_best_score,
            last_played_day_key=progression.last_played_day_key,
            updated_at=progression.updated_at,
        )
