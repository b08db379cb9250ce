"""Tests for progression storage schema, streaks and perk loadout."""
from datetime import UTC, datetime
import json

import pytest

from riftrelay.models.progression import (
    CURRENT_SCHEMA_VERSION,
    PlayerProgression,
    migrate_progression_payload,
    parse_progression,
)
from riftrelay.services.progression_service import ProgressionService
from riftrelay.utils.exceptions import GameValidationError
from riftrelay.utils.store_client import StoreKeys


NOW = datetime(2025, 3, 12, 12, 0, tzinfo=UTC)

LEGACY_DOCUMENT = {
    "username": "pilot",
    "level": 3,
    "xp": 50,
    "currency": -20,
    "streak": 2,
    "unlockedPerkIds": ["arc_synth", "bogus"],
    "equippedPerks": [
        {"id": "arc_synth", "level": 1},
        {"id": "tempo_core", "level": 1},
        {"id": "arc_synth", "level": 1},
        "garbage",
    ],
    "lifetimeRuns": 12,
    "lifetimeBestScore": 18000,
    "lastPlayedDay": "2025-03-11",
    "questProgress": {
        "daily_runs": {"key": "2025-03-12", "progress": 2, "claimed": False},
        "daily_score": {"key": 5, "progress": "lots"},
    },
    "challengeClaims": {"daily:2025-03-11": True, "weekly:2025-W10": "yes"},
    "updatedAt": 1741780800000,
}


class TestStreak:

    def test_first_run_starts_streak(self):
        progression = PlayerProgression.default("pilot")

        ProgressionService.update_streak(progression, NOW)

        assert progression.streak == 1
        assert progression.last_played_day_key == "2025-03-12"

    def test_same_day_keeps_streak(self):
        progression = PlayerProgression(username="pilot", streak=4, last_played_day_key="2025-03-12")

        ProgressionService.update_streak(progression, NOW)

        assert progression.streak == 4

    def test_same_day_with_zero_streak_becomes_one(self):
        progression = PlayerProgression(username="pilot", streak=0, last_played_day_key="2025-03-12")

        ProgressionService.update_streak(progression, NOW)

        assert progression.streak == 1

    def test_consecutive_day_increments(self):
        progression = PlayerProgression(username="pilot", streak=4, last_played_day_key="2025-03-11")

        ProgressionService.update_streak(progression, NOW)

        assert progression.streak == 5

    def test_gap_resets(self):
        progression = PlayerProgression(username="pilot", streak=4, last_played_day_key="2025-03-09")

        ProgressionService.update_streak(progression, NOW)

        assert progression.streak == 1

    def test_month_boundary_counts_as_consecutive(self):
        progression = PlayerProgression(username="pilot", streak=1, last_played_day_key="2025-02-28")

        ProgressionService.update_streak(progression, datetime(2025, 3, 1, 0, 5, tzinfo=UTC))

        assert progression.streak == 2


class TestStorageSchema:

    def test_missing_document_gives_default_profile(self):
        progression = parse_progression(None, "pilot")

        assert progression.username == "pilot"
        assert progression.level == 1
        assert progression.unlocked_perk_ids == ["arc_synth"]
        assert progression.schema_version == CURRENT_SCHEMA_VERSION

    @pytest.mark.parametrize("raw", ["{not json", "[1, 2, 3]", "42", '"pilot"'])
    def test_unparseable_document_gives_default_profile(self, raw):
        progression = parse_progression(raw, "pilot")

        assert progression.model_dump(exclude={"updated_at"}) == PlayerProgression.default("pilot").model_dump(
            exclude={"updated_at"}
        )

    def test_legacy_document_is_migrated(self):
        progression = parse_progression(json.dumps(LEGACY_DOCUMENT), "pilot")

        assert progression.schema_version == CURRENT_SCHEMA_VERSION
        assert progression.level == 3
        assert progression.xp == 50
        assert progression.currency == 0
        assert progression.streak == 2
        assert progression.unlocked_perk_ids == ["arc_synth", "volatile_matrix", "streak_resonator"]
        # tempo_core is locked at level 3, the duplicate and the garbage entry are dropped
        assert progression.equipped_perk_ids == ["arc_synth"]
        assert progression.lifetime_runs == 12
        assert progression.lifetime_best_score == 18000
        assert progression.last_played_day_key == "2025-03-11"
        assert set(progression.quest_progress) == {"daily_runs"}
        assert progression.quest_progress["daily_runs"].cycle_key == "2025-03-12"
        assert progression.quest_progress["daily_runs"].progress == 2
        assert progression.challenge_claims == {"daily:2025-03-11": True}
        assert progression.updated_at == datetime(2025, 3, 12, 12, 0, tzinfo=UTC)

    def test_legacy_document_with_out_of_range_timestamp(self):
        payload = migrate_progression_payload({"username": "pilot", "updatedAt": 1e300})

        assert "updated_at" not in payload

    def test_current_document_round_trips(self):
        original = PlayerProgression(
            username="pilot",
            level=7,
            xp=123,
            currency=456,
            streak=3,
            equipped_perks=[{"perk_id": "tempo_core", "level": 1}],
            lifetime_runs=40,
            lifetime_best_score=99_000,
            last_played_day_key="2025-03-12",
            quest_progress={"weekly_runs": {"cycle_key": "2025-W11", "progress": 9, "claimed": False}},
            challenge_claims={"weekly:2025-W11": True},
            updated_at=NOW,
        )

        loaded = parse_progression(original.model_dump_json(), "someone_else")

        assert loaded.model_dump() == original.model_dump()

    def test_newer_schema_version_is_read_as_current(self):
        raw = json.dumps({"schema_version": 7, "username": "pilot", "level": 5, "mystery": True})

        progression = parse_progression(raw, "pilot")

        assert progression.schema_version == CURRENT_SCHEMA_VERSION
        assert progression.level == 5

    def test_high_level_is_kept(self):
        raw = json.dumps({"schema_version": 2, "username": "pilot", "level": 5000})

        progression = parse_progression(raw, "pilot")

        assert progression.level == 5000
        assert len(progression.unlocked_perk_ids) == 4

    @pytest.mark.parametrize("level", ["high", None, True, [3]])
    def test_non_numeric_level_defaults_to_one(self, level):
        raw = json.dumps({"schema_version": 2, "username": "pilot", "level": level})

        assert parse_progression(raw, "pilot").level == 1

    def test_missing_username_uses_requested_name(self):
        raw = json.dumps({"schema_version": 2, "level": 2})

        assert parse_progression(raw, "pilot").username == "pilot"


class TestPerkInvariants:

    def test_equipped_perks_are_deduplicated_and_capped(self):
        progression = PlayerProgression(
            username="pilot",
            level=10,
            equipped_perks=[
                {"perk_id": "arc_synth", "level": 1},
                {"perk_id": "arc_synth", "level": 1},
                {"perk_id": "bogus", "level": 1},
                {"perk_id": "volatile_matrix", "level": 4},
                {"perk_id": "streak_resonator", "level": 1},
                {"perk_id": "tempo_core", "level": 1},
            ],
        )

        assert progression.equipped_perk_ids == ["arc_synth", "volatile_matrix", "streak_resonator"]
        # Levels are clamped to the perk's max level
        assert all(perk.level == 1 for perk in progression.equipped_perks)

    def test_refresh_perks_unlocks_by_level(self):
        progression = PlayerProgression.default("pilot")
        progression.level = 4

        progression.refresh_perks()

        assert progression.unlocked_perk_ids == ["arc_synth", "volatile_matrix", "streak_resonator", "tempo_core"]

    def test_resolve_run_perks_defaults_to_equipped(self):
        progression = PlayerProgression(
            username="pilot", level=2, equipped_perks=[{"perk_id": "volatile_matrix", "level": 1}]
        )

        assert ProgressionService.resolve_run_perks(progression, None) == ["volatile_matrix"]

    def test_resolve_run_perks_filters_request(self):
        progression = PlayerProgression(username="pilot", level=2)

        selected = ProgressionService.resolve_run_perks(
            progression, ["tempo_core", "volatile_matrix", "arc_synth", "volatile_matrix", "bogus"]
        )

        assert selected == ["volatile_matrix", "arc_synth"]

    def test_resolve_run_perks_empty_request_means_no_perks(self):
        progression = PlayerProgression(
            username="pilot", equipped_perks=[{"perk_id": "arc_synth", "level": 1}]
        )

        assert ProgressionService.resolve_run_perks(progression, []) == []


class TestTogglePerk:

    def test_equip_then_unequip(self, store):
        service = ProgressionService(store)

        equipped = service.toggle_perk("t3_post", "pilot", "arc_synth", NOW)
        unequipped = service.toggle_perk("t3_post", "pilot", "arc_synth", NOW)

        assert equipped.equipped_perk_ids == ["arc_synth"]
        assert unequipped.equipped_perk_ids == []
        assert service.load("t3_post", "pilot").equipped_perk_ids == []

    def test_unknown_perk(self, store):
        with pytest.raises(GameValidationError, match="unknown_perk"):
            ProgressionService(store).toggle_perk("t3_post", "pilot", "bogus", NOW)

    def test_locked_perk(self, store):
        with pytest.raises(GameValidationError, match="perk_locked"):
            ProgressionService(store).toggle_perk("t3_post", "pilot", "tempo_core", NOW)

    def test_slots_full(self, store):
        service = ProgressionService(store)
        progression = PlayerProgression(
            username="pilot",
            level=4,
            equipped_perks=[
                {"perk_id": "arc_synth", "level": 1},
                {"perk_id": "volatile_matrix", "level": 1},
                {"perk_id": "streak_resonator", "level": 1},
            ],
        )
        service.save("t3_post", "pilot", progression, NOW)

        with pytest.raises(GameValidationError, match="perk_slots_full"):
            service.toggle_perk("t3_post", "pilot", "tempo_core", NOW)

    def test_save_writes_json_document(self, store):
        service = ProgressionService(store)

        service.save("t3_post", "pilot", PlayerProgression.default("pilot"), NOW)

        stored = json.loads(store.get(StoreKeys.progression("t3_post", "pilot")))
        assert stored["schema_version"] == CURRENT_SCHEMA_VERSION
        assert stored["username"] == "pilot"
