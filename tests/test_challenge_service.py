"""Tests for daily/weekly challenge derivation."""
from datetime import UTC, datetime

import pytest

from riftrelay.catalog import MUTATOR_POOL
from riftrelay.models.enums import ChallengeMode
from riftrelay.services.challenge_service import ChallengeService
from riftrelay.utils.seeded_random import hash_string


NOW = datetime(2025, 3, 12, 12, 0, tzinfo=UTC)


def test_daily_challenge_is_same_for_the_whole_day():
    morning = ChallengeService.current(ChallengeMode.DAILY, datetime(2025, 3, 12, 0, 0, tzinfo=UTC))
    night = ChallengeService.current(ChallengeMode.DAILY, datetime(2025, 3, 12, 23, 59, tzinfo=UTC))

    assert morning == night
    assert morning == ChallengeService.for_cycle(ChallengeMode.DAILY, "2025-03-12")


def test_daily_challenge_parameters():
    challenge = ChallengeService.current(ChallengeMode.DAILY, NOW)
    seed = hash_string("daily:2025-03-12")

    assert challenge.cycle_key == "2025-03-12"
    assert challenge.claim_key == "daily:2025-03-12"
    assert challenge.title == "Daily Rift 2025-03-12"
    assert challenge.target_score == 9000 + seed % 4000
    assert challenge.reward_bonus == 90 + seed % 40
    assert 9000 <= challenge.target_score < 13000
    assert 90 <= challenge.reward_bonus < 130
    assert len(challenge.mutator_ids) == 2
    assert len(set(challenge.mutator_ids)) == 2
    assert set(challenge.mutator_ids) <= set(MUTATOR_POOL)
    assert challenge.expires_at == datetime(2025, 3, 13, tzinfo=UTC)


def test_weekly_challenge_parameters():
    challenge = ChallengeService.current(ChallengeMode.WEEKLY, NOW)
    seed = hash_string("weekly:2025-W11")

    assert challenge.cycle_key == "2025-W11"
    assert challenge.title == "Weekly Gauntlet 2025-W11"
    assert challenge.target_score == 22000 + seed % 8000
    assert challenge.reward_bonus == 220 + seed % 90
    assert len(set(challenge.mutator_ids)) == 3
    # Expires at the start of the following ISO week
    assert challenge.expires_at == datetime(2025, 3, 17, tzinfo=UTC)


def test_weekly_challenge_changes_with_the_week():
    this_week = ChallengeService.current(ChallengeMode.WEEKLY, NOW)
    same_week = ChallengeService.current(ChallengeMode.WEEKLY, datetime(2025, 3, 16, 22, tzinfo=UTC))
    next_week = ChallengeService.current(ChallengeMode.WEEKLY, datetime(2025, 3, 17, 0, 1, tzinfo=UTC))

    assert this_week == same_week
    assert next_week.cycle_key == "2025-W12"


def test_active_challenges_are_daily_then_weekly():
    daily, weekly = ChallengeService.active(NOW)

    assert daily.mode == ChallengeMode.DAILY
    assert weekly.mode == ChallengeMode.WEEKLY


def test_normal_mode_has_no_challenge():
    with pytest.raises(ValueError):
        ChallengeService.current(ChallengeMode.NORMAL, NOW)


def test_malformed_cycle_key_is_rejected():
    with pytest.raises(ValueError):
        ChallengeService.for_cycle(ChallengeMode.DAILY, "2025-W11")


def test_to_response_carries_completion_flag():
    challenge = ChallengeService.current(ChallengeMode.DAILY, NOW)

    assert challenge.to_response().completed is None
    assert challenge.to_response(completed=True).completed is True
    assert challenge.to_response().mutator_ids == list(challenge.mutator_ids)
