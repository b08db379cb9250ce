"""Game services."""
from riftrelay.services.challenge_service import ChallengeService, ChallengeSnapshot
from riftrelay.services.leaderboard_service import LeaderboardService
from riftrelay.services.meta_service import MetaService
from riftrelay.services.player_state_service import PlayerStateService
from riftrelay.services.progression_service import ProgressionService
from riftrelay.services.quest_service import QuestService
from riftrelay.services.reward_service import RewardOutcome, RewardService
from riftrelay.services.run_service import RunService
from riftrelay.services.run_session_service import RunSessionService

__all__ = [
    "ChallengeService",
    "ChallengeSnapshot",
    "LeaderboardService",
    "MetaService",
    "PlayerStateService",
    "ProgressionService",
    "QuestService",
    "RewardOutcome",
    "RewardService",
    "RunService",
    "RunSessionService",
]
