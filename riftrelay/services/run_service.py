"""Run lifecycle: start a ticketed run and convert its completion into rewards."""
from datetime import datetime
from typing import Any, Optional, Sequence
import logging

from riftrelay.catalog import MUTATOR_POOL
from riftrelay.models.enums import ChallengeMode
from riftrelay.schemas.run import RunCompleteResponse, RunStartResponse, RunSummaryResponse
from riftrelay.services.challenge_service import ChallengeService
from riftrelay.services.identity import ensure_player
from riftrelay.services.leaderboard_service import LeaderboardService
from riftrelay.services.player_state_service import PlayerStateService
from riftrelay.services.progression_service import ProgressionService
from riftrelay.services.reward_service import RewardService
from riftrelay.services.run_session_service import RunSessionService
from riftrelay.utils import datetime_helpers
from riftrelay.utils.exceptions import StoreUnavailableError
from riftrelay.utils.seeded_random import hash_string, pick_unique
from riftrelay.utils.store_client import StoreClient

logger = logging.getLogger(__name__)

OFFERED_MUTATOR_COUNT = 3
DEFAULT_MUTATOR_COUNT = 2


class RunService:
    """Orchestrates sessions, progression, leaderboards and legacy state for one run."""

    def __init__(self, store: StoreClient):
        self.store = store
        self.session_service = RunSessionService(store)
        self.progression_service = ProgressionService(store)
        self.leaderboard_service = LeaderboardService(store)
        self.state_service = PlayerStateService(store)

    def start_run(
        self,
        scope: str,
        username: str,
        mode: ChallengeMode,
        now: datetime,
        requested_perk_ids: Optional[Sequence[str]] = None,
    ) -> RunStartResponse:
        """Issue a ticket with procedurally offered mutators."""
        ensure_player(username)

        progression = self.progression_service.load(scope, username)
        progression.refresh_perks()
        selected_perk_ids = ProgressionService.resolve_run_perks(progression, requested_perk_ids)

        challenge = ChallengeService.current(mode, now) if mode.is_challenge else None
        challenge_tag = challenge.claim_key if challenge else "normal"
        seed = hash_string(
            f"{scope}:{username}:{mode.value}:{challenge_tag}:{datetime_helpers.to_epoch_millis(now)}"
        )
        offered_mutator_ids = pick_unique(seed, OFFERED_MUTATOR_COUNT, MUTATOR_POOL)
        default_mutator_ids = offered_mutator_ids[:DEFAULT_MUTATOR_COUNT]

        session = self.session_service.create(
            scope=scope,
            username=username,
            mode=mode,
            seed=seed,
            offered_mutator_ids=offered_mutator_ids,
            default_mutator_ids=default_mutator_ids,
            selected_perk_ids=selected_perk_ids,
            challenge_cycle_key=challenge.cycle_key if challenge else None,
            now=now,
        )

        logger.info(
            f"Run started: {username} in {scope}, mode={mode.value}, ticket={session.ticket}, "
            f"offered={offered_mutator_ids}, perks={selected_perk_ids}"
        )

        return RunStartResponse(
            ticket=session.ticket,
            mode=session.mode,
            seed=session.seed,
            offered_mutator_ids=session.offered_mutator_ids,
            default_mutator_ids=session.default_mutator_ids,
            challenge=challenge.to_response() if challenge else None,
            started_at=session.started_at,
            expires_at=session.expires_at,
            profile=ProgressionService.build_profile(progression),
        )

    def complete_run(
        self,
        scope: str,
        username: str,
        ticket: str,
        score: float,
        now: datetime,
        survived_seconds: Optional[float] = None,
        requested_mutator_ids: Optional[Sequence[str]] = None,
        stats: Optional[dict[str, Any]] = None,
    ) -> RunCompleteResponse:
        """Consume a ticket and record the run's rewards.

        Raises:
            AuthorizationError: Anonymous caller.
            NotFoundError: Unknown, consumed or concurrently claimed ticket.
            SessionExpiredError: Ticket past its expiry (now deleted).
        """
        ensure_player(username)
        session = self.session_service.claim(scope, username, ticket, now)

        try:
            progression = self.progression_service.load(scope, username)
            outcome = RewardService.compute_reward(
                score=score,
                session=session,
                progression=progression,
                now=now,
                survived_seconds=survived_seconds,
                requested_mutator_ids=requested_mutator_ids,
            )

            if outcome.challenge is not None:
                self.leaderboard_service.record_challenge_score(
                    scope, session.mode, outcome.challenge.cycle_key, username, outcome.adjusted_score
                )
            best_score = self.leaderboard_service.submit_best(scope, username, outcome.adjusted_score)
            self.state_service.mirror_best_score(scope, username, best_score, now)
            self.progression_service.save(scope, username, outcome.progression, now)
        except Exception:
            self.session_service.release(scope, username, ticket)
            raise

        try:
            self.session_service.consume(scope, username, ticket)
        except StoreUnavailableError as e:
            # Rewards are already saved; the claim key still blocks replays until it times out
            logger.error(f"Run {ticket} for {username} rewarded but session not deleted: {e}")

        if stats:
            logger.debug(f"Client stats for run {ticket}: {stats}")
        logger.info(
            f"Run completed: {username} in {scope}, mode={session.mode.value}, ticket={ticket}, "
            f"base={outcome.base_score}, adjusted={outcome.adjusted_score}, xp=+{outcome.xp_gained}, "
            f"currency=+{outcome.currency_gained}, level_ups={outcome.level_ups}"
        )

        return RunCompleteResponse(
            mode=session.mode,
            score=outcome.adjusted_score,
            best_score=best_score,
            reward=outcome.breakdown(),
            profile=ProgressionService.build_profile(outcome.progression),
            leaderboard=self.leaderboard_service.snapshot(scope, username, None, now),
            quests=outcome.quests,
            run_summary=RunSummaryResponse(
                mutator_ids=outcome.mutator_ids,
                completed_challenges=outcome.completed_challenges,
            ),
            completed_at=now,
        )
