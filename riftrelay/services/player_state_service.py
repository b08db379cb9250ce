"""Legacy saved-game state and direct score submission."""
from datetime import datetime
from typing import Any, Optional
import logging

from riftrelay.models.player_state import StoredState, parse_stored_state
from riftrelay.services.leaderboard_service import LeaderboardService
from riftrelay.services.reward_service import RewardService
from riftrelay.utils.exceptions import NotFoundError
from riftrelay.utils.store_client import StoreClient, StoreKeys

logger = logging.getLogger(__name__)


class PlayerStateService:

    def __init__(self, store: StoreClient):
        self.store = store
        self.leaderboard_service = LeaderboardService(store)

    def load(self, scope: str, username: str) -> Optional[StoredState]:
        return parse_stored_state(self.store.get(StoreKeys.state(scope, username)))

    def get_state(self, scope: str, username: str) -> StoredState:
        state = self.load(scope, username)
        if state is None:
            raise NotFoundError("no_state_found")
        return state

    def _save(self, scope: str, state: StoredState) -> StoredState:
        self.store.set(StoreKeys.state(scope, state.username), state.model_dump_json())
        return state

    def put_state(
        self,
        scope: str,
        username: str,
        now: datetime,
        level: Optional[float] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> StoredState:
        """Upsert level and/or data. Omitted fields and the best score carry over."""
        previous = self.load(scope, username)
        state = StoredState(
            username=username,
            level=level if level is not None else (previous.level if previous else None),
            data=data if data is not None else (previous.data if previous else None),
            best_score=previous.best_score if previous else None,
            updated_at=now,
        )
        return self._save(scope, state)

    def mirror_best_score(self, scope: str, username: str, best_score: int, now: datetime) -> StoredState:
        """Copy a leaderboard best into the saved state, keeping level and data."""
        previous = self.load(scope, username)
        state = StoredState(
            username=username,
            level=previous.level if previous else None,
            data=previous.data if previous else None,
            best_score=best_score,
            updated_at=now,
        )
        return self._save(scope, state)

    def submit_score(self, scope: str, username: str, score: float, now: datetime) -> tuple[int, StoredState]:
        """Merge a raw score into the global board. Returns the best score and updated state."""
        sanitized = RewardService.sanitize_base_score(score)
        best = self.leaderboard_service.submit_best(scope, username, sanitized)
        state = self.mirror_best_score(scope, username, best, now)
        logger.info(f"Score submitted by {username} in {scope}: {sanitized} (best {best})")
        return best, state
