"""Leaderboard endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
import logging

from riftrelay.dependencies import PlayerContext, get_player_context, get_store
from riftrelay.models.enums import ChallengeMode
from riftrelay.schemas.leaderboard import ChallengeLeaderboardResponse, LeaderboardResponse
from riftrelay.services.challenge_service import ChallengeService
from riftrelay.services.leaderboard_service import LeaderboardService
from riftrelay.utils import datetime_helpers
from riftrelay.utils.store_client import StoreClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


@router.get("", response_model=LeaderboardResponse)
def get_leaderboard(
    limit: Optional[int] = Query(default=None),
    context: PlayerContext = Depends(get_player_context),
    store: StoreClient = Depends(get_store),
):
    """Global best-score ranking for the post, with the caller's own entry."""
    return LeaderboardService(store).snapshot(
        context.scope, context.username, limit, datetime_helpers.utcnow()
    )


@router.get("/challenge/{mode}", response_model=ChallengeLeaderboardResponse)
def get_challenge_leaderboard(
    mode: ChallengeMode,
    cycle_key: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    context: PlayerContext = Depends(get_player_context),
    store: StoreClient = Depends(get_store),
):
    """Ranking for one daily or weekly challenge cycle (current cycle by default)."""
    if not mode.is_challenge:
        raise HTTPException(status_code=400, detail="invalid_challenge_mode")

    now = datetime_helpers.utcnow()
    if cycle_key is None:
        cycle_key = ChallengeService.current_cycle_key(mode, now)
    else:
        try:
            ChallengeService.cycle_expiry(mode, cycle_key)
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid_cycle_key")

    return LeaderboardService(store).challenge_snapshot(
        context.scope, mode, cycle_key, context.username, limit, now
    )
