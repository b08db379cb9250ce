"""Saved-state, score submission and client bootstrap endpoints."""
from fastapi import APIRouter, Depends, HTTPException
import logging

from riftrelay.dependencies import PlayerContext, get_player_context, get_store, require_player
from riftrelay.schemas.base import format_timestamp
from riftrelay.schemas.state import (
    InitResponse,
    ScoreSubmitRequest,
    ScoreSubmitResponse,
    StateResponse,
    StateUpsertRequest,
)
from riftrelay.services.leaderboard_service import LeaderboardService
from riftrelay.services.player_state_service import PlayerStateService
from riftrelay.utils import datetime_helpers
from riftrelay.utils.exceptions import NotFoundError
from riftrelay.utils.store_client import StoreClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["state"])

INIT_LEADERBOARD_LIMIT = 10


@router.get("/init", response_model=InitResponse)
def init(
    context: PlayerContext = Depends(get_player_context),
    store: StoreClient = Depends(get_store),
):
    """Bootstrap payload: identity, saved state and leaderboard."""
    now = datetime_helpers.utcnow()
    state = PlayerStateService(store).load(context.scope, context.username)
    leaderboard = LeaderboardService(store).snapshot(
        context.scope, context.username, INIT_LEADERBOARD_LIMIT, now
    )

    return InitResponse(
        post_id=context.scope,
        username=context.username,
        previous_time=format_timestamp(state.updated_at) if state else "",
        state=StateResponse.model_validate(state) if state else None,
        leaderboard=leaderboard,
    )


@router.get("/state", response_model=StateResponse)
def get_state(
    context: PlayerContext = Depends(get_player_context),
    store: StoreClient = Depends(get_store),
):
    try:
        state = PlayerStateService(store).get_state(context.scope, context.username)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return StateResponse.model_validate(state)


@router.post("/state", response_model=StateResponse)
def put_state(
    request: StateUpsertRequest,
    context: PlayerContext = Depends(require_player),
    store: StoreClient = Depends(get_store),
):
    """Save level and/or free-form data. Omitted fields keep their stored value."""
    state = PlayerStateService(store).put_state(
        context.scope,
        context.username,
        datetime_helpers.utcnow(),
        level=request.level,
        data=request.data,
    )
    return StateResponse.model_validate(state)


@router.post("/score", response_model=ScoreSubmitResponse)
def submit_score(
    request: ScoreSubmitRequest,
    context: PlayerContext = Depends(require_player),
    store: StoreClient = Depends(get_store),
):
    """Merge a raw score into the global leaderboard as a personal best."""
    best, state = PlayerStateService(store).submit_score(
        context.scope, context.username, request.score, datetime_helpers.utcnow()
    )
    return ScoreSubmitResponse(username=context.username, score=best, updated_at=state.updated_at)
