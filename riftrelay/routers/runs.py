"""Run lifecycle endpoints."""
from fastapi import APIRouter, Depends, HTTPException
import logging

from riftrelay.dependencies import PlayerContext, get_store, require_player
from riftrelay.schemas.run import (
    RunCompleteRequest,
    RunCompleteResponse,
    RunStartRequest,
    RunStartResponse,
)
from riftrelay.services.run_service import RunService
from riftrelay.utils import datetime_helpers
from riftrelay.utils.exceptions import NotFoundError, SessionExpiredError
from riftrelay.utils.store_client import StoreClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/run", tags=["runs"])


@router.post("/start", response_model=RunStartResponse)
def start_run(
    request: RunStartRequest,
    context: PlayerContext = Depends(require_player),
    store: StoreClient = Depends(get_store),
):
    """Issue a single-use run ticket with offered mutators."""
    return RunService(store).start_run(
        scope=context.scope,
        username=context.username,
        mode=request.mode,
        now=datetime_helpers.utcnow(),
        requested_perk_ids=request.selected_perk_ids,
    )


@router.post("/complete", response_model=RunCompleteResponse)
def complete_run(
    request: RunCompleteRequest,
    context: PlayerContext = Depends(require_player),
    store: StoreClient = Depends(get_store),
):
    """Consume a ticket and convert the run's score into rewards."""
    try:
        return RunService(store).complete_run(
            scope=context.scope,
            username=context.username,
            ticket=request.ticket,
            score=request.score,
            now=datetime_helpers.utcnow(),
            survived_seconds=request.survived_seconds,
            requested_mutator_ids=request.selected_mutator_ids,
            stats=request.stats,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SessionExpiredError as e:
        raise HTTPException(status_code=410, detail=str(e))
