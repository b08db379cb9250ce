"""Meta progression endpoints: profile overview and perk loadout."""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
import logging

from riftrelay.dependencies import PlayerContext, get_player_context, get_store, require_player
from riftrelay.schemas.meta import MetaResponse, PerkEquipRequest, PerkEquipResponse
from riftrelay.services.meta_service import MetaService
from riftrelay.utils import datetime_helpers
from riftrelay.utils.exceptions import GameValidationError
from riftrelay.utils.store_client import StoreClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/meta", tags=["meta"])


@router.get("", response_model=MetaResponse)
def get_meta(
    limit: Optional[int] = Query(default=None),
    context: PlayerContext = Depends(get_player_context),
    store: StoreClient = Depends(get_store),
):
    """Profile, quests, active challenges, catalog and leaderboard.

    Anonymous callers get a read-only default profile with no quests.
    """
    return MetaService(store).get_meta(
        context.scope, context.username, datetime_helpers.utcnow(), limit
    )


@router.post("/perk/equip", response_model=PerkEquipResponse)
def equip_perk(
    request: PerkEquipRequest,
    context: PlayerContext = Depends(require_player),
    store: StoreClient = Depends(get_store),
):
    """Toggle a perk in the player's loadout."""
    try:
        return MetaService(store).equip_perk(
            context.scope, context.username, request.perk_id, datetime_helpers.utcnow()
        )
    except GameValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
