"""FastAPI dependencies."""
from dataclasses import dataclass
import logging

from fastapi import Depends, HTTPException, Request

from riftrelay.config import Settings, get_settings
from riftrelay.utils import store_client
from riftrelay.utils.store_client import StoreClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerContext:
    """Caller identity forwarded by the platform host."""
    scope: str
    username: str
    is_anonymous: bool


def get_store() -> StoreClient:
    """Shared store client. Tests override this with a fresh in-memory store."""
    return store_client


def get_player_context(
        request: Request,
        settings: Settings = Depends(get_settings),
) -> PlayerContext:
    """Resolve the post scope and username from the forwarded identity headers."""
    scope = (request.headers.get(settings.scope_header) or "").strip()
    if not scope:
        logger.warning(f"Request to {request.url.path} without {settings.scope_header}")
        raise HTTPException(status_code=400, detail="missing_post_id")

    username = (request.headers.get(settings.username_header) or "").strip()
    if not username:
        username = settings.anonymous_username

    return PlayerContext(
        scope=scope,
        username=username,
        is_anonymous=username == settings.anonymous_username,
    )


def require_player(context: PlayerContext = Depends(get_player_context)) -> PlayerContext:
    """Reject anonymous callers before any body handling or store access."""
    if context.is_anonymous:
        raise HTTPException(status_code=401, detail="login_required")
    return context
