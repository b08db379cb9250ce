"""Health check endpoint."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from riftrelay.config import get_settings
from riftrelay.dependencies import get_store
from riftrelay.utils.exceptions import StoreUnavailableError
from riftrelay.utils.store_client import StoreClient
from riftrelay.version import APP_VERSION
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health_check(store: StoreClient = Depends(get_store)):
    """Health check endpoint for monitoring."""
    try:
        store.ping()
    except StoreUnavailableError as e:
        logger.error(f"Store health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "error", "detail": "Store connection failed", "store": store.backend},
        )

    return {
        "status": "ok",
        "store": store.backend,
    }


@router.get("/status")
async def game_status():
    """Version and environment for display on the client."""
    settings = get_settings()
    return {
        "version": APP_VERSION,
        "environment": settings.environment,
    }
