"""Utilities module - store client and time helpers."""
from riftrelay.config import get_settings
from riftrelay.utils.store_client import StoreClient, StoreKeys
from riftrelay.utils.datetime_helpers import ensure_utc, utcnow

settings = get_settings()

# Create singleton instance
store_client = StoreClient(
    settings.redis_url if settings.redis_url else None,
    timeout_seconds=settings.store_timeout_seconds,
)

__all__ = ["store_client", "StoreClient", "StoreKeys", "ensure_utc", "utcnow"]
