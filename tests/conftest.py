"""Pytest configuration and fixtures."""
import os
from datetime import datetime, timedelta, UTC

import pytest

# Tests always run against the in-memory store and a throwaway log directory
os.environ["REDIS_URL"] = ""
os.environ.setdefault("LOG_DIR", "logs/test")

from riftrelay.config import get_settings
from riftrelay.models.enums import ChallengeMode
from riftrelay.models.run_session import RunSession
from riftrelay.utils import datetime_helpers
from riftrelay.utils.store_client import StoreClient


settings = get_settings()


@pytest.fixture
def store():
    """Fresh in-memory store per test."""
    return StoreClient(None)


class FrozenClock:
    """Controllable replacement for ``datetime_helpers.utcnow``."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock(monkeypatch):
    """Freeze the application clock at a fixed Wednesday noon UTC."""
    frozen = FrozenClock(datetime(2025, 3, 12, 12, 0, 0, tzinfo=UTC))
    monkeypatch.setattr(datetime_helpers, "utcnow", frozen)
    return frozen


@pytest.fixture
async def test_app(store):
    """Create test app with the store dependency overridden."""
    from riftrelay.main import app
    from riftrelay.dependencies import get_store

    app.dependency_overrides[get_store] = lambda: store
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def session_factory():
    """Build run sessions directly for reward engine tests."""

    def _create_session(
        mode: ChallengeMode = ChallengeMode.NORMAL,
        offered: list[str] | None = None,
        defaults: list[str] | None = None,
        perks: list[str] | None = None,
        challenge_cycle_key: str | None = None,
        started_at: datetime | None = None,
    ) -> RunSession:
        started = started_at or datetime(2025, 3, 12, 12, 0, 0, tzinfo=UTC)
        return RunSession(
            ticket="ticket-under-test",
            mode=mode,
            seed=1234,
            offered_mutator_ids=offered if offered is not None else [],
            default_mutator_ids=defaults if defaults is not None else [],
            selected_perk_ids=perks or [],
            challenge_cycle_key=challenge_cycle_key,
            started_at=started,
            expires_at=started + timedelta(minutes=20),
        )

    return _create_session
