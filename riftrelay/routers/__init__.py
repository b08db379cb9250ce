"""API routers."""
from riftrelay.routers import health, leaderboard, meta, runs, state

__all__ = ["health", "leaderboard", "meta", "runs", "state"]
