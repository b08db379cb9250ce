"""Application configuration management."""
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
import logging


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Redis (optional, falls back to in-memory)
    redis_url: str = ""
    store_timeout_seconds: float = 2.0  # Socket + connect timeout for every store call

    # Application
    environment: str = "development"
    frontend_url: str = "https://www.reddit.com"
    # Comma-separated; kept as a str so pydantic-settings does not json-decode it
    allowed_origins: str = ""
    log_dir: str = "logs"

    # Platform identity (resolved upstream and forwarded as headers)
    scope_header: str = "X-Post-Id"
    username_header: str = "X-Username"
    anonymous_username: str = "anonymous"

    # Run lifecycle
    run_ticket_ttl_minutes: int = 20
    run_session_retention_hours: int = 24  # Unconsumed sessions are kept this long so expiry is still detectable
    run_claim_timeout_seconds: int = 30  # Lifetime of an in-flight completion claim

    # Leaderboards
    leaderboard_default_limit: int = 10
    leaderboard_max_limit: int = 100

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("anonymous_username")
    @classmethod
    def anonymous_username_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("anonymous_username must not be blank")
        return value.strip()

    @model_validator(mode="after")
    def validate_all_config(self):
        """Validate lifecycle and leaderboard configuration."""
        logger = logging.getLogger(__name__)

        if self.run_ticket_ttl_minutes < 1:
            raise ValueError("run_ticket_ttl_minutes must be at least 1 minute")

        if self.run_session_retention_hours * 60 < self.run_ticket_ttl_minutes:
            raise ValueError("run_session_retention_hours must cover the run ticket lifetime")

        if self.run_claim_timeout_seconds < 1:
            raise ValueError("run_claim_timeout_seconds must be at least 1 second")

        if self.store_timeout_seconds <= 0:
            raise ValueError("store_timeout_seconds must be positive")

        if self.leaderboard_max_limit < 1 or self.leaderboard_default_limit < 1:
            raise ValueError("leaderboard limits must be at least 1")

        if self.leaderboard_default_limit > self.leaderboard_max_limit:
            logger.warning(
                f"leaderboard_default_limit={self.leaderboard_default_limit} exceeds the maximum, "
                f"clamping to {self.leaderboard_max_limit}"
            )
            self.leaderboard_default_limit = self.leaderboard_max_limit

        return self

    @property
    def cors_origins(self) -> list[str]:
        """Allowed CORS origins parsed from the comma-separated setting."""
        origins = [item.strip() for item in self.allowed_origins.split(",") if item.strip()]
        return origins or [self.frontend_url]

    @property
    def run_ticket_ttl_seconds(self) -> int:
        return self.run_ticket_ttl_minutes * 60

    @property
    def run_session_retention_seconds(self) -> int:
        return self.run_session_retention_hours * 3600


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
