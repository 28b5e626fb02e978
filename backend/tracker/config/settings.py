"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated. Structural
defaults (database pool sizing) come from config/default.yaml.

Usage:
    from tracker.config import settings

    # Access settings
    db_url = settings.DATABASE_URL_RESOLVED
    window = settings.STREAK_WINDOW_DAYS
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings

from tracker.enums.api import RateLimitType


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Code Progress Tracker"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "tracker"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "tracker"

    # Full SQLAlchemy URL; takes precedence over the POSTGRES_* parts when set
    DATABASE_URL: str = ""

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def POSTGRES_URL_SYNC(self) -> str:
        """Sync PostgreSQL connection URL for Alembic migrations."""
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def DATABASE_URL_RESOLVED(self) -> str:
        """Connection URL actually used by the engine."""
        return self.DATABASE_URL or self.POSTGRES_URL

    # Platform endpoints
    LEETCODE_GRAPHQL_URL: str = "https://leetcode.com/graphql"
    LEETCODE_STATS_API_URL: str = "https://leetcode-stats-api.herokuapp.com"
    LEETCODE_ALFA_API_URL: str = "https://alfa-leetcode-api.onrender.com"
    CODEFORCES_API_URL: str = "https://codeforces.com/api"
    CODECHEF_PROFILE_URL: str = "https://www.codechef.com/users"
    PLATFORM_USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
    )

    # Platform fetching
    PLATFORM_REQUEST_TIMEOUT_SECONDS: float = 20.0
    PLATFORM_FETCH_DEADLINE_SECONDS: float = 60.0
    PLATFORM_RETRY_ATTEMPTS: int = 2
    PLATFORM_RETRY_BACKOFF_SECONDS: float = 1.0

    # Sync
    SYNC_MAX_CONCURRENT_USERS: int = 5
    SYNC_COMMIT_MAX_ATTEMPTS: int = 1
    ACTIVE_USER_LOOKBACK_DAYS: int = 7
    BATCH_SYNC_ENABLED: bool = False
    BATCH_SYNC_HOUR: int = 2

    # Streaks
    STREAK_WINDOW_DAYS: int = 45
    STREAK_MILESTONES: list[int] = [7, 14, 30]

    # Credit given to the ledger when a roadmap milestone is completed
    MILESTONE_STUDY_MINUTES: int = 30

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/minute"
    RATE_LIMIT_SYNC: str = "5/minute"
    RATE_LIMIT_BATCH: str = "2/minute"

    def get_rate_limit(self, rate_limit_type: RateLimitType) -> str:
        """Return the configured limit string for an endpoint category."""
        limits = {
            RateLimitType.DEFAULT: self.RATE_LIMIT_DEFAULT,
            RateLimitType.SYNC: self.RATE_LIMIT_SYNC,
            RateLimitType.BATCH: self.RATE_LIMIT_BATCH,
        }
        return limits.get(rate_limit_type, self.RATE_LIMIT_DEFAULT)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
