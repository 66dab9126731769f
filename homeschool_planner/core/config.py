"""
Application configuration using Pydantic Settings.

Scheduling knobs (recurrence cap, catch-up look-ahead, learning window)
are read from the environment so deployments can tune them without code changes.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "test"] = "local"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./homeschool_planner.db"

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # ===========================================
    # Learning day
    # ===========================================
    DEFAULT_TIMEZONE: str = "UTC"
    DEFAULT_WEEKLY_BUDGET_MINUTES: int = 900
    MAX_SESSIONS_PER_DAY: int = 6

    # Learning window used when searching for open slots ("HH:MM")
    LEARNING_DAY_START: str = "08:00"
    LEARNING_DAY_END: str = "17:00"

    # Reject over-capacity schedules instead of only warning
    STRICT_CAPACITY: bool = False

    # ===========================================
    # Recurrence expansion
    # ===========================================
    RECURRENCE_MAX_OCCURRENCES: int = 366
    # Safety ceiling for rules bounded by COUNT or UNTIL
    RECURRENCE_BOUNDED_MAX_OCCURRENCES: int = 5000
    RECURRENCE_DEFAULT_DURATION_MINUTES: int = 60

    # ===========================================
    # Catch-up redistribution
    # ===========================================
    # "oldest_first" | "priority_first" | "longest_first"
    CATCH_UP_POLICY: Literal["oldest_first", "priority_first", "longest_first"] = "oldest_first"
    CATCH_UP_LOOKAHEAD_DAYS: int = 14
    CATCH_UP_DEFAULT_BATCH: int = 5
    CATCH_UP_MAX_BATCH: int = 10
    SUGGESTION_DAYS: int = 14
    SUGGESTION_LIMIT: int = 10
    # Suggestions at or above this utilization are not recommended
    SUGGESTION_RECOMMENDED_BELOW_PERCENT: int = 80

    # ===========================================
    # Capacity status thresholds (percent of budget)
    # ===========================================
    CAPACITY_MODERATE_PERCENT: int = 40
    CAPACITY_BUSY_PERCENT: int = 70
    CAPACITY_OVERLOADED_PERCENT: int = 90

    # ===========================================
    # Quality heuristics
    # ===========================================
    SUBJECT_CONCENTRATION_LIMIT: int = 2
    BACK_TO_BACK_GAP_MINUTES: int = 15
    LONG_SESSION_MINUTES: int = 90

    @property
    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == "local"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
