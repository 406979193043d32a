"""Configuration management for questlist."""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Record store
    sqlite_db_path: str = Field(default="questlist.db", description="Path to the SQLite record store")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Calendar
    timezone: str | None = Field(
        default=None,
        description="IANA timezone used for day/week buckets (defaults to the host's local zone)",
    )

    # Loot
    loot_seed: int | None = Field(default=None, description="Optional seed for the loot generator")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        """Validate the timezone name resolves to a known zone."""
        if v is None or not v.strip():
            return None
        try:
            ZoneInfo(v.strip())
        except (ZoneInfoNotFoundError, ValueError) as e:
            msg = f"Unknown timezone: {v}"
            raise ValueError(msg) from e
        return v.strip()

    def local_zone(self) -> ZoneInfo | None:
        """Return the configured zone, or None for the host's local zone."""
        return ZoneInfo(self.timezone) if self.timezone else None


# Application Constants
class Constants:
    """Application-wide constants."""

    # XP by priority
    XP_HIGH: int = 40
    XP_MID: int = 20
    XP_LOW: int = 10

    # Sort weight by priority
    WEIGHT_HIGH: int = 3
    WEIGHT_MID: int = 2
    WEIGHT_LOW: int = 1

    # Daily goal
    DEFAULT_DAILY_GOAL_XP: int = 60
    MIN_DAILY_GOAL_XP: int = 10
    MAX_DAILY_GOAL_XP: int = 500

    # Task fields
    MAX_TAGS: int = 8
    MIN_ESTIMATE_MINUTES: int = 0
    MAX_ESTIMATE_MINUTES: int = 9999

    # Due filter window (today .. today + N days, inclusive)
    DUE_WEEK_WINDOW_DAYS: int = 7

    # Level curve: round(BASE + level * STEP)
    LEVEL_XP_BASE: int = 80
    LEVEL_XP_STEP: int = 22

    # Badges
    MAX_BADGES: int = 10

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 500  # Tasks fetched per store page



def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
