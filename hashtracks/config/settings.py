"""Application settings using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Scraper settings
    scraper_user_agent: str = Field(
        default="HashTracksBot/0.1 (+https://github.com/hashtracks/hashtracks)",
        alias="SCRAPER_USER_AGENT",
    )
    scraper_request_timeout: float = Field(default=30, alias="SCRAPER_REQUEST_TIMEOUT")
    scraper_max_redirects: int = Field(default=5, alias="SCRAPER_MAX_REDIRECTS")
    scraper_max_pages: int = Field(default=3, alias="SCRAPER_MAX_PAGES")
    scraper_default_days: int = Field(default=90, alias="SCRAPER_DEFAULT_DAYS")
    scraper_deadline_seconds: float | None = Field(default=None, alias="SCRAPER_DEADLINE_SECONDS")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(default="console", alias="LOG_FORMAT")
    log_file: str | None = Field(default=None, alias="LOG_FILE")

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    # Google APIs (Calendar v3, Sheets v4 and Blogger v3 share one key)
    google_calendar_api_key: str | None = Field(default=None, alias="GOOGLE_CALENDAR_API_KEY")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
