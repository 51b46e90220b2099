"""
Application Configuration

Load settings from environment variables with validation.
"""

from functools import lru_cache
from typing import List
from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: str = ""  # Empty: DEBUG when debug, else INFO

    # Upstream content API
    upstream_base_url: str = "https://www.reddit.com"
    public_site_url: str = "https://reddit.com"
    user_agent: str = "reelfeed/0.1"

    # Feed Configuration
    default_channel: str = "TikTokCringe"
    page_size: int = Field(default=10, ge=1, le=100)
    pagination_threshold: int = Field(default=2, ge=0)
    excluded_origins: List[str] = Field(default_factory=lambda: ["youtube", "youtu.be"])
    autoload_on_startup: bool = True

    # Proxy chain
    fetch_timeout_seconds: float = Field(default=8.0, gt=0)

    # Autocomplete
    suggest_debounce_ms: int = Field(default=300, ge=0)
    suggest_min_length: int = Field(default=2, ge=1)

    # Rate Limiting
    rate_limit_per_minute: int = 60

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
