"""GHLines configuration management."""

import logging

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional

logger = logging.getLogger("ghlines.config")


class GHLinesSettings(BaseSettings):
    """Settings loaded from environment variables or .env file."""

    # Telegram
    telegram_bot_token: Optional[str] = Field(default=None, description="Telegram bot token")

    # Fetching
    fetch_timeout: float = Field(default=5.0, gt=0, description="Per-request deadline in seconds")
    max_file_bytes: int = Field(default=1_048_576, gt=0, description="Largest file that will be fetched")
    max_concurrent_fetches: int = Field(default=6, ge=1, description="Simultaneous outbound fetches")
    user_agent: str = Field(default="Mozilla/5.0 (compatible; GHLinesBot/0.4)", description="HTTP User-Agent")

    # Cache
    cache_ttl_seconds: float = Field(default=300.0, ge=0, description="How long fetched files are reused")
    cache_max_entries: int = Field(default=256, ge=1, description="Maximum cached files")

    # Reply policy
    max_lines: int = Field(default=50, ge=1, description="Refuse to display more lines than this")
    max_message_chars: int = Field(default=4096, ge=1, description="Chat platform message length limit")
    dismiss_seconds: float = Field(default=15.0, ge=0, description="How long the dismiss button stays")
    notice_delete_seconds: float = Field(default=5.0, ge=0, description="Delay before notices are deleted")

    # Rate limiting
    ratelimit_max_requests: int = Field(default=5, ge=1, description="Replies per user per window")
    ratelimit_window_seconds: int = Field(default=60, ge=1, description="Rate limit window")

    # Logging
    log_file: Optional[str] = Field(default="~/ghlines.log", description="Log file path (empty to disable)")

    model_config = {"env_prefix": "GHLINES_", "env_file": ".env", "extra": "ignore"}


def load_settings() -> GHLinesSettings:
    """Load settings from environment."""
    settings = GHLinesSettings()

    if settings.fetch_timeout > 30:
        logger.warning(
            f"fetch_timeout is {settings.fetch_timeout}s — a slow host will hold "
            f"every reply for that long."
        )
    if settings.cache_ttl_seconds > 3600:
        logger.warning(
            "cache_ttl_seconds is over an hour — branch links may show stale lines."
        )

    return settings
