"""
Configuration and logging setup.

Settings come from environment variables; nothing is read from disk.
"""

import sys
from typing import Optional

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the agent and its HTTP/MCP boundaries."""

    model_config = SettingsConfigDict(
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    # Model
    anthropic_api_key: Optional[str] = Field(default=None, alias="ANTHROPIC_API_KEY")
    model: str = Field(default="claude-sonnet-4-20250514", alias="SETLIST_MODEL")
    max_tokens: int = Field(default=2048, alias="SETLIST_MAX_TOKENS")

    # Collaborators
    library_api_url: Optional[str] = Field(default=None, alias="LIBRARY_API_URL")
    youtube_api_key: Optional[str] = Field(default=None, alias="YOUTUBE_API_KEY")

    # Server
    host: str = Field(default="0.0.0.0", alias="SETLIST_HOST")
    port: int = Field(default=4000, alias="SETLIST_PORT")
    log_level: str = Field(default="INFO", alias="SETLIST_LOG_LEVEL")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment, using defaults for unset keys."""
        return cls()


def configure_logging(level: str = "INFO") -> None:
    """Route loguru output to stderr at ``level``. Call once per process."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
