"""
Configuration Utility - Environment Variables Management

Centralized configuration loading from .env files using pydantic-settings.
Type-safe access to all environment variables with validation.

Settings are read once per invocation and handed to each component
explicitly, so tests can build their own instance per call.

Usage:
    from inbox_cron.utils.config import get_settings

    settings = get_settings()
    token = settings.NOTION_API_TOKEN
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Notion API Configuration
    NOTION_API_TOKEN: str = Field(default="")
    IDE_INBOX_DB_ID: str = Field(default="")
    NOTION_API_BASE: str = Field(default="https://api.notion.com/v1")
    NOTION_VERSION: str = Field(default="2022-06-28")
    API_TIMEOUT: float = Field(default=30.0)

    # Fixed page properties, sent only when set
    PAGE_AGENT: str | None = Field(default=None)
    PAGE_CONTENT_TYPE: str | None = Field(default=None)

    # Scheduler Configuration
    DISPATCH_SCHEDULE_CRON: str = Field(default="0 * * * *")
    DISPATCH_DELAY_MS: int = Field(default=100, ge=0)
    TASK_TIMEZONE: str = Field(default="America/New_York")
    CONTENT_BATCH_SIZE: int = Field(default=5, ge=1)

    # Pending Task Queue (Redis), disabled when TASK_QUEUE_URL is unset
    TASK_QUEUE_URL: str | None = Field(default=None)
    TASK_QUEUE_KEY: str = Field(default="pending_tasks")
    REDIS_MAX_CONNECTIONS: int = Field(default=10)

    # Run Log Store (SQLite), disabled when RUN_LOG_DB_PATH is unset
    RUN_LOG_DB_PATH: str | None = Field(default=None)

    # Backend API Configuration
    API_PORT: int = Field(default=8000)
    API_HOST: str = Field(default="0.0.0.0")

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")

    # Application Metadata
    ENVIRONMENT: str = Field(default="production")
    APP_NAME: str = Field(default="ide-inbox-cron")
    APP_VERSION: str = Field(default="0.1.0")

    @field_validator("RUN_LOG_DB_PATH")
    @classmethod
    def validate_run_log_path(cls, v: str | None) -> str | None:
        # Schema setup and each insert open separate connections
        if v is not None and (v == ":memory:" or v.startswith("file::memory:")):
            raise ValueError("RUN_LOG_DB_PATH must be a file path; in-memory SQLite is not supported")
        return v

    @property
    def dispatch_delay(self) -> float:
        """Pause between submissions, in seconds."""
        return self.DISPATCH_DELAY_MS / 1000.0


def get_settings() -> Settings:
    """Load settings from the environment.

    Returns:
        A fresh Settings instance
    """
    return Settings()
