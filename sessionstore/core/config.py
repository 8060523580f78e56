"""
Session store configuration using Pydantic Settings.

Configuration values can be set via environment variables (prefixed with
``SESSION_STORE_``), a .env file, or keyword overrides passed to the store.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ONE_DAY = 86400


class StoreSettings(BaseSettings):
    """Session store settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="SESSION_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Table location
    schema_name: Optional[str] = "public"
    table_name: str = Field(default="sessions", min_length=1)

    # Schema synchronization
    sync: bool = False
    sync_timeout: int = Field(default=3000, gt=0)  # milliseconds

    # One opportunistic sweep per this many reads, 0 disables
    gc_frequency: int = Field(default=10000, ge=0)

    timestamps: bool = False

    # Used when the session cookie carries no maxAge (seconds)
    browser_session_lifetime: int = Field(default=ONE_DAY, gt=0)

    # Only read by the engine factory and the operator script
    database_url: str = "sqlite:///./data/sessions.db"

    # Logging
    log_level: str = "INFO"
    json_logging: bool = False


# Global settings instance
settings = StoreSettings()
