"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. All settings are validated
at startup: if a setting has the wrong type, the app fails fast with a
clear error message.

Usage:
    from custodial_escrow.config import get_settings
    settings = get_settings()
    print(settings.database_url)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the custodial escrow service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True
    app_log_level: str = "DEBUG"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # --- Database ---
    database_url: str = "sqlite+aiosqlite:///./custodial_escrow.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_echo_sql: bool = False

    # --- Deal identifiers ---
    # Creation timestamps are floored to this many seconds before hashing.
    deal_id_clock_resolution_seconds: int = Field(default=1, ge=1)
    # "none": id depends on parameters + timestamp only (duplicates in the
    # same window conflict). "sequence": the registry size is hashed in too.
    deal_id_nonce_mode: Literal["none", "sequence"] = "none"

    # --- MCP ---
    mcp_transport: str = "sse"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
