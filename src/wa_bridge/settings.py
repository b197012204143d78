"""
wa_bridge.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the storage adapter and API.
- Read `DATABASE_URL` without the service prefix, as deployment platforms set it.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    - Strict env-driven configuration (prefix `BRIDGE_`, optional `.env` file)
    - Defaults safe for local dev: no DATABASE_URL means the embedded store
    """

    model_config = SettingsConfigDict(
        env_prefix="BRIDGE_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "whatsapp-bridge"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Remote store. Holds credentials, so it is kept out of repr.
    database_url: str | None = Field(
        default=None,
        repr=False,
        validation_alias=AliasChoices("DATABASE_URL", "BRIDGE_DATABASE_URL", "database_url"),
    )

    # Local fallback store, relative to the working directory.
    local_store_dir: str = "store"
    local_store_file: str = "whatsmeow.db"

    probe_timeout_seconds: float = 5.0
    required_table: str = "whatsmeow_device"

    # Status surface: also strip the username from the redacted host.
    status_hide_username: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Tests construct `Settings(...)` directly with explicit values instead of
# patching the environment; `get_settings` is only used by the entrypoint.
