"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - Backend credentials come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process
    - A missing kv_url is not an error here; RedisBackend.from_settings raises ConfigError

Design Decisions:
    - store_lookups is a dict field: pydantic-settings parses it from a JSON env value,
      e.g. STORE_LOOKUPS='{"user": "userId", "category": "category"}'
    - Defaults provided for all non-secret settings
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Backend (Redis with the RedisJSON module)
    kv_url: str | None = Field(
        None, validation_alias=AliasChoices("kv_url", "kv_rest_api_url", "redis_url"),
    )
    kv_token: str | None = Field(
        None, validation_alias=AliasChoices("kv_token", "kv_rest_api_token"),
    )
    kv_json_type: str = "ReJSON-RL"

    @field_validator("kv_url", mode="before")
    @classmethod
    def blank_url_is_missing(cls, v: str | None) -> str | None:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    # Store
    store_key: str = "record"
    store_index_name: str | None = None
    store_lookups: dict[str, str] = {}
    store_expire_seconds: int | None = None

    # Reads
    find_warn_threshold: int = 100
    mget_block_size: int = 256
    scan_default_count: int = 999

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
