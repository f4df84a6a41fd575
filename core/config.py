"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for tenant-auth happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.
The auth core never imports this module: the composition root (core/app.py)
reads Settings and hands plain values (TTL, bcrypt cost) to the service.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. token_ttl_seconds -> TOKEN_TTL_SECONDS). Type coercion and
      validation are built in.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or storage/.
"""

from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'storage' / 'tenantauth.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL
    # Per-call budget handed to the store. A locked or slow database fails
    # the call instead of pinning a worker thread.
    storage_timeout_seconds: float = Field(default=5.0, gt=0)

    # ------------------------------------------------------------------
    # Tokens and hashing
    # ------------------------------------------------------------------

    token_ttl_seconds: int = Field(default=3600, gt=0)
    bcrypt_cost: int = Field(default=10, ge=4, le=31)
    # 0 disables the bound. Any positive value caps simultaneous bcrypt calls.
    hash_concurrency: int = Field(default=0, ge=0)

    # ------------------------------------------------------------------
    # Server / logging
    # ------------------------------------------------------------------

    host: str = "127.0.0.1"
    port: int = Field(default=8000, gt=0, lt=65536)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Accept any case ("debug", "Info") and store the canonical upper form."""
        level = value.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unknown LOG_LEVEL {value!r}")
        return level

    @property
    def token_ttl(self) -> timedelta:
        return timedelta(seconds=self.token_ttl_seconds)


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
