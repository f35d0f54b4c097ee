"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the Users API happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. log_level -> LOG_LEVEL). Type coercion and validation are built in.

The listening port is deliberately NOT a setting. The service always binds
SERVER_PORT; only the bind address is configurable.

Layer rule: core/ is the kernel. This module may not import from api/ or users/.
"""

import logging
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("usersapi.config")

SERVER_PORT = 8080

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `seed_users` reads from SEED_USERS, `debug` reads from DEBUG.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    host: str = "0.0.0.0"
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    # Load the two demo records on startup. Turning this off starts the
    # service with an empty collection and the ID counter at 1.
    seed_users: bool = True

    # ------------------------------------------------------------------
    # Browser access
    # ------------------------------------------------------------------

    # The frontend dev server runs on port 3000 next to the API.
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit: str = "120/minute"
    rate_limit_enabled: bool = True

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Uppercase the level name and reject anything logging does not know."""
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(_LOG_LEVELS)}")
        return level

    @model_validator(mode="after")
    def apply_debug_level(self) -> "Settings":
        """DEBUG=true forces DEBUG logging regardless of LOG_LEVEL."""
        if self.debug and self.log_level != "DEBUG":
            self.log_level = "DEBUG"
            logger.warning("DEBUG is enabled -- log level forced to DEBUG.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
