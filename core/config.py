"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Chirpy happen here. No module should call
os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET, polka_key -> POLKA_KEY).

  @model_validator(mode="after"): dev mode (DEBUG=true) generates a signing
      secret with a warning, production mode refuses to start without one.

Secrets are read here once and handed to AuthService at construction. The auth
package never reads configuration on its own.

Layer rule: core/ is the kernel. This module may not import from api/ or
chirps/. It may import auth.errors for the startup failure type.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from auth.errors import ConfigurationError

logger = logging.getLogger("chirpy.config")

_MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields except jwt_secret have defaults so Settings() can be built in
    test environments without a real .env file (tests set DEBUG=true).
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
    # "dev" unlocks POST /admin/reset. Anything else is treated as production.
    platform: str = "prod"
    db_url: str = "sqlite:///chirpy.db"
    static_dir: str = "static"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the "not configured" sentinel; the validator below either
    # generates a dev secret or raises, so callers never see "".
    jwt_secret: str = ""
    # Webhook API key. Empty means every webhook call is rejected.
    polka_key: str = ""
    access_token_expire_seconds: int = 3600
    refresh_token_expire_days: int = 60

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """Enforce the signing secret policy.

        Dev mode (DEBUG=true): auto-generate a random secret with a warning.
            Access tokens will not survive a restart.

        Production mode: refuse to start without JWT_SECRET.

        Both modes: reject secrets shorter than 32 characters.
        """
        if not self.jwt_secret:
            if self.debug:
                self.jwt_secret = secrets.token_hex(32)
                logger.warning("Using auto-generated JWT_SECRET. Access tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "JWT_SECRET is required in production mode. "
                    "Set JWT_SECRET in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.jwt_secret) < _MIN_SECRET_LENGTH:
            raise ValueError(f"JWT_SECRET must be at least {_MIN_SECRET_LENGTH} characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    A validation failure here is fatal: it is re-raised as ConfigurationError
    so the server refuses to start instead of failing per request.

    In tests: call get_settings.cache_clear() between cases that need
    different environment variables.
    """
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
