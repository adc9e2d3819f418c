"""
core/config.py -- Centralized configuration for both services via pydantic-settings.

All environment variable reads happen here. No module should call os.getenv()
or os.environ.get() directly -- import get_settings() or accept a Settings
instance from the app factory.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance afterwards.

  BaseSettings (pydantic-settings): field names map to env var names
      (jwt_secret -> JWT_SECRET, peer_service_url -> PEER_SERVICE_URL).
      Type coercion and range checks are built in.

  @model_validator(mode="after"): cross-field validation once every field is
      resolved. Implements the signing-secret policy below.

Security notes:
  JWT_SECRET shorter than 32 chars is rejected outright. Both services verify
  each other's tokens with this key, so a weak key weakens the whole mesh.

  A missing JWT_SECRET is a hard startup failure in every mode. There is no
  generated fallback key, since a key private to one process makes the peer
  reject every forwarded token.

Any violation surfaces as ConfigurationError so the process never comes up in
a half-configured state.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or records/.
"""

import logging
from functools import lru_cache
from urllib.parse import urlparse

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigurationError

logger = logging.getLogger("meshauth.config")

MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Settings shared by the products and orders services.

    All fields have defaults so Settings() can be built in tests by passing
    keyword overrides. The two services must be deployed with identical
    jwt_secret / jwt_issuer / jwt_audience values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    log_level: str = "INFO"
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured".
    jwt_secret: str = ""
    jwt_issuer: str = "ProductsService"
    jwt_audience: str = "ProductsService"
    token_expire_seconds: int = Field(default=3600, gt=0)

    # ------------------------------------------------------------------
    # Credentials and login throttling
    # ------------------------------------------------------------------

    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    login_max_attempts: int = Field(default=5, gt=0)
    login_window_seconds: int = Field(default=15 * 60, gt=0)

    # ------------------------------------------------------------------
    # Peer service (orders -> products)
    # ------------------------------------------------------------------

    peer_service_url: str = ""
    peer_timeout_seconds: float = Field(default=5.0, gt=0)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_signing_config(self) -> "Settings":
        """Enforce the signing-secret policy and sanity-check the peer URL.

        JWT_SECRET is required and must be at least 32 characters. Issuer and
        audience must not be empty.
        """
        if not self.jwt_secret:
            raise ValueError(
                "JWT_SECRET is required. "
                "Set JWT_SECRET in your environment or .env file, identical on both services."
            )
        if len(self.jwt_secret) < MIN_SECRET_LENGTH:
            raise ValueError(f"JWT_SECRET must be at least {MIN_SECRET_LENGTH} characters.")
        if not self.jwt_issuer.strip():
            raise ValueError("JWT_ISSUER must not be empty.")
        if not self.jwt_audience.strip():
            raise ValueError("JWT_AUDIENCE must not be empty.")
        if self.peer_service_url:
            parsed = urlparse(self.peer_service_url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError("PEER_SERVICE_URL must be an absolute http(s) URL.")
            self.peer_service_url = self.peer_service_url.rstrip("/")
        return self


def load_settings(**overrides) -> Settings:
    """Build a Settings instance, converting validation failures to ConfigurationError.

    Keyword overrides take precedence over environment variables, which lets
    tests and the app factories inject explicit values.
    """
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings singleton.

    In tests: call get_settings.cache_clear() between cases if you need to
    inject different environment variables.
    """
    return load_settings()
