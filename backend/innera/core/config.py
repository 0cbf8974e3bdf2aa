"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

# Public selector env var
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

#: Minimum accepted length for the token signing secret.
MIN_SECRET_LENGTH: Final[int] = 32
_PLACEHOLDER_PREFIXES: Final[tuple[str, ...]] = ("change_me", "changeme", "replace_me")

# Loads .env during development (no-op when absent)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    JWT_SECRET_KEY: str
        Symmetric HS256 key for access and refresh tokens. Validated once by
        :meth:`TokenSettings.from_config`.
    JWT_ISSUER: str
        ``iss`` claim written to and required from every token.
    ACCESS_TOKEN_TTL / REFRESH_TOKEN_TTL: int
        Token lifetimes in seconds (15 minutes / 30 days).
    REVOKE_SCAN_BATCH / REVOKE_SCAN_MAX_ITERATIONS: int
        ``SCAN`` page size and iteration cap used by logout-all.
    PARTNER_INVITE_TTL: int
        Lifetime in seconds of a partner invite code (24 hours).
    CIRCLE_FOUNDING_INVITE_TTL / CIRCLE_FOUNDING_INVITE_MAX_USES: int
        Expiry (seconds) and capacity of the invite created with a circle.
    CIRCLE_INVITE_TTL / CIRCLE_INVITE_MAX_USES: int
        Expiry (seconds) and capacity of invites generated later by the owner.
    MAX_CIRCLE_MEMBERS: int
        Default member cap for new circles.
    REDIS_URL: str
        Connection URL for the key-value store.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    ENV_NAME = "development"
    API_BASE_PREFIX = "/api"

    # Secrets / tokens
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT_SECRET_FOR_LOCAL_DEVELOPMENT")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "innera-api")
    ACCESS_TOKEN_TTL = env_int("ACCESS_TOKEN_TTL", 15 * 60)
    REFRESH_TOKEN_TTL = env_int("REFRESH_TOKEN_TTL", 30 * 24 * 60 * 60)
    REVOKE_SCAN_BATCH = 100
    REVOKE_SCAN_MAX_ITERATIONS = 100

    # Coordination
    PARTNER_INVITE_TTL = env_int("PARTNER_INVITE_TTL", 24 * 60 * 60)
    CIRCLE_FOUNDING_INVITE_TTL = env_int("CIRCLE_FOUNDING_INVITE_TTL", 30 * 24 * 60 * 60)
    CIRCLE_FOUNDING_INVITE_MAX_USES = env_int("CIRCLE_FOUNDING_INVITE_MAX_USES", 100)
    CIRCLE_INVITE_TTL = env_int("CIRCLE_INVITE_TTL", 7 * 24 * 60 * 60)
    CIRCLE_INVITE_MAX_USES = env_int("CIRCLE_INVITE_MAX_USES", 50)
    MAX_CIRCLE_MEMBERS = env_int("MAX_CIRCLE_MEMBERS", 20)
    NOTIFICATION_WORKERS = env_int("NOTIFICATION_WORKERS", 2)

    # Stores
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging, CORS & proxy
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Propagates exceptions so pytest can surface tracebacks directly.
    """

    ENV_NAME = "testing"
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Placeholder secrets are refused at startup in this environment, see
    :meth:`TokenSettings.from_config`.
    """

    ENV_NAME = "production"
    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def is_production(config: Mapping[str, Any]) -> bool:
    """Return ``True`` when the loaded config describes a production deployment."""
    if config.get("TESTING"):
        return False
    return str(config.get("ENV_NAME", "")).strip().lower() == "production"


# ----------------------------- Token settings ----------------------------------


class InvalidSecretError(RuntimeError):
    """Raised at startup when the signing secret is unusable."""


def validate_signing_secret(raw: str | None, *, production: bool) -> bytes:
    """Validate the HS256 signing secret and return it as bytes.

    :param raw: Secret read from configuration.
    :param production: Whether placeholder values must be refused.
    :returns: Secret encoded as UTF-8.
    :raises InvalidSecretError: If the secret is missing, too short, or a
        placeholder while running in production.
    """
    if not raw:
        raise InvalidSecretError("JWT_SECRET_KEY is not configured.")
    secret = raw.strip()
    if len(secret) < MIN_SECRET_LENGTH:
        raise InvalidSecretError(
            f"JWT_SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters long."
        )
    if production and secret.lower().startswith(_PLACEHOLDER_PREFIXES):
        raise InvalidSecretError("JWT_SECRET_KEY still holds a placeholder value.")
    return secret.encode("utf-8")


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """Immutable token configuration built once per application.

    :param secret: Validated HS256 signing key.
    :param issuer: Value of the ``iss`` claim.
    :param access_ttl: Access token lifetime.
    :param refresh_ttl: Refresh token lifetime.
    :param revoke_scan_batch: ``SCAN`` ``COUNT`` hint for revoke-all.
    :param revoke_scan_max_iterations: Iteration cap for revoke-all.
    """

    secret: bytes
    issuer: str
    access_ttl: timedelta
    refresh_ttl: timedelta
    revoke_scan_batch: int = 100
    revoke_scan_max_iterations: int = 100

    def __repr__(self) -> str:
        return f"TokenSettings(issuer={self.issuer!r}, access_ttl={self.access_ttl})"

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> TokenSettings:
        """Build settings from a Flask config mapping, validating the secret."""
        return cls(
            secret=validate_signing_secret(
                config.get("JWT_SECRET_KEY"), production=is_production(config)
            ),
            issuer=str(config.get("JWT_ISSUER", "innera-api")),
            access_ttl=timedelta(seconds=int(config.get("ACCESS_TOKEN_TTL", 900))),
            refresh_ttl=timedelta(seconds=int(config.get("REFRESH_TOKEN_TTL", 2592000))),
            revoke_scan_batch=int(config.get("REVOKE_SCAN_BATCH", 100)),
            revoke_scan_max_iterations=int(config.get("REVOKE_SCAN_MAX_ITERATIONS", 100)),
        )
