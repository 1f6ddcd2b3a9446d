"""Authentication configuration management."""

import json
import logging
import os
from dataclasses import dataclass, fields
from typing import Optional

from app_platform.security.passwords import MAX_COST, MIN_COST
from app_platform.security.tokens import MIN_SECRET_LENGTH, SUPPORTED_ALGORITHMS, TokenSettings
from domains.auth.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _coerce_field(name: str, expected, value):
    """Convert a JSON value to the annotated field type or raise ConfigurationError."""

    if expected == Optional[str]:
        if value is None:
            return None
        expected = str

    if expected is str:
        if isinstance(value, str):
            return value
    elif isinstance(value, bool):
        pass
    elif expected is int:
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value)
    elif expected is float:
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                pass

    raise ConfigurationError(
        f"auth config field {name} must be {getattr(expected, '__name__', expected)}, got {value!r}"
    )


@dataclass(frozen=True)
class AuthConfig:
    """Authentication system configuration."""

    env: str = "local"

    # Token settings
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_issuer: Optional[str] = None
    access_token_ttl_s: int = 3600

    # Password hashing
    bcrypt_cost: int = 10

    # Revocation cache
    redis_url: Optional[str] = None
    revocation_key_prefix: str = "auth:revoked"

    # Deadlines for blocking calls
    cache_timeout_s: float = 2.0
    hash_timeout_s: float = 5.0
    request_timeout_s: float = 10.0
    worker_threads: int = 8
    hash_worker_threads: int = 4

    # Credential store
    db_path: str = "auth.db"

    def __repr__(self) -> str:
        shown = ", ".join(
            f"{f.name}={'***' if f.name == 'jwt_secret' else repr(getattr(self, f.name))}"
            for f in fields(self)
        )
        return f"AuthConfig({shown})"

    @classmethod
    def from_env(cls) -> "AuthConfig":
        """Load configuration from environment variables."""

        logger.info("Loading auth configuration from environment variables")
        try:
            return cls(
                env=os.getenv("AUTH_ENV", "local"),
                jwt_secret=os.getenv("AUTH_JWT_SECRET", ""),
                jwt_algorithm=os.getenv("AUTH_JWT_ALGORITHM", "HS256"),
                jwt_issuer=os.getenv("AUTH_JWT_ISSUER") or None,
                access_token_ttl_s=int(os.getenv("AUTH_ACCESS_TOKEN_TTL_S", "3600")),
                bcrypt_cost=int(os.getenv("AUTH_BCRYPT_COST", "10")),
                redis_url=os.getenv("AUTH_REDIS_URL") or None,
                revocation_key_prefix=os.getenv("AUTH_REVOCATION_PREFIX", "auth:revoked"),
                cache_timeout_s=float(os.getenv("AUTH_CACHE_TIMEOUT_S", "2.0")),
                hash_timeout_s=float(os.getenv("AUTH_HASH_TIMEOUT_S", "5.0")),
                request_timeout_s=float(os.getenv("AUTH_REQUEST_TIMEOUT_S", "10.0")),
                worker_threads=int(os.getenv("AUTH_WORKER_THREADS", "8")),
                hash_worker_threads=int(os.getenv("AUTH_HASH_WORKER_THREADS", "4")),
                db_path=os.getenv("AUTH_DB_PATH", "auth.db"),
            )
        except ValueError as e:
            raise ConfigurationError(f"invalid auth environment setting: {e}") from e

    @classmethod
    def from_file(cls, config_path: str) -> "AuthConfig":
        """Load configuration from a JSON file.

        A missing file falls back to the environment. A file that exists but
        cannot be parsed is an error, never silently replaced by defaults.
        """

        try:
            logger.info(f"Loading auth configuration from file: {config_path}")
            with open(config_path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Auth config file not found: {config_path}, using environment")
            return cls.from_env()
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"cannot read auth config {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"auth config {config_path} must be a JSON object")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"unknown auth config keys: {', '.join(unknown)}")

        types = {f.name: f.type for f in fields(cls)}
        config = cls(**{key: _coerce_field(key, types[key], value) for key, value in data.items()})
        logger.info("Auth configuration loaded successfully")
        return config

    def validate(self) -> bool:
        """Validate configuration settings, raising on the first hard error."""

        logger.info("Validating auth configuration")

        if not self.jwt_secret:
            raise ConfigurationError("AUTH_JWT_SECRET is required")

        if len(self.jwt_secret) < MIN_SECRET_LENGTH:
            if self.env != "local":
                raise ConfigurationError(
                    f"AUTH_JWT_SECRET must be at least {MIN_SECRET_LENGTH} characters"
                )
            logger.warning(f"JWT secret shorter than {MIN_SECRET_LENGTH} characters")

        if self.jwt_algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(f"unsupported JWT algorithm: {self.jwt_algorithm}")

        if self.access_token_ttl_s <= 0:
            raise ConfigurationError("access_token_ttl_s must be positive")

        if not MIN_COST <= self.bcrypt_cost <= MAX_COST:
            raise ConfigurationError(f"bcrypt_cost must be within {MIN_COST}..{MAX_COST}")

        if self.bcrypt_cost < 10:
            logger.warning(f"bcrypt cost {self.bcrypt_cost} is below the recommended minimum of 10")

        if min(self.cache_timeout_s, self.hash_timeout_s, self.request_timeout_s) <= 0:
            raise ConfigurationError("timeouts must be positive")

        if self.cache_timeout_s >= 10:
            logger.warning(f"Cache timeout {self.cache_timeout_s}s is unusually long")

        if self.worker_threads < 1 or self.hash_worker_threads < 1:
            raise ConfigurationError("worker_threads and hash_worker_threads must be at least 1")

        if not self.redis_url:
            if self.env != "local":
                raise ConfigurationError("AUTH_REDIS_URL is required outside local env")
            logger.warning("No AUTH_REDIS_URL set, revocations are kept in process memory")

        logger.info("Auth configuration validation completed")

        return True

    def token_settings(self) -> TokenSettings:
        return TokenSettings(
            secret=self.jwt_secret,
            algorithm=self.jwt_algorithm,
            issuer=self.jwt_issuer,
        )
