"""Process-wide settings, read once from the environment at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from tablerest.persistence.config import DatabaseConfig

DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration.

    Attributes:
        database: Connection URL for the target database
        secret_key: HS256 signing key for access tokens
        jwt_issuer: ``iss`` claim written to and required from tokens
        jwt_audience: ``aud`` claim written to and required from tokens
        token_ttl: Access-token lifetime in seconds
        bcrypt_rounds: Work factor for credential hashing
        role_routes_path: Optional YAML file overriding the built-in role routes
        disable_auth: Skip role checks entirely (tests and local development)
        log_level: Root log level name
    """

    database: DatabaseConfig = field(
        default_factory=lambda: DatabaseConfig(url="sqlite:///tablerest.db")
    )
    secret_key: str = DEFAULT_SECRET_KEY
    jwt_issuer: str = "tablerest"
    jwt_audience: str = "tablerest-clients"
    token_ttl: int = 3600
    bcrypt_rounds: int = 12
    role_routes_path: Path | None = None
    disable_auth: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        routes_path = os.environ.get("TABLEREST_ROLE_ROUTES")
        return cls(
            database=DatabaseConfig.from_env(),
            secret_key=os.environ.get("TABLEREST_SECRET_KEY", DEFAULT_SECRET_KEY),
            jwt_issuer=os.environ.get("TABLEREST_JWT_ISSUER", "tablerest"),
            jwt_audience=os.environ.get("TABLEREST_JWT_AUDIENCE", "tablerest-clients"),
            token_ttl=_env_int("TABLEREST_TOKEN_TTL", 3600),
            bcrypt_rounds=_env_int("TABLEREST_BCRYPT_ROUNDS", 12),
            role_routes_path=Path(routes_path) if routes_path else None,
            disable_auth=_env_flag("TABLEREST_DISABLE_AUTH"),
            log_level=os.environ.get("TABLEREST_LOG_LEVEL", "INFO").upper(),
        )
