"""Shared configuration for the Claims Intake backend.

This module centralizes environment variable access and default values
to prevent drift between modules. Settings are read once by
``load_settings()`` and passed explicitly to ``create_app``.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field

DEFAULT_DATABASE_URL = "sqlite:///./data/claims.db"
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
DEFAULT_LOGIN_RATE_LIMIT = "10/minute"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the API and its collaborators."""

    database_url: str = DEFAULT_DATABASE_URL
    lock_timeout_ms: int = 5000
    fraud_cost_multiplier: float = 2.0
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_ttl_seconds: int = 3600
    login_rate_limit: str = DEFAULT_LOGIN_RATE_LIMIT
    rate_limit_enabled: bool = True
    cors_origins: tuple[str, ...] = ()
    auto_create_schema: bool = True
    federated_providers: dict[str, str] = field(default_factory=dict)
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build Settings from environment variables."""
    providers_raw = os.getenv("FEDERATED_PROVIDERS", "")
    try:
        federated_providers = json.loads(providers_raw) if providers_raw else {}
    except json.JSONDecodeError as e:
        raise ValueError(f"FEDERATED_PROVIDERS must be a JSON object: {e}") from e
    if not isinstance(federated_providers, dict):
        raise ValueError("FEDERATED_PROVIDERS must be a JSON object")

    cors = os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)

    return Settings(
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        lock_timeout_ms=int(os.getenv("CLAIMS_LOCK_TIMEOUT_MS", "5000")),
        fraud_cost_multiplier=float(os.getenv("FRAUD_COST_MULTIPLIER", "2")),
        jwt_secret=os.getenv("JWT_SIGN_PRIVATE_KEY", ""),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_ttl_seconds=int(os.getenv("ACCESS_TOKEN_TTL_SECONDS", "3600")),
        login_rate_limit=os.getenv("LOGIN_RATE_LIMIT", DEFAULT_LOGIN_RATE_LIMIT),
        rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", "true"),
        cors_origins=tuple(o.strip() for o in cors.split(",") if o.strip()),
        auto_create_schema=_env_bool("AUTO_CREATE_SCHEMA", "true"),
        federated_providers={str(k): str(v) for k, v in federated_providers.items()},
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
