"""Process configuration.

Settings are read from the environment exactly once per process
(`get_settings` is cached). Request-path code receives values from the
resulting `Settings` object and never consults `os.environ` itself.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Final

from kanri.core.env import load_env_if_present
from kanri.security.roles import Role, parse_role


ENVIRONMENT_ENV: Final[str] = "KANRI_ENV"
JWT_SECRET_ENV: Final[str] = "KANRI_JWT_SECRET"
SESSION_TTL_ENV: Final[str] = "KANRI_SESSION_TTL_SECONDS"
DEV_FALLBACK_ROLE_ENV: Final[str] = "KANRI_DEV_FALLBACK_ROLE"
RATE_LIMIT_ENV: Final[str] = "KANRI_RATE_LIMIT_PER_MINUTE"
TRUSTED_PROXIES_ENV: Final[str] = "KANRI_TRUSTED_PROXIES"

PRODUCTION_ENVIRONMENTS: Final[frozenset[str]] = frozenset({"production", "prod"})

# Only ever used outside production; production refuses to start without a secret.
_DEVELOPMENT_JWT_SECRET: Final[str] = "kanri-development-secret"


@dataclass(frozen=True, slots=True)
class Settings:
    environment: str
    jwt_secret: str
    session_ttl_seconds: int
    dev_fallback_role: Role
    rate_limit_per_minute: int
    # Peer addresses whose X-Forwarded-For / X-Real-IP headers are believed.
    trusted_proxies: frozenset[str] = frozenset()

    @property
    def is_production(self) -> bool:
        return self.environment in PRODUCTION_ENVIRONMENTS


def _positive_int_env(name: str, default: int) -> int:
    v = os.environ.get(name, str(default))
    try:
        n = int(v)
    except ValueError as e:
        raise RuntimeError(f"Invalid {name}; must be integer.") from e
    if n <= 0:
        raise RuntimeError(f"{name} must be > 0.")
    return n


def _csv_env(name: str) -> frozenset[str]:
    raw = os.environ.get(name, "")
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def load_settings() -> Settings:
    """Build settings from the current environment (no caching)."""
    load_env_if_present()

    environment = os.environ.get(ENVIRONMENT_ENV, "development").strip().lower() or "development"
    is_production = environment in PRODUCTION_ENVIRONMENTS

    secret = os.environ.get(JWT_SECRET_ENV)
    if not secret:
        if is_production:
            raise RuntimeError(f"Missing required env var {JWT_SECRET_ENV}.")
        secret = _DEVELOPMENT_JWT_SECRET

    try:
        fallback_role = parse_role(os.environ.get(DEV_FALLBACK_ROLE_ENV, Role.ADMIN.value))
    except ValueError as e:
        raise RuntimeError(f"Invalid {DEV_FALLBACK_ROLE_ENV}; must be one of admin, manager, member.") from e

    return Settings(
        environment=environment,
        jwt_secret=secret,
        session_ttl_seconds=_positive_int_env(SESSION_TTL_ENV, 24 * 60 * 60),
        dev_fallback_role=fallback_role,
        rate_limit_per_minute=_positive_int_env(RATE_LIMIT_ENV, 100),
        trusted_proxies=_csv_env(TRUSTED_PROXIES_ENV),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
