"""API dependencies.

Centralizes database sessions, rate limiting and service construction for
the request layer.
"""

from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from kanri.core.db import get_session_factory
from kanri.core.settings import get_settings
from kanri.repositories.user_repo import UserRepository
from kanri.security.audit import SecurityAuditLogger, client_address
from kanri.security.rate_limit import RateLimitExceeded, SlidingWindowRateLimiter
from kanri.services.user_service import UserService


def get_db_session() -> Generator[Session, None, None]:
    """Provide a database session for request scope."""
    session: Session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


def get_user_service(db: Session = Depends(get_db_session)) -> UserService:
    return UserService(UserRepository(db))


@lru_cache(maxsize=1)
def get_rate_limiter() -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(max_requests=get_settings().rate_limit_per_minute, window_seconds=60.0)


def enforce_rate_limit(
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> None:
    """Per-client request budget."""
    try:
        limiter.check(client_address(request, get_settings().trusted_proxies))
    except RateLimitExceeded:
        SecurityAuditLogger.log_api_access(request, None, "rate_limit", "rate_limited")
        raise
