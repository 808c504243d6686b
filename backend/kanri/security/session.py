"""Session resolution.

The resolver asks a session provider for the current request's session and
turns it into a `Principal`. Outside production, a request without a usable
session gets a synthetic development principal instead of being rejected.
Whether the process runs in production is decided once, by whoever
constructs the resolver.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Final, Optional, Protocol

from fastapi import Request

from kanri.security.errors import InvalidSessionToken
from kanri.security.principal import Principal, principal_from_session
from kanri.security.roles import Role
from kanri.security.tokens import decode_session_token


logger = logging.getLogger("kanri.security.session")

UTC = timezone.utc

DEV_USER_IDS: Final[dict[Role, str]] = {
    Role.ADMIN: "dev-admin",
    Role.MANAGER: "dev-manager",
    Role.MEMBER: "dev-member",
}


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """Raw session as returned by a provider (not yet validated)."""

    user_id: str
    role: Optional[str]
    department: Optional[str] = None
    expires_at: Optional[datetime] = None


class SessionProvider(Protocol):
    async def get_session(self, request: Request) -> Optional[SessionRecord]:
        """Return the request's session, None if there is none.

        May raise on verification or transport failure.
        """
        ...


class TokenSessionProvider:
    """Reads `Authorization: Bearer <token>` and verifies it.

    Tokens are stateless: role and department are the values captured at
    sign-in, and the account's `is_active` flag is only checked then. A user
    deactivated or re-roled afterwards keeps the old token's access until its
    `exp`, so `KANRI_SESSION_TTL_SECONDS` is the upper bound on that window.
    """

    def __init__(self, *, secret: str) -> None:
        self._secret = secret

    async def get_session(self, request: Request) -> Optional[SessionRecord]:
        auth = request.headers.get("authorization")
        if not auth:
            return None
        if not auth.lower().startswith("bearer "):
            raise InvalidSessionToken("Unsupported authorization scheme.")
        token = auth.split(" ", 1)[1].strip()
        if not token:
            raise InvalidSessionToken("Missing bearer token.")

        claims = decode_session_token(token, self._secret)
        return SessionRecord(
            user_id=str(claims["sub"]),
            role=_str_or_none(claims.get("role")),
            department=_str_or_none(claims.get("department")),
            expires_at=_exp_to_datetime(claims.get("exp")),
        )


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _exp_to_datetime(exp: Any) -> Optional[datetime]:
    if exp is None:
        return None
    return datetime.fromtimestamp(int(exp), tz=UTC)


def dev_principal(role: Role = Role.ADMIN) -> Principal:
    """Synthetic principal for local development."""
    return Principal(id=DEV_USER_IDS[role], role=role, department=None, is_fallback=True)


class SessionResolver:
    """Resolve the current request to `Principal | None`.

    Never raises: provider failures (including timeouts) are logged and
    treated exactly like a missing session.
    """

    def __init__(
        self,
        provider: SessionProvider,
        *,
        is_production: bool,
        fallback_role: Role = Role.ADMIN,
        timeout_seconds: Optional[float] = 5.0,
    ) -> None:
        self._provider = provider
        self._is_production = is_production
        self._fallback_role = fallback_role
        self._timeout = timeout_seconds

    @property
    def is_production(self) -> bool:
        return self._is_production

    async def _lookup(self, request: Request) -> Optional[SessionRecord]:
        try:
            if self._timeout is None:
                return await self._provider.get_session(request)
            return await asyncio.wait_for(self._provider.get_session(request), timeout=self._timeout)
        except Exception as e:  # noqa: BLE001
            logger.warning("Session lookup failed, treating request as unauthenticated: %s", e)
            return None

    async def resolve_principal(self, request: Request) -> Optional[Principal]:
        record = await self._lookup(request)
        if record is not None:
            principal = principal_from_session(record)
            if principal is not None:
                return principal
            logger.warning("Session for user %r carries no valid role; ignoring it.", record.user_id)

        if self._is_production:
            return None
        logger.debug("No session outside production; using %s fallback principal.", self._fallback_role.value)
        return dev_principal(self._fallback_role)
