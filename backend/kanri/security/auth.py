"""Authentication & authorization dependencies for FastAPI.

Design:
- Signed bearer session tokens; role carried in claims.
- Default deny in production. Endpoints declare the minimum role they need
  via `require_role`.
- Outside production a request with no usable session runs as the
  development fallback principal.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Awaitable, Callable, Optional

from fastapi import Depends, Request

from kanri.core.settings import get_settings
from kanri.security.audit import SecurityAuditLogger
from kanri.security.errors import EscalationDenied, InsufficientRole, NoPrincipal
from kanri.security.permissions import can_manage_user, has_required_role
from kanri.security.principal import Principal
from kanri.security.roles import Role
from kanri.security.session import SessionResolver, TokenSessionProvider


@lru_cache(maxsize=1)
def get_session_resolver() -> SessionResolver:
    """Process-wide resolver; production mode is fixed here, once."""
    settings = get_settings()
    return SessionResolver(
        TokenSessionProvider(secret=settings.jwt_secret),
        is_production=settings.is_production,
        fallback_role=settings.dev_fallback_role,
    )


async def get_optional_principal(
    request: Request,
    resolver: SessionResolver = Depends(get_session_resolver),
) -> Optional[Principal]:
    principal = await resolver.resolve_principal(request)
    # Read back by the access-log middleware.
    request.state.principal = principal
    return principal


def require_role(required_role: Role) -> Callable[..., Awaitable[Principal]]:
    """FastAPI dependency factory enforcing `required_role` or higher.

    No principal -> 401; principal below `required_role` -> 403.
    """

    async def _dep(
        request: Request,
        principal: Optional[Principal] = Depends(get_optional_principal),
    ) -> Principal:
        if principal is None:
            SecurityAuditLogger.log_api_access(request, None, f"require_{required_role.value}", "unauthorized")
            raise NoPrincipal()
        if not has_required_role(principal, required_role):
            SecurityAuditLogger.log_api_access(
                request,
                principal,
                f"require_{required_role.value}",
                "forbidden",
                {"required_role": required_role.value},
            )
            raise InsufficientRole(required_role)
        return principal

    return _dep


def ensure_can_manage(request: Request, acting: Principal, target_role: Role, *, operation: str) -> None:
    """Raise `EscalationDenied` unless `acting` may manage a `target_role` account."""
    if not can_manage_user(acting, target_role):
        SecurityAuditLogger.log_api_access(
            request,
            acting,
            operation,
            "escalation_denied",
            {"target_role": target_role.value},
        )
        raise EscalationDenied(target_role)
