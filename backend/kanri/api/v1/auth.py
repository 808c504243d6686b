"""Session endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from kanri.api.deps import enforce_rate_limit, get_user_service
from kanri.core.settings import Settings, get_settings
from kanri.schemas.auth import PrincipalResponse, SessionTokenResponse, SignInRequest
from kanri.security.audit import SecurityAuditLogger
from kanri.security.auth import get_optional_principal
from kanri.security.errors import NoPrincipal
from kanri.security.principal import Principal
from kanri.security.tokens import issue_session_token
from kanri.services.errors import InvalidCredentials
from kanri.services.user_service import UserService


router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


def _principal_response(p: Principal) -> PrincipalResponse:
    return PrincipalResponse(id=p.id, role=p.role, department=p.department, is_fallback=p.is_fallback)


@router.post("/signin", response_model=SessionTokenResponse)
async def sign_in(
    body: SignInRequest,
    request: Request,
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
) -> SessionTokenResponse:
    """Exchange email and password for a session token."""
    try:
        user = await service.authenticate(body.email, body.password)
    except InvalidCredentials as e:
        SecurityAuditLogger.log_api_access(request, None, "signin", "unauthorized")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": 'Bearer realm="API"'},
        ) from e

    token, expires_at = issue_session_token(
        sub=str(user.id),
        role=user.role,
        department=user.department,
        secret=settings.jwt_secret,
        ttl_seconds=settings.session_ttl_seconds,
    )
    principal = Principal(id=str(user.id), role=user.role, department=user.department)
    SecurityAuditLogger.log_api_access(request, principal, "signin", "success")
    return SessionTokenResponse(token=token, expires_at=expires_at, principal=_principal_response(principal))


@router.get("/session", response_model=PrincipalResponse)
async def current_session(principal: Optional[Principal] = Depends(get_optional_principal)) -> PrincipalResponse:
    """Principal the current request resolves to."""
    if principal is None:
        raise NoPrincipal()
    return _principal_response(principal)
