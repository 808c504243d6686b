"""Own-profile endpoints (any authenticated principal)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from kanri.api.deps import enforce_rate_limit, get_user_service
from kanri.schemas.user import ProfileUpdateRequest, UserResponse
from kanri.security.auth import require_role
from kanri.security.principal import Principal
from kanri.security.roles import Role
from kanri.services.errors import InvalidUserUpdate, UserNotFound
from kanri.services.user_service import UserService


router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


@router.get("", response_model=UserResponse)
async def get_profile(
    principal: Principal = Depends(require_role(Role.MEMBER)),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    try:
        user = await service.get_profile(principal)
    except UserNotFound as e:
        # The development fallback principal has no account row.
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return UserResponse.model_validate(user)


@router.put("", response_model=UserResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    principal: Principal = Depends(require_role(Role.MEMBER)),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    try:
        user = await service.update_profile(principal, body)
    except UserNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except InvalidUserUpdate as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return UserResponse.model_validate(user)
