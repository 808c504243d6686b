"""User management endpoints.

Role gates:
- list: manager or higher
- create: admin
- update / delete: manager or higher, and the caller must be allowed to
  manage the target's current role (managers never touch admins)
- assignable: any authenticated principal
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from kanri.api.deps import enforce_rate_limit, get_user_service
from kanri.schemas.user import AssignableUserResponse, UserCreateRequest, UserResponse, UserUpdateRequest
from kanri.security.audit import SecurityAuditLogger
from kanri.security.auth import ensure_can_manage, require_role
from kanri.security.principal import Principal
from kanri.security.roles import Role
from kanri.services.errors import DuplicateEmail, InvalidUserUpdate, SelfDeletion, UserNotFound
from kanri.services.user_service import UserService


router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


@router.get("", response_model=list[UserResponse])
async def list_users(
    _principal: Principal = Depends(require_role(Role.MANAGER)),
    service: UserService = Depends(get_user_service),
) -> list[UserResponse]:
    return [UserResponse.model_validate(u) for u in await service.list_users()]


@router.get("/assignable", response_model=list[AssignableUserResponse])
async def list_assignable_users(
    _principal: Principal = Depends(require_role(Role.MEMBER)),
    service: UserService = Depends(get_user_service),
) -> list[AssignableUserResponse]:
    """Active users that work can be assigned to."""
    return [AssignableUserResponse.model_validate(u) for u in await service.list_assignable()]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreateRequest,
    request: Request,
    principal: Principal = Depends(require_role(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    try:
        user = await service.create_user(body)
    except InvalidUserUpdate as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except DuplicateEmail as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    SecurityAuditLogger.log_api_access(request, principal, "user_create", "success", {"user_id": str(user.id)})
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdateRequest,
    request: Request,
    principal: Principal = Depends(require_role(Role.MANAGER)),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    try:
        target = await service.get_user(user_id)
    except UserNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    ensure_can_manage(request, principal, target.role, operation="user_update")
    if body.role is not None:
        # Granting a role counts as managing an account of that role.
        ensure_can_manage(request, principal, body.role, operation="user_update_role")

    try:
        user = await service.update_user(target, body)
    except InvalidUserUpdate as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    SecurityAuditLogger.log_api_access(request, principal, "user_update", "success", {"user_id": str(user.id)})
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: uuid.UUID,
    request: Request,
    principal: Principal = Depends(require_role(Role.MANAGER)),
    service: UserService = Depends(get_user_service),
) -> Response:
    try:
        target = await service.get_user(user_id)
    except UserNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    ensure_can_manage(request, principal, target.role, operation="user_delete")

    try:
        await service.delete_user(principal, target)
    except SelfDeletion as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    SecurityAuditLogger.log_api_access(request, principal, "user_delete", "success", {"user_id": str(user_id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
