"""User management service.

Field validation and persistence live here; who may call each operation is
decided by the API layer through the permission evaluator before any of
these methods run.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError

from kanri.models.user import User
from kanri.repositories.user_repo import UserRepository
from kanri.schemas.user import ProfileUpdateRequest, UserCreateRequest, UserUpdateRequest
from kanri.security.passwords import (
    MAX_PASSWORD_BYTES,
    MIN_PASSWORD_LENGTH,
    dummy_hash,
    hash_password,
    password_too_long,
    verify_password,
)
from kanri.security.principal import Principal
from kanri.services.errors import (
    DuplicateEmail,
    InvalidCredentials,
    InvalidUserUpdate,
    SelfDeletion,
    UserNotFound,
)


logger = logging.getLogger(__name__)


def _clean_department(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidUserUpdate(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if password_too_long(password):
        raise InvalidUserUpdate(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")


def _check_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise InvalidUserUpdate("Name cannot be empty.")
    return name


class UserService:
    def __init__(self, repo: UserRepository) -> None:
        self._repo = repo

    async def list_users(self) -> Sequence[User]:
        return await self._repo.list_users()

    async def list_assignable(self) -> Sequence[User]:
        return await self._repo.list_users(active_only=True)

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self._repo.get_by_id(user_id)
        if user is None:
            raise UserNotFound(f"User {user_id} not found.")
        return user

    async def create_user(self, payload: UserCreateRequest) -> User:
        _check_password(payload.password)
        name = _check_name(payload.name)
        if await self._repo.get_by_email(payload.email) is not None:
            raise DuplicateEmail("This email address is already in use.")

        # bcrypt is CPU-bound; keep it off the event loop.
        password_hash = await asyncio.to_thread(hash_password, payload.password)
        user = User(
            name=name,
            email=payload.email,
            password_hash=password_hash,
            role=payload.role,
            department=_clean_department(payload.department),
            is_active=True,
        )
        try:
            user = await self._repo.save(user)
        except IntegrityError as e:
            raise DuplicateEmail("This email address is already in use.") from e
        logger.info("Created user %s with role %s", user.id, user.role.value)
        return user

    async def update_user(self, user: User, payload: UserUpdateRequest) -> User:
        fields = payload.model_fields_set
        # Validate everything before touching the tracked instance.
        name: Optional[str] = None
        if "name" in fields:
            name = _check_name(payload.name or "")
        password_hash: Optional[str] = None
        if payload.password:
            _check_password(payload.password)
            password_hash = await asyncio.to_thread(hash_password, payload.password)

        if name is not None:
            user.name = name
        if "role" in fields and payload.role is not None:
            user.role = payload.role
        if "department" in fields:
            user.department = _clean_department(payload.department)
        if "is_active" in fields and payload.is_active is not None:
            user.is_active = payload.is_active
        if password_hash is not None:
            user.password_hash = password_hash

        user = await self._repo.save(user)
        logger.info("Updated user %s (fields=%s)", user.id, sorted(fields - {"password"}))
        return user

    async def delete_user(self, acting: Principal, user: User) -> None:
        user_id = user.id
        if acting.id == str(user_id):
            raise SelfDeletion("Cannot delete your own account.")
        await self._repo.delete(user)
        logger.info("Deleted user %s", user_id)

    async def get_profile(self, principal: Principal) -> User:
        try:
            user_id = uuid.UUID(principal.id)
        except ValueError as e:
            raise UserNotFound(f"User {principal.id} not found.") from e
        return await self.get_user(user_id)

    async def update_profile(self, principal: Principal, payload: ProfileUpdateRequest) -> User:
        fields = payload.model_fields_set
        name = _check_name(payload.name or "") if "name" in fields else None
        user = await self.get_profile(principal)
        if name is not None:
            user.name = name
        if "department" in fields:
            user.department = _clean_department(payload.department)
        return await self._repo.save(user)

    async def authenticate(self, email: str, password: str) -> User:
        user = await self._repo.get_by_email(email)
        # Unknown emails still pay for one bcrypt check so response time does
        # not reveal which accounts exist.
        if user is not None:
            stored = user.password_hash
        else:
            stored = await asyncio.to_thread(dummy_hash)
        matches = await asyncio.to_thread(verify_password, password, stored)
        if user is None or not user.is_active or not matches:
            raise InvalidCredentials("Invalid email or password.")
        return await self._repo.record_login(user)
