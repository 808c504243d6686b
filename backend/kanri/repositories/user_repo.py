"""User repository."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import Select, select

from kanri.models.user import User
from kanri.repositories.base import BaseRepository


UTC = timezone.utc


class UserRepository(BaseRepository[User]):
    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return await self._get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt: Select = select(User).where(User.email == email.strip().lower())
        return (await self._execute(stmt)).scalars().first()

    async def list_users(self, *, active_only: bool = False) -> Sequence[User]:
        """All users, newest first."""
        stmt: Select = select(User).order_by(User.created_at.desc(), User.email)
        if active_only:
            stmt = stmt.where(User.is_active.is_(True))
        return (await self._execute(stmt)).scalars().all()

    async def save(self, user: User) -> User:
        return await self._save(user)

    async def delete(self, user: User) -> None:
        await self._remove(user)

    async def record_login(self, user: User, at: Optional[datetime] = None) -> User:
        user.last_login = at or datetime.now(tz=UTC)
        return await self._save(user)
