"""Repository base.

Repositories are the only layer permitted to query the database. They accept
either a Session or an AsyncSession and expose async methods so request
handlers stay transport-agnostic.
"""

from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar, Union, cast

from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session
from sqlalchemy.sql import Executable


SessionLike = Union[Session, AsyncSession]
T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Base repository providing session-agnostic execute/persist helpers."""

    def __init__(self, session: SessionLike) -> None:
        self._session: SessionLike = session

    def _sync_session(self) -> Session:
        if isinstance(self._session, AsyncSession):
            return cast(Session, self._session.sync_session)
        return cast(Session, self._session)

    async def _execute(self, stmt: Executable, *, params: Optional[dict[str, Any]] = None) -> Result[Any]:
        if isinstance(self._session, AsyncSession):
            return await self._session.execute(stmt, params or {})
        # NOTE: If used in async contexts, caller must ensure sync session executes
        # in an appropriate threadpool. Repository remains transport-agnostic.
        return self._sync_session().execute(stmt, params or {})

    async def _get(self, model: type[T], ident: Any) -> Optional[T]:
        if isinstance(self._session, AsyncSession):
            return await self._session.get(model, ident)
        return self._sync_session().get(model, ident)

    async def _save(self, obj: T) -> T:
        """Add, commit and refresh `obj`; rolls back on failure."""
        if isinstance(self._session, AsyncSession):
            self._session.add(obj)
            try:
                await self._session.commit()
            except Exception:
                await self._session.rollback()
                raise
            await self._session.refresh(obj)
            return obj

        s = self._sync_session()
        s.add(obj)
        try:
            s.commit()
        except Exception:
            s.rollback()
            raise
        s.refresh(obj)
        return obj

    async def _remove(self, obj: T) -> None:
        if isinstance(self._session, AsyncSession):
            await self._session.delete(obj)
            await self._session.commit()
            return
        s = self._sync_session()
        s.delete(obj)
        s.commit()
