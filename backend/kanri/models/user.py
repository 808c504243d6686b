"""User account model.

The `role` column is the persisted counterpart of the session role; the
permission layer only ever sees it through a session token.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, String, true
from sqlalchemy.orm import Mapped, mapped_column, validates
from sqlalchemy.sql.sqltypes import Enum as SAEnum

from kanri.core.base import Base, CreatedAtMixin, UpdatedAtMixin, UUIDPrimaryKeyMixin
from kanri.security.roles import Role


class User(UUIDPrimaryKeyMixin, CreatedAtMixin, UpdatedAtMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        SAEnum(
            Role,
            name="user_role_enum",
            native_enum=False,
            validate_strings=True,
            values_callable=lambda enum_cls: [r.value for r in enum_cls],
        ),
        nullable=False,
        default=Role.MEMBER,
    )
    department: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_users_role", "role"),)

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        return value.strip().lower()
