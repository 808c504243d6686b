"""Authenticated principal for one request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from kanri.security.roles import Role, coerce_role

if TYPE_CHECKING:  # pragma: no cover
    from kanri.security.session import SessionRecord


@dataclass(frozen=True, slots=True)
class Principal:
    """Actor behind the current request.

    Built fresh by the session resolver for every request and never shared.
    `is_fallback` marks the synthetic development principal.
    """

    id: str
    role: Role
    department: Optional[str] = None
    is_fallback: bool = False


def principal_from_session(record: "SessionRecord") -> Optional[Principal]:
    """Validate a session record into a Principal, or None if it is malformed."""
    user_id = (record.user_id or "").strip()
    if not user_id:
        return None
    role = coerce_role(record.role)
    if role is None:
        return None
    department = record.department.strip() if record.department else None
    return Principal(id=user_id, role=role, department=department or None)
