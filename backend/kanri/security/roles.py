"""Role model for access control.

Roles form a strict total order: member < manager < admin. The order is a
fixed tuple; comparisons go through `role_order` and nothing mutates it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Final, Optional


class Role(str, Enum):
    """Account roles (ordered by privilege)."""

    MEMBER = "member"
    MANAGER = "manager"
    ADMIN = "admin"


ROLE_ORDER: Final[tuple[Role, ...]] = (Role.MEMBER, Role.MANAGER, Role.ADMIN)


def role_order(role: Role) -> int:
    """Rank of `role` in the privilege order (member is 0)."""
    return ROLE_ORDER.index(role)


def parse_role(value: Any) -> Role:
    """Strict parse; raises ValueError for anything outside the enumeration."""
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid role: {value!r}")
    return Role(value)


def coerce_role(value: Any) -> Optional[Role]:
    """Lenient parse used on the authorization path: unknown values become None."""
    try:
        return parse_role(value)
    except ValueError:
        return None
