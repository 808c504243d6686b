"""Permission evaluation.

Every function here is pure: the result depends only on the arguments, there
are no side effects and nothing raises for a well-formed required role.
Malformed principal roles evaluate to False.
"""

from __future__ import annotations

from typing import Final, Optional

from kanri.security.principal import Principal
from kanri.security.roles import Role, coerce_role, parse_role, role_order


ACTION_PERMISSIONS: Final[dict[Role, frozenset[str]]] = {
    Role.ADMIN: frozenset({"read", "write", "delete", "manage_users"}),
    Role.MANAGER: frozenset({"read", "write"}),
    Role.MEMBER: frozenset({"read"}),
}


def has_required_role(principal: Optional[Principal], required_role: Role) -> bool:
    """True when `principal` holds `required_role` or a higher role."""
    required = parse_role(required_role)
    if principal is None:
        return False
    role = coerce_role(getattr(principal, "role", None))
    if role is None:
        return False
    return role_order(role) >= role_order(required)


def can_manage_user(acting: Optional[Principal], target_role: Role) -> bool:
    """Whether `acting` may administer an account holding `target_role`.

    Admins may manage anyone, including other admins. Managers may manage
    managers and members but never admins. Members manage nobody.
    """
    target = parse_role(target_role)
    if not has_required_role(acting, Role.MANAGER):
        return False
    role = coerce_role(getattr(acting, "role", None))
    if role is Role.ADMIN:
        return True
    if role is Role.MANAGER:
        return role_order(target) <= role_order(Role.MANAGER)
    return False


def has_permission(role: object, action: str) -> bool:
    """Coarse action check (`read`, `write`, `delete`, `manage_users`)."""
    r = coerce_role(role)
    if r is None:
        return False
    return action in ACTION_PERMISSIONS[r]


def can_access_admin_features(principal: Optional[Principal]) -> bool:
    return has_required_role(principal, Role.ADMIN)


def can_access_manager_features(principal: Optional[Principal]) -> bool:
    return has_required_role(principal, Role.MANAGER)
