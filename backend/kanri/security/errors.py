"""Authorization error taxonomy.

`NoPrincipal` maps to 401; `InsufficientRole` and `EscalationDenied` map to
403. `SessionProviderFailure` never reaches callers of the session resolver.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from kanri.security.roles import Role


class AuthError(HTTPException):
    pass


class NoPrincipal(AuthError):
    def __init__(self, detail: str = "Unauthorized: No valid session.") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": 'Bearer realm="API"'},
        )


class InsufficientRole(AuthError):
    def __init__(self, required_role: Role) -> None:
        self.required_role = required_role
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Forbidden: Requires {required_role.value} role or higher.",
        )


class EscalationDenied(AuthError):
    def __init__(self, target_role: Role) -> None:
        self.target_role = target_role
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Forbidden: Not permitted to manage a user with role {target_role.value}.",
        )


class SessionProviderFailure(RuntimeError):
    """Session lookup failed (token verification, store unavailable, ...)."""


class InvalidSessionToken(SessionProviderFailure):
    pass
