"""Controlled user-management errors.

Raised by the service layer; the API layer maps them to HTTP statuses.
"""


class UserServiceError(RuntimeError):
    """Base error for user management."""


class UserNotFound(UserServiceError):
    """404: no user with the requested id."""


class DuplicateEmail(UserServiceError):
    """409: email already registered."""


class InvalidUserUpdate(UserServiceError):
    """400: request is well-formed but violates a field rule."""


class SelfDeletion(UserServiceError):
    """400: a principal attempted to delete its own account."""


class InvalidCredentials(UserServiceError):
    """401: unknown user, inactive user or wrong password."""
