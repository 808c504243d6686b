"""Password hashing (bcrypt).

bcrypt only looks at the first 72 bytes of a password; longer passwords are
rejected up front instead of being silently truncated.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Final

import bcrypt


DEFAULT_ROUNDS: Final[int] = 12
MIN_PASSWORD_LENGTH: Final[int] = 8
MAX_PASSWORD_BYTES: Final[int] = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str, *, rounds: int = DEFAULT_ROUNDS) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("ascii")


def verify_password(password: str, stored: str) -> bool:
    """Malformed stored hashes and over-long passwords never verify."""
    if not stored or password_too_long(password):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
    except ValueError:
        return False


@lru_cache(maxsize=1)
def dummy_hash() -> str:
    """Hash compared against when the account does not exist (equal timing)."""
    return hash_password("kanri-no-such-account")
