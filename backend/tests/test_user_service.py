from __future__ import annotations

import asyncio
import threading
import uuid
from typing import Optional

import pytest

from kanri.models.user import User
from kanri.schemas.user import UserCreateRequest, UserUpdateRequest
from kanri.security.passwords import hash_password
from kanri.security.roles import Role
from kanri.services import user_service as user_service_module
from kanri.services.errors import InvalidCredentials, InvalidUserUpdate
from kanri.services.user_service import UserService


class InMemoryUserRepo:
    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.logins = 0

    async def get_by_email(self, email: str) -> Optional[User]:
        return self.users.get(email)

    async def save(self, user: User) -> User:
        if user.id is None:
            user.id = uuid.uuid4()
        self.users[user.email] = user
        return user

    async def record_login(self, user: User) -> User:
        self.logins += 1
        return user


def _recording_thread(monkeypatch, name: str) -> list[str]:
    seen: list[str] = []
    real = getattr(user_service_module, name)

    def _wrapped(*args, **kwargs):
        seen.append(threading.current_thread().name)
        return real(*args, **kwargs)

    monkeypatch.setattr(user_service_module, name, _wrapped)
    return seen


def test_create_user_hashes_off_the_event_loop_thread(monkeypatch):
    seen = _recording_thread(monkeypatch, "hash_password")
    service = UserService(InMemoryUserRepo())
    payload = UserCreateRequest(name="Ana", email="ana@example.com", password="long-enough-pw", role=Role.MEMBER)

    user = asyncio.run(service.create_user(payload))

    assert user.password_hash.startswith("$2b$")
    assert len(seen) == 1
    assert seen[0] != threading.main_thread().name


def test_update_user_rejects_short_password_without_hashing(monkeypatch):
    seen = _recording_thread(monkeypatch, "hash_password")
    user = User(email="bo@example.com", name="Bo", password_hash="x", role=Role.MEMBER, is_active=True)
    service = UserService(InMemoryUserRepo())

    with pytest.raises(InvalidUserUpdate):
        asyncio.run(service.update_user(user, UserUpdateRequest(password="short")))
    assert seen == []
    assert user.password_hash == "x"


def test_update_user_rejects_password_longer_than_bcrypt_limit():
    user = User(email="bo@example.com", name="Bo", password_hash="x", role=Role.MEMBER, is_active=True)
    service = UserService(InMemoryUserRepo())

    with pytest.raises(InvalidUserUpdate):
        asyncio.run(service.update_user(user, UserUpdateRequest(password="p" * 73)))


def test_authenticate_unknown_email_still_runs_one_password_check(monkeypatch):
    seen = _recording_thread(monkeypatch, "verify_password")
    monkeypatch.setattr(user_service_module, "dummy_hash", lambda: hash_password("whatever-pw", rounds=4))
    service = UserService(InMemoryUserRepo())

    with pytest.raises(InvalidCredentials):
        asyncio.run(service.authenticate("ghost@example.com", "guess-password"))

    assert len(seen) == 1
    assert seen[0] != threading.main_thread().name


def test_authenticate_known_email_verifies_and_records_login(monkeypatch):
    seen = _recording_thread(monkeypatch, "verify_password")
    repo = InMemoryUserRepo()
    repo.users["cy@example.com"] = User(
        id=uuid.uuid4(),
        email="cy@example.com",
        name="Cy",
        password_hash=hash_password("right-password", rounds=4),
        role=Role.MANAGER,
        is_active=True,
    )
    service = UserService(repo)

    with pytest.raises(InvalidCredentials):
        asyncio.run(service.authenticate("cy@example.com", "wrong-password"))
    user = asyncio.run(service.authenticate("cy@example.com", "right-password"))

    assert user.email == "cy@example.com"
    assert len(seen) == 2
    assert repo.logins == 1
