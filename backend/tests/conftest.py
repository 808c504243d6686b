from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


ROOT = Path(__file__).resolve().parents[2]

# Ensure `backend/` is importable so `kanri` resolves from a source checkout.
BACKEND_DIR = ROOT / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from kanri.api.deps import get_db_session, get_rate_limiter  # noqa: E402
from kanri.core.base import Base  # noqa: E402
from kanri.core.settings import get_settings  # noqa: E402
from kanri.models.user import User  # noqa: E402
from kanri.security.auth import get_session_resolver  # noqa: E402
from kanri.security.passwords import hash_password  # noqa: E402
from kanri.security.roles import Role  # noqa: E402
from kanri.security.tokens import issue_session_token  # noqa: E402


TEST_SECRET = "test-secret"
TEST_PASSWORD = "correct-horse-battery"


def _clear_process_caches() -> None:
    get_settings.cache_clear()
    get_session_resolver.cache_clear()
    get_rate_limiter.cache_clear()


@pytest.fixture(autouse=True)
def _app_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Production mode with a known secret unless a test says otherwise."""
    monkeypatch.setenv("KANRI_ENV", "production")
    monkeypatch.setenv("KANRI_JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("KANRI_RATE_LIMIT_PER_MINUTE", "1000")
    monkeypatch.delenv("KANRI_DEV_FALLBACK_ROLE", raising=False)
    monkeypatch.delenv("KANRI_TRUSTED_PROXIES", raising=False)
    _clear_process_caches()
    yield
    _clear_process_caches()


@pytest.fixture()
def development_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KANRI_ENV", "development")
    _clear_process_caches()


@pytest.fixture()
def engine() -> Engine:
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture()
def db_session(engine: Engine) -> Generator[Session, None, None]:
    SessionLocal = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    from kanri.main import app

    def _override_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = _override_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(
        role: Role = Role.MEMBER,
        *,
        email: Optional[str] = None,
        name: Optional[str] = None,
        department: Optional[str] = None,
        is_active: bool = True,
        password: str = TEST_PASSWORD,
    ) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"{role.value}{counter['n']}@example.com",
            name=name or f"{role.value.title()} {counter['n']}",
            password_hash=hash_password(password, rounds=4),
            role=role,
            department=department,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


def auth_header(user: User, *, secret: str = TEST_SECRET) -> dict[str, str]:
    token, _ = issue_session_token(
        sub=str(user.id),
        role=user.role,
        department=user.department,
        secret=secret,
        ttl_seconds=3600,
    )
    return {"Authorization": f"Bearer {token}"}
