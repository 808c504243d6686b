from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from kanri.security.rate_limit import RateLimitExceeded, SlidingWindowRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_sliding_window_blocks_then_recovers():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=2, window_seconds=60, clock=clock)
    limiter.check("1.2.3.4")
    clock.now += 30
    limiter.check("1.2.3.4")
    assert limiter.remaining("1.2.3.4") == 0
    with pytest.raises(RateLimitExceeded):
        limiter.check("1.2.3.4")

    # Other clients are unaffected.
    assert limiter.is_allowed("5.6.7.8")

    # First request leaves the window after 60s.
    clock.now += 30
    assert limiter.is_allowed("1.2.3.4")


def test_api_returns_429_when_budget_exhausted(monkeypatch: pytest.MonkeyPatch, client: TestClient):
    from kanri.api.deps import get_rate_limiter
    from kanri.core.settings import get_settings

    monkeypatch.setenv("KANRI_RATE_LIMIT_PER_MINUTE", "2")
    get_settings.cache_clear()
    get_rate_limiter.cache_clear()

    codes = [client.get("/v1/auth/session").status_code for _ in range(3)]
    assert codes == [401, 401, 429]


def test_idle_clients_are_evicted_after_a_window():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=5, window_seconds=60, clock=clock)
    for i in range(50):
        limiter.check(f"10.0.0.{i}")
    assert len(limiter) == 50

    clock.now += 61
    limiter.check("10.0.1.1")
    assert len(limiter) == 1
    assert limiter.remaining("10.0.0.3") == 5
    assert len(limiter) == 1


def test_rotating_forwarded_for_does_not_reset_the_budget(monkeypatch: pytest.MonkeyPatch, client: TestClient):
    from kanri.api.deps import get_rate_limiter
    from kanri.core.settings import get_settings

    monkeypatch.setenv("KANRI_RATE_LIMIT_PER_MINUTE", "2")
    get_settings.cache_clear()
    get_rate_limiter.cache_clear()

    codes = [
        client.get("/v1/auth/session", headers={"X-Forwarded-For": f"10.0.0.{i}", "X-Real-IP": f"10.9.0.{i}"}).status_code
        for i in range(3)
    ]
    assert codes == [401, 401, 429]
    assert len(get_rate_limiter()) == 1


def test_forwarded_for_is_honoured_behind_a_trusted_proxy(monkeypatch: pytest.MonkeyPatch, client: TestClient):
    from kanri.api.deps import get_rate_limiter
    from kanri.core.settings import get_settings

    monkeypatch.setenv("KANRI_RATE_LIMIT_PER_MINUTE", "2")
    # TestClient connects from the "testclient" peer address.
    monkeypatch.setenv("KANRI_TRUSTED_PROXIES", "10.1.1.1, testclient")
    get_settings.cache_clear()
    get_rate_limiter.cache_clear()

    codes = [
        client.get("/v1/auth/session", headers={"X-Forwarded-For": f"203.0.113.{i}, 10.1.1.1"}).status_code
        for i in range(3)
    ]
    assert codes == [401, 401, 401]
    assert len(get_rate_limiter()) == 3
