"""Shared fixtures for the ProDraft API test suite."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from prodraft.main import create_app
from prodraft.rate_limit import FixedWindowRateLimiter, limiter


class FakeClock:
    """Manually advanced replacement for ``time.monotonic``."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_slowapi_storage():
    """Clear slowapi hit counters so decorator limits never leak between tests."""
    limiter.reset()
    yield


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(clock) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(limit=20, window_seconds=60, clock=clock)


@pytest.fixture
def gemini_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")


@pytest.fixture
def app(rate_limiter):
    return create_app(rate_limiter=rate_limiter, llm_provider="gemini")


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)
