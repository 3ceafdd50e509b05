"""Shared fixtures: an in-memory store, a scripted LLM and a wired test client."""
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from config import API_KEY_HEADER, Settings
from database import Database
from main import create_app
from services import LLMProxy, RateLimiter, ThreadStore

API_KEY = "test-secret"


class TickingClock:
    """Clock that moves `step` (one second by default) per call."""

    def __init__(self, start: Optional[datetime] = None, step: timedelta = timedelta(seconds=1)):
        self.now = start or datetime(2025, 1, 1, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        self.now += self.step
        return self.now


class FakeLLMProxy(LLMProxy):
    """Records every history it is asked to complete and answers from a script."""

    def __init__(self, reply: str = "Noted. What's next?", error: Optional[Exception] = None):
        super().__init__(api_key="fake-key")
        self.reply = reply
        self.error = error
        self.calls: List[dict] = []

    async def complete(self, history, user_email):
        self.calls.append({
            "history": [(m.role, m.content) for m in history],
            "user_email": user_email,
        })
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def settings():
    return Settings({
        "BOCHAT_API_KEY": API_KEY,
        "LLM_API_KEY": "llm-key",
        "ENVIRONMENT": "test",
    })


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def database():
    db = Database("sqlite://")
    yield db
    db.dispose()


@pytest.fixture
def store(database, clock):
    return ThreadStore(database, clock=clock)


@pytest.fixture
def llm():
    return FakeLLMProxy()


@pytest.fixture
def rate_limiter():
    return RateLimiter(max_requests=30, window_seconds=60)


@pytest.fixture
def app(settings, store, llm, rate_limiter):
    return create_app(settings=settings, thread_store=store, llm_proxy=llm, rate_limiter=rate_limiter)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {API_KEY_HEADER: API_KEY}
