import os
from datetime import datetime, timezone

import pytest
import pytest_asyncio

# Set environment for testing before importing the app
os.environ["APP_ENV"] = "development"
os.environ["CRON_SECRET"] = "test_cron_secret"
os.environ["DEFAULT_TIMEZONE"] = "UTC"

from httpx import ASGITransport, AsyncClient
from hobhob.main import app
from hobhob.store import InMemoryUserStore


FIXED_NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def store(monkeypatch):
    """Fresh in-memory store and a frozen clock wired into the app."""
    user_store = InMemoryUserStore()
    monkeypatch.setattr(app.state, "store", user_store)
    monkeypatch.setattr(app.state, "clock", lambda: FIXED_NOW)
    monkeypatch.setattr(app.state, "push_sender", None)
    return user_store


@pytest_asyncio.fixture
async def client(store):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
