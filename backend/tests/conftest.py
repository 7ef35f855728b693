"""
Payload Pulverizer — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Every test gets its own SQLite file, store and API client.
How:   pytest auto-discovers conftest.py and makes fixtures available.

Fixture Hierarchy (all function-scoped):
    ├── db_path: Fresh database file path under tmp_path
    ├── test_settings: Settings pointing at db_path
    ├── counter_store: Opened CounterStore on test_settings
    ├── app: FastAPI app built with test_settings
    └── test_client: HTTPX AsyncClient with the app's lifespan running
"""

import os

# Quiet logs before any app import reads the environment
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from pulverizer.config import Settings
from pulverizer.main import create_app
from pulverizer.services.counter_store import CounterStore


@pytest.fixture
def db_path(tmp_path):
    """A database path that does not exist yet; the store creates it."""
    return str(tmp_path / "pulverizer.db")


@pytest.fixture
def test_settings(db_path):
    """Settings for an isolated test database."""
    return Settings(db_path=db_path, log_level="WARNING")


@pytest_asyncio.fixture
async def counter_store(test_settings):
    """
    An opened CounterStore, closed after the test.

    Usage:
        async def test_increment(counter_store):
            assert await counter_store.increment("pulverize") == 1
    """
    store = CounterStore(test_settings)
    await store.open()
    yield store
    await store.close()


@pytest.fixture
def app(test_settings):
    """A fresh application bound to the test database."""
    return create_app(settings=test_settings, configure_logging=False)


@pytest_asyncio.fixture
async def test_client(app):
    """
    Async HTTP client talking to the app in-process.

    ASGITransport does not send lifespan events, so the fixture runs the
    app's lifespan itself; the store is opened and seeded exactly as it
    would be under uvicorn.
    """
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
