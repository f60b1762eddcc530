"""
Checkins Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the test suite.
How:   Each test gets its own SQLite file (via aiosqlite) standing in for
       PostgreSQL, so tests run without a database server and never share
       rows.

Fixture Hierarchy (all function-scoped):
    ├── database_url: sqlite+aiosqlite URL inside tmp_path
    ├── settings: Settings bound to that URL (no .env, quiet logging)
    ├── pool: ConnectionPool with the checkins table created
    ├── repository: CheckinRepository on that pool
    ├── app / test_client: FastAPI app + HTTPX AsyncClient (ASGITransport)
    └── checkin_payload: a valid POST /v1/checkins body
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from checkins.config import ListPolicy, Settings
from checkins.database import ConnectionPool
from checkins.main import create_app
from checkins.services.checkin_repository import CheckinRepository


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'checkins.db'}"


@pytest.fixture
def make_settings(database_url):
    """Factory for Settings with test-friendly defaults and per-test overrides."""

    def _make(**overrides):
        values = {
            "database_url": database_url,
            "db_pool_timeout": 10.0,
            "log_level": "WARNING",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest_asyncio.fixture
async def pool(settings):
    pool = ConnectionPool.from_settings(settings)
    await pool.create_schema()
    yield pool
    await pool.dispose()


@pytest.fixture
def repository(pool):
    return CheckinRepository(pool, list_policy=ListPolicy.FIRST_ONLY, query_timeout=5.0)


@pytest_asyncio.fixture
async def make_client():
    """
    Builds an app from Settings (schema created) and an AsyncClient for it.

    ASGITransport does not run the lifespan, so the schema is created here.
    """
    apps = []

    async def _make(settings, create_schema=True):
        app = create_app(settings)
        if create_schema:
            await app.state.pool.create_schema()
        apps.append(app)
        return app, AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    yield _make

    for app in apps:
        await app.state.pool.dispose()


@pytest_asyncio.fixture
async def app_and_client(make_client, settings):
    app, client = await make_client(settings)
    async with client:
        yield app, client


@pytest_asyncio.fixture
async def test_client(app_and_client):
    """
    Usage:
        async def test_list(test_client):
            response = await test_client.get("/v1/checkins")
            assert response.status_code == 200
    """
    _, client = app_and_client
    yield client


@pytest.fixture
def checkin_payload():
    return {
        "gps": [1.1, 2.2],
        "location_name": "some location",
        "crowded_level": 3,
        "user_id": "some user",
        "client_id": "some client",
        "missing_goods": ["flour"],
    }
