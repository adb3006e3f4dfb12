"""Shared test fixtures for FarmTrace."""

import os
import pytest
from httpx import ASGITransport, AsyncClient


SECRET_KEY = "test-secret-key-for-unit-tests"


@pytest.fixture
def app():
    """Create a test app with in-memory DB."""
    os.environ["FARMTRACE_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["FARMTRACE_SECRET_KEY"] = SECRET_KEY
    os.environ.pop("FARMTRACE_TOKEN_MAX_AGE", None)

    # Clear caches and singletons so new env vars take effect
    from farmtrace.common.config import get_settings
    get_settings.cache_clear()

    from farmtrace.deps import reset_singletons
    reset_singletons()

    from farmtrace.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from farmtrace.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


async def _create_actor(full_name: str, username: str, role: str) -> dict:
    from farmtrace.common.security import issue_token
    from farmtrace.deps import get_db, get_user_service

    async with get_db().get_session() as session:
        user = await get_user_service().create_user(
            session, full_name, username, role=role,
        )
    token = issue_token(user.id, role)
    return {
        "id": user.id,
        "full_name": full_name,
        "role": role,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest.fixture
async def producer(client):
    return await _create_actor("Alice Farmer", "alice", "producer")


@pytest.fixture
async def other_producer(client):
    return await _create_actor("Bob Grower", "bob", "producer")


@pytest.fixture
async def consumer(client):
    return await _create_actor("Carol Shopper", "carol", "consumer")


@pytest.fixture
def producer_headers(producer):
    return producer["headers"]
