"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for the database, store, HTTP client and
authenticated users.
"""

import os

# Cheap hashes for the test run; must be set before settings are loaded.
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from mongomock_motor import AsyncMongoMockClient  # noqa: E402

from src.core.config import settings  # noqa: E402
from src.core.database import get_database  # noqa: E402
from src.core.store import EntityStore  # noqa: E402
from src.main import app  # noqa: E402
from src.modules.auth.models import UserInDB  # noqa: E402
from src.modules.auth.security import create_access_token, hash_password  # noqa: E402


@pytest.fixture
async def mongo_db() -> Any:
    """In-memory MongoDB test database, fresh for every test."""
    client = AsyncMongoMockClient()
    db = client[f"{settings.MONGODB_DATABASE}_test"]
    await EntityStore(db).ensure_indexes()
    return db


@pytest.fixture
def store(mongo_db) -> EntityStore:
    return EntityStore(mongo_db)


@pytest.fixture
async def async_client(mongo_db) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client for testing FastAPI endpoints.

    Usage:
        async def test_endpoint(async_client):
            response = await async_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    # Override database dependency to use the test database
    app.dependency_overrides[get_database] = lambda: mongo_db
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(store: EntityStore) -> Callable[..., Awaitable[UserInDB]]:
    """Factory inserting a user straight into the store."""

    async def _make_user(email: str, name: str | None = None) -> UserInDB:
        user = UserInDB(
            email=email,
            name=name or email.split("@")[0],
            hashed_password=hash_password("testpassword123"),
        )
        return await store.insert_user(user)

    return _make_user


def auth_headers_for(user: UserInDB) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


@pytest.fixture
async def author(make_user) -> UserInDB:
    return await make_user("author@example.com", "Author")


@pytest.fixture
async def other(make_user) -> UserInDB:
    return await make_user("other@example.com", "Other")


@pytest.fixture
async def third(make_user) -> UserInDB:
    return await make_user("third@example.com", "Third")


@pytest.fixture
def author_headers(author) -> dict[str, str]:
    return auth_headers_for(author)


@pytest.fixture
def other_headers(other) -> dict[str, str]:
    return auth_headers_for(other)


@pytest.fixture
def third_headers(third) -> dict[str, str]:
    return auth_headers_for(third)


@pytest.fixture
def anyio_backend() -> str:
    """Backend for anyio (used by httpx)."""
    return "asyncio"
