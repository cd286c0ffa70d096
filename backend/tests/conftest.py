"""
Main pytest configuration for all backend tests.

The store is an in-memory SQLite database (aiosqlite) and Redis is an
in-process fakeredis server, both fresh for every test.
"""

import os
from typing import Any, Dict

import pytest
import pytest_asyncio

# Set test environment variables before importing bookshelf modules
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["API_PREFIX"] = "/api"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_JSON"] = "false"
os.environ["OTEL_ENABLED"] = "false"

from fakeredis import FakeAsyncRedis, FakeServer
from httpx import ASGITransport, AsyncClient

from bookshelf.core.database import database_manager
from bookshelf.core.logging import configure_logging
from bookshelf.infrastructure.redis.connection_factory import redis_connection_factory
from bookshelf.main import app


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no I/O)")
    config.addinivalue_line(
        "markers", "integration: HTTP tests against SQLite and fakeredis"
    )
    configure_logging(level="WARNING", json_logs=False)


@pytest.fixture
def redis_server():
    return FakeServer()


@pytest_asyncio.fixture
async def redis_client(redis_server):
    """Async Redis client bound to a private fake server."""
    client = FakeAsyncRedis(server=redis_server, decode_responses=True)
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def database():
    """Fresh in-memory store with the schema created."""
    await database_manager.initialize("sqlite+aiosqlite://")
    await database_manager.create_all()
    yield database_manager
    await database_manager.close()


@pytest_asyncio.fixture
async def client(database, redis_client):
    """HTTP client for the application wired to the test store and Redis."""
    await redis_connection_factory.initialize(client=redis_client)
    await redis_connection_factory.circuit_breaker.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    await redis_connection_factory.close()


@pytest.fixture
def book_payload():
    """Factory for valid book bodies."""

    def _make(**overrides: Any) -> Dict[str, Any]:
        payload = {
            "title": "1984",
            "author": "George Orwell",
            "publishedDate": "1949-06-08",
            "pages": 328,
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def create_book(client, book_payload):
    """Create a book through the API and return its id."""

    async def _create(**overrides: Any) -> str:
        response = await client.post("/api/books", json=book_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["id"]

    return _create


@pytest.fixture
def create_user(client):
    """Create a user through the API and return its id."""

    async def _create(name: str = "Ada Lovelace", email: str = "ada@example.com") -> str:
        response = await client.post("/api/users", json={"name": name, "email": email})
        assert response.status_code == 201, response.text
        return response.json()["id"]

    return _create
