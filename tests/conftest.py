"""
Pytest configuration and shared fixtures for MDB_RECORDS tests.

This module provides:
- An in-memory stand-in for the Motor database/collection/cursor API
- Mock MongoDB fixtures built on unittest.mock
- Real MongoDB fixtures for integration tests
"""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId

from mdb_records.observability.metrics import MetricsCollector

from .fakes import FakeCursor, FakeDatabase


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: tests that need a running MongoDB")


# ============================================================================
# IN-MEMORY DRIVER
# ============================================================================


@pytest.fixture
def fake_db() -> FakeDatabase:
    """Provide an empty in-memory database."""
    return FakeDatabase()


@pytest.fixture
def metrics() -> MetricsCollector:
    """Provide an isolated metrics collector."""
    return MetricsCollector()


# ============================================================================
# MOCK MONGODB FIXTURES
# ============================================================================


@pytest.fixture
def mock_mongo_collection() -> MagicMock:
    """Create a mock Motor collection with async driver methods."""
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.find = MagicMock(return_value=FakeCursor([]))
    collection.find_one_and_replace = AsyncMock(return_value=None)
    collection.find_one_and_delete = AsyncMock(return_value=None)
    collection.insert_many = AsyncMock(
        return_value=MagicMock(inserted_ids=["id1", "id2"], acknowledged=True)
    )
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=2, acknowledged=True))
    collection.with_options = MagicMock(return_value=collection)
    return collection


@pytest.fixture
def mock_mongo_database(mock_mongo_collection: MagicMock) -> MagicMock:
    """Create a mock Motor database that returns the same mock collection for any name."""
    db = MagicMock()
    db.name = "test_db"
    db.__getitem__.return_value = mock_mongo_collection
    return db


# ============================================================================
# ENVIRONMENT VARIABLES
# ============================================================================


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch):
    """Reset environment variables before each test."""
    env_vars_to_clear = [
        "MONGO_URI",
        "DB_NAME",
        "MONGO_MAX_POOL_SIZE",
        "MONGO_MIN_POOL_SIZE",
        "MONGO_SERVER_SELECTION_TIMEOUT_MS",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    yield


# ============================================================================
# REAL MONGODB FIXTURES (Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def mongodb_connection_string():
    """
    Connection string for integration tests.

    MONGODB_HOST wins when set; otherwise a MongoDB testcontainer is started
    once per session.
    """
    host = os.getenv("MONGODB_HOST")
    if host:
        yield host
        return

    try:
        from testcontainers.mongodb import MongoDbContainer
    except ImportError:
        pytest.skip("testcontainers not installed. Install with: pip install -e '.[test]'")

    try:
        container = MongoDbContainer(image="mongo:7")
        container.start()
    except Exception as e:  # docker unavailable
        pytest.skip(f"Could not start MongoDB container: {e}")

    try:
        yield container.get_connection_url()
    finally:
        container.stop()


@pytest_asyncio.fixture
async def real_mongo_db(mongodb_connection_string):
    """
    Real MongoDB database, dropped after the test.

    Uses a unique database name per test to avoid conflicts.
    """
    from motor.motor_asyncio import AsyncIOMotorClient

    client = AsyncIOMotorClient(mongodb_connection_string, serverSelectionTimeoutMS=5000)
    db_name = f"test_db_{os.getpid()}_{ObjectId()}"
    db = client[db_name]

    yield db

    await client.drop_database(db_name)
    client.close()
