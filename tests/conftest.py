from __future__ import annotations

from pathlib import Path
import sys


import pytest
from mongomock_motor import AsyncMongoMockClient


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for imports like `import persistence...` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def settings():
    from settings import Settings

    return Settings(
        mongo_uri="mongodb://localhost:27017/people_test",
        mongo_db_name="test",
        mongo_timeout_ms=100,
        log_level="DEBUG",
    )


@pytest.fixture
def mongo_client(settings) -> AsyncMongoMockClient:
    """
    In-memory stand-in for the Motor client; every test gets an empty server.
    The URI is parsed by the mock the same way Motor would parse it.
    """
    return AsyncMongoMockClient(settings.mongo_uri)


@pytest.fixture
def database(settings, mongo_client):
    from persistence.database import DatabaseManager

    return DatabaseManager(settings, client=mongo_client)


@pytest.fixture
def people_collection(database):
    return database.people_collection()


@pytest.fixture
def repo(people_collection):
    from persistence.repositories import MongoPersonRepository

    return MongoPersonRepository(people_collection)
