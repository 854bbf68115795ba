from __future__ import annotations

import asyncio

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from mongomock_motor import AsyncMongoMockClient

from persistence.database import DatabaseManager
from persistence.person_state import PEOPLE_COLLECTION
from settings import Settings, get_settings


class _Admin:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.commands: list[str] = []

    async def command(self, name, *args, **kwargs):
        self.commands.append(name)
        if self.error is not None:
            raise self.error
        return {"ok": 1.0}


class _Client:
    def __init__(self, error: Exception | None = None) -> None:
        self.admin = _Admin(error)
        self.closed = False

    def close(self) -> None:
        self.closed = True


def test_get_settings_defaults(monkeypatch):
    for name in ("MONGO_URI", "MONGO_DB_NAME", "MONGO_TIMEOUT_MS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    s = get_settings()
    assert s.mongo_uri == "mongodb://localhost:27017"
    assert s.mongo_db_name == "test"
    assert s.mongo_timeout_ms == 5000
    assert s.log_level == "INFO"


def test_get_settings_from_env(monkeypatch):
    monkeypatch.setenv("MONGO_URI", "mongodb://db.internal:27017/people")
    monkeypatch.setenv("MONGO_DB_NAME", "ignored")
    monkeypatch.setenv("MONGO_TIMEOUT_MS", "not-a-number")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    s = get_settings()
    assert s.mongo_uri == "mongodb://db.internal:27017/people"
    assert s.mongo_timeout_ms == 5000
    assert s.log_level == "DEBUG"


def test_people_collection_falls_back_when_uri_names_no_database():
    s = Settings(mongo_uri="mongodb://localhost:27017", mongo_db_name="tutorial", mongo_timeout_ms=10, log_level="INFO")
    db = DatabaseManager(s, client=AsyncMongoMockClient(s.mongo_uri))

    collection = db.people_collection()
    assert collection.database.name == "tutorial"
    assert collection.name == PEOPLE_COLLECTION


class _NamedDatabase:
    def __init__(self, name: str) -> None:
        self.name = name
        self.collections: dict[str, object] = {}

    def __getitem__(self, name: str) -> object:
        return self.collections.setdefault(name, object())


class _ParsedUriClient:
    """Client whose URI was already parsed: resolving the database must not parse it again."""

    def __init__(self, default_name: str | None) -> None:
        self.default_name = default_name
        self.defaults_asked: list[str] = []
        self.databases: dict[str, _NamedDatabase] = {}

    def get_default_database(self, default=None):
        self.defaults_asked.append(default)
        return _NamedDatabase(self.default_name or default)

    def __getitem__(self, name: str) -> _NamedDatabase:
        return self.databases.setdefault(name, _NamedDatabase(name))


def test_people_collection_uses_database_from_srv_uri_without_dns():
    s = Settings(
        mongo_uri="mongodb+srv://user:pw@cluster0.example.invalid/persondb",
        mongo_db_name="test",
        mongo_timeout_ms=10,
        log_level="INFO",
    )
    client = _ParsedUriClient("persondb")
    db = DatabaseManager(s, client=client)

    db.people_collection()
    assert list(client.databases) == ["persondb"]
    assert client.defaults_asked == ["test"]


def test_initialize_pings_and_reports_success(settings):
    async def _run():
        client = _Client()
        db = DatabaseManager(settings, client=client)
        assert await db.initialize() is True
        assert db.connected
        assert client.admin.commands == ["ping"]

        await db.close()
        assert client.closed
        assert db.mongodb is None
        assert not db.connected

    asyncio.run(_run())


def test_initialize_logs_failure_without_raising(settings, caplog):
    async def _run():
        db = DatabaseManager(settings, client=_Client(ServerSelectionTimeoutError("no servers")))
        assert await db.initialize() is False
        assert not db.connected
        # The client is kept for later attempts.
        assert db.mongodb is not None

    with caplog.at_level("ERROR", logger="persistence.database"):
        asyncio.run(_run())
    assert "MongoDB connection error" in caplog.text


def test_people_collection_uses_uri_database(database, mongo_client):
    collection = database.people_collection()
    assert collection.name == PEOPLE_COLLECTION
    assert collection.database.name == "people_test"


def test_people_collection_requires_client(settings):
    db = DatabaseManager(settings)
    with pytest.raises(RuntimeError, match="initialize"):
        db.people_collection()
