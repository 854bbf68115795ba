from __future__ import annotations

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # MongoDB
    mongo_uri: str
    mongo_db_name: str
    mongo_timeout_ms: int

    # Logging
    log_level: str


def get_settings() -> Settings:
    mongo_uri = os.getenv("MONGO_URI", "mongodb://localhost:27017").strip()

    # Only used when the URI carries no database path (Mongoose falls back to "test" the same way).
    mongo_db_name = os.getenv("MONGO_DB_NAME", "test").strip() or "test"
    mongo_timeout_ms = _env_int("MONGO_TIMEOUT_MS", 5000)

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    return Settings(
        mongo_uri=mongo_uri,
        mongo_db_name=mongo_db_name,
        mongo_timeout_ms=mongo_timeout_ms,
        log_level=log_level,
    )
