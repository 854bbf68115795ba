"""MongoDB connectivity for the people store."""

from __future__ import annotations

import logging
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from settings import Settings, get_settings

from .person_state import PEOPLE_COLLECTION

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the Motor client; no module-level connection is kept anywhere else."""

    def __init__(self, settings: Settings | None = None, client: Any | None = None) -> None:
        self.settings = settings or get_settings()
        self.mongodb: Optional[Any] = client
        self.connected = False

    async def initialize(self) -> bool:
        """
        Create the client (unless one was injected) and ping the server once.

        A failed ping is logged, not raised: the client is kept so later calls
        can still succeed once the server is reachable.
        """

        logger.info("Initializing MongoDB connection")

        if self.mongodb is None:
            self.mongodb = AsyncIOMotorClient(
                self.settings.mongo_uri,
                serverSelectionTimeoutMS=self.settings.mongo_timeout_ms,
            )

        try:
            await self.mongodb.admin.command("ping")
        except PyMongoError as e:
            self.connected = False
            logger.error("MongoDB connection error: %r", e)
            return False

        self.connected = True
        logger.info("Connected to MongoDB")
        return True

    def people_collection(self) -> Any:
        if self.mongodb is None:
            raise RuntimeError("DatabaseManager.initialize() has not been called")
        # The client already parsed the URI; only its database name is needed.
        name = self.mongodb.get_default_database(self.settings.mongo_db_name).name
        return self.mongodb[name][PEOPLE_COLLECTION]

    async def close(self) -> None:
        logger.info("Closing MongoDB connection")

        if self.mongodb is not None:
            self.mongodb.close()
            self.mongodb = None
        self.connected = False
