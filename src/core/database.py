"""
MongoDB connection management (motor).

The connection is an explicitly constructed object owned by the application
(see ``main.lifespan``) rather than a module-level global.
"""

import logging

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from src.core.config import settings

logger = logging.getLogger(__name__)


class MongoConnection:
    """Owns a motor client and the application database handle."""

    def __init__(self, url: str | None = None, database: str | None = None):
        self.url = url or settings.MONGODB_URL
        self.database_name = database or settings.MONGODB_DATABASE
        self.client: AsyncIOMotorClient | None = None
        self._db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        """Open the client and verify the server answers."""
        self.client = AsyncIOMotorClient(self.url)
        self._db = self.client[self.database_name]

        try:
            await self.client.admin.command("ping")
        except Exception:
            logger.exception("MongoDB connection failed: %s", self.database_name)
            raise
        logger.info("MongoDB connected: %s", self.database_name)

    def close(self) -> None:
        """Close the client on application shutdown."""
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed")

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if self._db is None:
            raise RuntimeError("MongoDB not initialized. Call connect() first.")
        return self._db


def get_database(request: Request) -> AsyncIOMotorDatabase:
    """Dependency returning the database of the running application."""
    connection: MongoConnection = request.app.state.mongo
    return connection.db
