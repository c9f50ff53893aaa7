"""
FastAPI dependency injection utilities.

Provides reusable dependencies for routes and services.
"""

from typing import Annotated

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from src.core.database import get_database
from src.core.store import EntityStore


async def get_store(
    db: AsyncIOMotorDatabase = Depends(get_database),
) -> EntityStore:
    """A fresh store adapter for the current request."""
    return EntityStore(db)


# Type aliases for dependency injection
MongoDB = Annotated[AsyncIOMotorDatabase, Depends(get_database)]
Store = Annotated[EntityStore, Depends(get_store)]
