"""Shared models and types for the whole application."""

from datetime import datetime
from typing import Annotated, Self

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def validate_object_id(v: str | ObjectId) -> str:
    """Validate and convert ObjectId to string."""
    if isinstance(v, ObjectId):
        return str(v)
    if isinstance(v, str) and ObjectId.is_valid(v):
        return v
    raise ValueError("Invalid ObjectId")


# Standard type for MongoDB ObjectIDs used across modules
PyObjectId = Annotated[str, BeforeValidator(validate_object_id)]


def utcnow() -> datetime:
    # Mongo keeps millisecond precision; truncate so in-memory and stored
    # values compare equal.
    now = datetime.utcnow()
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class MongoModel(BaseModel):
    """Base for records stored in a collection, keyed by ``_id``."""

    # Enums are kept as their plain string values so they round-trip through
    # BSON unchanged.
    model_config = ConfigDict(
        populate_by_name=True, use_enum_values=True, validate_default=True
    )

    id: PyObjectId | None = Field(default=None, alias="_id")

    def to_mongo(self) -> dict:
        """Convert to MongoDB document format."""
        data = self.model_dump(by_alias=True, exclude_none=True, mode="python")
        if data.get("_id"):
            data["_id"] = ObjectId(data["_id"])
        return data

    @classmethod
    def from_mongo(cls, doc: dict | None) -> Self | None:
        """Create instance from MongoDB document."""
        if doc is None:
            return None
        return cls(**doc)
