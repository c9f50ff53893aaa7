"""User model for MongoDB."""

from datetime import datetime

from pydantic import EmailStr, Field

from src.core.models import MongoModel, utcnow


class UserInDB(MongoModel):
    """User document as stored in MongoDB."""

    email: EmailStr
    name: str
    avatar_url: str | None = None
    hashed_password: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
