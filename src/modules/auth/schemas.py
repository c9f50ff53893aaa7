"""Pydantic schemas for auth module."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    """Schema for account provisioning."""

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8, max_length=100)


class UserUpdate(BaseModel):
    """Schema for partial user profile update."""

    name: str | None = Field(None, min_length=1, max_length=100)
    avatar_url: str | None = None


class UserResponse(BaseModel):
    """Schema for user response (no sensitive data)."""

    id: str
    email: EmailStr
    name: str
    avatar_url: str | None = None
    is_active: bool
    created_at: datetime


class UserSummary(BaseModel):
    """Public projection of a user, embedded in other responses.

    The email is left out for anonymous viewers.
    """

    id: str
    name: str
    email: EmailStr | None = None
    avatar_url: str | None = None

    @classmethod
    def from_user(cls, user, include_email: bool = True) -> "UserSummary":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email if include_email else None,
            avatar_url=user.avatar_url,
        )


class Token(BaseModel):
    """JWT token response."""

    access_token: str
    token_type: str = "bearer"
