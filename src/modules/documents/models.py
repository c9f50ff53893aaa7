"""Document, collaborator, comment and version records for MongoDB."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import Field

from src.core.models import MongoModel, utcnow


class Visibility(StrEnum):
    PRIVATE = "private"
    PUBLIC = "public"
    LINK_ONLY = "link_only"
    PASSWORD_PROTECTED = "password_protected"

    @property
    def carries_token(self) -> bool:
        return self in (Visibility.LINK_ONLY, Visibility.PASSWORD_PROTECTED)


class Permission(StrEnum):
    READ = "read"
    WRITE = "write"
    ADMIN = "admin"


EDIT_PERMISSIONS = frozenset({Permission.WRITE, Permission.ADMIN})


class DocumentInDB(MongoModel):
    """Document as stored in MongoDB.

    ``password_hash`` is set only for password_protected documents and
    ``access_token`` only for link_only and password_protected ones.
    """

    title: str
    content: str = ""
    author_id: str
    visibility: Visibility = Visibility.PRIVATE
    password_hash: str | None = None
    access_token: str | None = None
    version: int = 1
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class CollaboratorInDB(MongoModel):
    """A (document, user) grant. Unique per pair."""

    document_id: str
    user_id: str
    permission: Permission = Permission.READ
    created_at: datetime = Field(default_factory=utcnow)


class CommentInDB(MongoModel):
    """Comment on a document, optionally replying to another comment."""

    document_id: str
    user_id: str
    content: str
    parent_comment_id: str | None = None
    position: dict[str, Any] | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class DocumentVersionInDB(MongoModel):
    """Immutable content snapshot."""

    document_id: str
    content: str
    version_number: int
    created_by: str
    created_at: datetime = Field(default_factory=utcnow)
