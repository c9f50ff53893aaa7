"""Document schemas - request and response models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from src.modules.auth.schemas import UserSummary
from src.modules.documents.models import (
    CollaboratorInDB,
    CommentInDB,
    DocumentInDB,
    DocumentVersionInDB,
)

# Visibility and permission arrive as plain strings and are validated by the
# sharing policy and the guard, so bad values map to 400 rather than 422.


class DocumentCreate(BaseModel):
    """Schema for creating a new document."""

    title: str | None = None
    content: str | None = None
    visibility: str = "private"
    password: str | None = None


class DocumentUpdate(BaseModel):
    """Schema for updating a document."""

    title: str | None = None
    content: str | None = None
    visibility: str | None = None


class ShareUpdate(BaseModel):
    """Schema for changing sharing settings."""

    visibility: str
    password: str | None = None


class DocumentResponse(BaseModel):
    """Schema for document response. Never carries the password hash."""

    id: str
    title: str
    content: str
    author_id: str
    visibility: str
    access_token: str | None = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "60b8d545f1d2a12345678901",
                "title": "My Document",
                "content": "# Hello World",
                "author_id": "60b8d545f1d2a12345678902",
                "visibility": "private",
                "access_token": None,
                "version": 1,
                "created_at": "2024-05-20T10:00:00",
                "updated_at": "2024-05-21T10:00:00",
            }
        },
    )

    @classmethod
    def from_document(
        cls, document: DocumentInDB, viewer_id: str | None
    ) -> "DocumentResponse":
        """Only the author gets to see the share token."""
        data = document.model_dump(exclude={"password_hash"})
        if document.author_id != viewer_id:
            data["access_token"] = None
        return cls(**data)


class DocumentEnvelope(BaseModel):
    document: DocumentResponse


class DocumentListResponse(BaseModel):
    documents: list[DocumentResponse]


class SharingResult(BaseModel):
    id: str
    visibility: str
    access_token: str | None = None


class SharingEnvelope(BaseModel):
    document: SharingResult


class SuccessResponse(BaseModel):
    success: bool = True


class CollaboratorCreate(BaseModel):
    """Schema for adding a collaborator."""

    email: str
    permission: str = "read"


class CollaboratorPermissionUpdate(BaseModel):
    permission: str


class CollaboratorResponse(BaseModel):
    id: str
    document_id: str
    user_id: str
    permission: str
    created_at: datetime
    user: UserSummary | None = None

    @classmethod
    def build(
        cls, collaborator: CollaboratorInDB, user=None, show_email: bool = True
    ) -> "CollaboratorResponse":
        return cls(
            **collaborator.model_dump(),
            user=UserSummary.from_user(user, show_email) if user else None,
        )


class CollaboratorListResponse(BaseModel):
    collaborators: list[CollaboratorResponse]


class CommentCreate(BaseModel):
    content: str | None = None
    parent_comment_id: str | None = None
    position: dict[str, Any] | None = None


class CommentUpdate(BaseModel):
    content: str | None = None


class CommentResponse(BaseModel):
    id: str
    document_id: str
    user_id: str
    content: str
    parent_comment_id: str | None = None
    position: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime
    user: UserSummary | None = None

    @classmethod
    def build(
        cls, comment: CommentInDB, user=None, show_email: bool = True
    ) -> "CommentResponse":
        return cls(
            **comment.model_dump(),
            user=UserSummary.from_user(user, show_email) if user else None,
        )


class CommentEnvelope(BaseModel):
    comment: CommentResponse


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]


class VersionResponse(BaseModel):
    id: str
    document_id: str
    content: str
    version_number: int
    created_by: str
    created_at: datetime

    @classmethod
    def build(cls, version: DocumentVersionInDB) -> "VersionResponse":
        return cls(**version.model_dump())


class VersionEnvelope(BaseModel):
    version: VersionResponse


class VersionListResponse(BaseModel):
    versions: list[VersionResponse]
