"""Comment router - threads attached to documents."""

from fastapi import APIRouter, status

from src.modules.documents.dependencies import Guard, Reader
from src.modules.documents.schemas import (
    CommentCreate,
    CommentEnvelope,
    CommentListResponse,
    CommentResponse,
    CommentUpdate,
    SuccessResponse,
)

router = APIRouter(tags=["comments"])


@router.get("/documents/{document_id}/comments", response_model=CommentListResponse)
async def list_document_comments(document_id: str, reader: Reader):
    """Comments on a readable document, oldest first."""
    rows = await reader.list_comments(document_id)
    show_email = reader.actor_id is not None
    return CommentListResponse(
        comments=[CommentResponse.build(c, u, show_email) for c, u in rows]
    )


@router.post(
    "/documents/{document_id}/comments",
    response_model=CommentEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def create_document_comment(
    document_id: str, comment_data: CommentCreate, guard: Guard
):
    """Comment on a document. Read access is enough."""
    comment = await guard.create_comment(
        document_id,
        comment_data.content,
        parent_comment_id=comment_data.parent_comment_id,
        position=comment_data.position,
    )
    return CommentEnvelope(comment=CommentResponse.build(comment))


@router.put("/comments/{comment_id}", response_model=CommentEnvelope)
async def update_comment(comment_id: str, update_data: CommentUpdate, guard: Guard):
    """Edit a comment (its author only)."""
    comment = await guard.update_comment(comment_id, update_data.content)
    return CommentEnvelope(comment=CommentResponse.build(comment))


@router.delete("/comments/{comment_id}", response_model=SuccessResponse)
async def delete_comment(comment_id: str, guard: Guard):
    """Delete a comment and its replies (comment author or document author)."""
    await guard.delete_comment(comment_id)
    return SuccessResponse()
