"""Document router - API endpoints."""

from fastapi import APIRouter, Query, status

from src.core.config import settings
from src.modules.auth.dependencies import CurrentUser, OptionalUser
from src.modules.documents.dependencies import Guard, Reader, Sharing
from src.modules.documents.schemas import (
    CollaboratorCreate,
    CollaboratorListResponse,
    CollaboratorPermissionUpdate,
    CollaboratorResponse,
    DocumentCreate,
    DocumentEnvelope,
    DocumentListResponse,
    DocumentResponse,
    DocumentUpdate,
    ShareUpdate,
    SharingEnvelope,
    SharingResult,
    SuccessResponse,
    VersionEnvelope,
    VersionListResponse,
    VersionResponse,
)

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post(
    "", response_model=DocumentEnvelope, status_code=status.HTTP_201_CREATED
)
async def create_new_document(
    doc_data: DocumentCreate, guard: Guard, current_user: CurrentUser
):
    """Create a new document owned by the caller."""
    doc = await guard.create_document(
        doc_data.title, doc_data.content, doc_data.visibility, doc_data.password
    )
    return DocumentEnvelope(document=DocumentResponse.from_document(doc, current_user.id))


@router.get("", response_model=DocumentListResponse)
async def list_documents(reader: Reader, current_user: CurrentUser):
    """List the caller's own documents, most recently updated first."""
    docs = await reader.list_own_documents()
    return DocumentListResponse(
        documents=[DocumentResponse.from_document(d, current_user.id) for d in docs]
    )


@router.get("/public", response_model=DocumentListResponse)
async def list_public_documents(
    reader: Reader,
    user: OptionalUser,
    limit: int = Query(default=settings.PUBLIC_DOCUMENTS_LIMIT, ge=1, le=100),
):
    """List public documents, most recently updated first."""
    docs = await reader.list_public_documents(limit)
    viewer_id = user.id if user else None
    return DocumentListResponse(
        documents=[DocumentResponse.from_document(d, viewer_id) for d in docs]
    )


@router.get("/{document_id}", response_model=DocumentEnvelope)
async def get_document_details(document_id: str, reader: Reader, user: OptionalUser):
    """Get a document. Missing and forbidden documents both answer 404."""
    doc = await reader.get_document(document_id)
    viewer_id = user.id if user else None
    return DocumentEnvelope(document=DocumentResponse.from_document(doc, viewer_id))


@router.put("/{document_id}", response_model=DocumentEnvelope)
async def update_document_content(
    document_id: str, update_data: DocumentUpdate, guard: Guard, current_user: CurrentUser
):
    """Update title, content or visibility (write or admin permission)."""
    doc = await guard.update_document(
        document_id,
        title=update_data.title,
        content=update_data.content,
        visibility=update_data.visibility,
    )
    return DocumentEnvelope(document=DocumentResponse.from_document(doc, current_user.id))


@router.delete("/{document_id}", response_model=SuccessResponse)
async def delete_existing_document(document_id: str, guard: Guard):
    """Delete document (author only)."""
    await guard.delete_document(document_id)
    return SuccessResponse()


@router.put("/{document_id}/share", response_model=SharingEnvelope)
async def update_sharing(
    document_id: str, share_data: ShareUpdate, sharing: Sharing, current_user: CurrentUser
):
    """Change the sharing mode (author only). Rotates the share token."""
    doc = await sharing.apply_sharing(
        current_user.id, document_id, share_data.visibility, share_data.password
    )
    return SharingEnvelope(
        document=SharingResult(
            id=doc.id, visibility=doc.visibility, access_token=doc.access_token
        )
    )


@router.get("/{document_id}/versions", response_model=VersionListResponse)
async def list_document_versions(document_id: str, reader: Reader):
    """Version history, newest first."""
    versions = await reader.list_versions(document_id)
    return VersionListResponse(versions=[VersionResponse.build(v) for v in versions])


@router.post(
    "/{document_id}/versions",
    response_model=VersionEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def snapshot_document(document_id: str, guard: Guard):
    """Record the current content as a new version (write or admin)."""
    version = await guard.create_version(document_id)
    return VersionEnvelope(version=VersionResponse.build(version))


@router.get("/{document_id}/collaborators", response_model=CollaboratorListResponse)
async def list_document_collaborators(document_id: str, reader: Reader):
    """Collaborators with their user details."""
    rows = await reader.list_collaborators(document_id)
    show_email = reader.actor_id is not None
    return CollaboratorListResponse(
        collaborators=[CollaboratorResponse.build(c, u, show_email) for c, u in rows]
    )


@router.post(
    "/{document_id}/collaborators",
    response_model=CollaboratorResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_document_collaborator(
    document_id: str, collab_data: CollaboratorCreate, guard: Guard
):
    """Add a collaborator by email (author or admin collaborator)."""
    collaborator = await guard.add_collaborator(
        document_id, collab_data.email, collab_data.permission
    )
    return CollaboratorResponse.build(collaborator)


@router.put(
    "/{document_id}/collaborators/{user_id}", response_model=CollaboratorResponse
)
async def update_document_collaborator(
    document_id: str,
    user_id: str,
    update_data: CollaboratorPermissionUpdate,
    guard: Guard,
):
    """Change a collaborator's permission (author or admin collaborator)."""
    collaborator = await guard.update_collaborator_permission(
        document_id, user_id, update_data.permission
    )
    return CollaboratorResponse.build(collaborator)


@router.delete(
    "/{document_id}/collaborators/{user_id}", response_model=SuccessResponse
)
async def remove_document_collaborator(document_id: str, user_id: str, guard: Guard):
    """Remove a collaborator. Collaborators may also remove themselves."""
    await guard.remove_collaborator(document_id, user_id)
    return SuccessResponse()
