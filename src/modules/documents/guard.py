"""
Mutation guard.

Every write to a document, its collaborators, comments or versions goes
through ``MutationGuard``. Authorization is re-derived from the store right
before each mutation and never cached across requests. The check and the
write are two sequential awaits; concurrent writers are not serialized and
the last update wins.
"""

import logging
from typing import Any

from src.core.exceptions import (
    AccessDeniedError,
    InvalidInputError,
    NotFoundError,
)
from src.core.store import EntityStore
from src.modules.documents.access import AccessResolver
from src.modules.documents.models import (
    CollaboratorInDB,
    CommentInDB,
    DocumentInDB,
    DocumentVersionInDB,
    Permission,
    Visibility,
)
from src.modules.documents.sharing import parse_visibility, transition_fields

logger = logging.getLogger(__name__)


def _parse_permission(value: Any) -> Permission:
    try:
        return Permission(value)
    except ValueError:
        raise InvalidInputError("Invalid permission") from None


def _require_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise InvalidInputError(f"{field} is required")
    return value


class MutationGuard:
    """Authorizes and performs document mutations for one actor.

    Failures are distinct: ``NotFoundError`` when the target does not exist,
    ``AccessDeniedError`` when the actor lacks the permission,
    ``InvalidInputError`` for malformed values. Authentication is enforced
    by the route dependency before a guard is reached.
    """

    def __init__(self, store: EntityStore, resolver: AccessResolver, actor_id: str):
        self.store = store
        self.resolver = resolver
        self.actor_id = actor_id

    async def _load_document(self, document_id: str) -> DocumentInDB:
        document = await self.store.find_document(document_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        return document

    def _deny(self, action: str, target: str) -> AccessDeniedError:
        logger.info("Denied %s on %s for %s", action, target, self.actor_id)
        return AccessDeniedError(f"Access denied: insufficient permissions to {action}")

    async def _require_edit(self, document: DocumentInDB, action: str) -> None:
        # The resolver grants read to everyone on public documents, author
        # included; the author keeps editing rights by identity.
        if document.author_id == self.actor_id:
            return
        access = await self.resolver.resolve_for_document(document, self.actor_id)
        if not access.can_edit:
            raise self._deny(action, document.id)

    # Documents

    async def create_document(
        self,
        title: str | None,
        content: str | None,
        visibility: Any = Visibility.PRIVATE,
        password: str | None = None,
    ) -> DocumentInDB:
        """Create a document authored by the actor, whatever the client sent."""
        title = _require_text(title, "Title")
        content = _require_text(content, "Content")
        fields = transition_fields(parse_visibility(visibility), password)

        document = DocumentInDB(
            title=title, content=content, author_id=self.actor_id, **fields
        )
        document = await self.store.insert_document(document)
        logger.info("Document %s created by %s", document.id, self.actor_id)
        return document

    async def update_document(
        self,
        document_id: str,
        title: str | None = None,
        content: str | None = None,
        visibility: Any = None,
    ) -> DocumentInDB:
        """Edit title, content or visibility. Requires write or admin.

        Changing the visibility is reserved to the author, like every other
        sharing change; password protection needs a password and therefore
        goes through the share endpoint.
        """
        document = await self._load_document(document_id)
        await self._require_edit(document, "edit document")

        fields: dict[str, Any] = {}
        if title is not None:
            fields["title"] = _require_text(title, "Title")
        if content is not None:
            fields["content"] = content

        if visibility is not None:
            target = parse_visibility(visibility)
            if target != document.visibility:
                if document.author_id != self.actor_id:
                    raise self._deny("change visibility", document_id)
                if target == Visibility.PASSWORD_PROTECTED:
                    raise InvalidInputError(
                        "Use the share endpoint to password-protect a document"
                    )
                fields.update(transition_fields(target))

        updated = await self.store.update_document(document_id, fields)
        if updated is None:
            raise NotFoundError("Document", document_id)
        return updated

    async def delete_document(self, document_id: str) -> None:
        """Author only. Admin collaborators cannot delete."""
        document = await self._load_document(document_id)
        if document.author_id != self.actor_id:
            raise self._deny("delete document", document_id)

        if not await self.store.delete_document(document_id):
            raise NotFoundError("Document", document_id)
        logger.info("Document %s deleted by %s", document_id, self.actor_id)

    async def create_version(self, document_id: str) -> DocumentVersionInDB:
        """Snapshot the current content into the version history."""
        document = await self._load_document(document_id)
        await self._require_edit(document, "snapshot document")

        # The increment returns the pre-increment row, so the snapshot's
        # number and content always belong together.
        before = await self.store.bump_document_version(document_id)
        if before is None:
            raise NotFoundError("Document", document_id)

        version = DocumentVersionInDB(
            document_id=document_id,
            content=before.content,
            version_number=before.version,
            created_by=self.actor_id,
        )
        return await self.store.insert_version(version)

    # Collaborators

    async def _require_collaborator_manager(self, document_id: str) -> DocumentInDB:
        document = await self._load_document(document_id)
        if not await self.resolver.can_manage_collaborators(document, self.actor_id):
            raise self._deny("manage collaborators", document_id)
        return document

    async def add_collaborator(
        self, document_id: str, email: str, permission: Any
    ) -> CollaboratorInDB:
        permission = _parse_permission(permission)
        document = await self._require_collaborator_manager(document_id)

        user = await self.store.get_user_by_email(email)
        if user is None:
            raise NotFoundError("User")
        if user.id == document.author_id:
            raise InvalidInputError("The author is already an implicit admin")

        # Duplicate pairs are rejected by the unique index (ConflictError).
        collaborator = CollaboratorInDB(
            document_id=document_id, user_id=user.id, permission=permission
        )
        return await self.store.insert_collaborator(collaborator)

    async def update_collaborator_permission(
        self, document_id: str, user_id: str, permission: Any
    ) -> CollaboratorInDB:
        permission = _parse_permission(permission)
        await self._require_collaborator_manager(document_id)

        collaborator = await self.store.update_collaborator_permission(
            document_id, user_id, permission.value
        )
        if collaborator is None:
            raise NotFoundError("Collaborator", user_id)
        return collaborator

    async def remove_collaborator(self, document_id: str, user_id: str) -> None:
        """Managers may remove anyone; a collaborator may always leave."""
        if user_id == self.actor_id:
            await self._load_document(document_id)
        else:
            await self._require_collaborator_manager(document_id)

        if not await self.store.delete_collaborator(document_id, user_id):
            raise NotFoundError("Collaborator", user_id)

    # Comments

    async def create_comment(
        self,
        document_id: str,
        content: str | None,
        parent_comment_id: str | None = None,
        position: dict[str, Any] | None = None,
    ) -> CommentInDB:
        """Any actor who can read the document may comment on it."""
        content = _require_text(content, "Content")
        document = await self._load_document(document_id)
        access = await self.resolver.resolve_for_document(document, self.actor_id)
        if not access.can_access:
            raise self._deny("comment on document", document_id)

        if parent_comment_id is not None:
            parent = await self.store.find_comment(parent_comment_id)
            if parent is None or parent.document_id != document_id:
                raise InvalidInputError("Parent comment does not belong to document")

        comment = CommentInDB(
            document_id=document_id,
            user_id=self.actor_id,
            content=content,
            parent_comment_id=parent_comment_id,
            position=position,
        )
        return await self.store.insert_comment(comment)

    async def _load_comment(self, comment_id: str) -> CommentInDB:
        comment = await self.store.find_comment(comment_id)
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        return comment

    async def update_comment(self, comment_id: str, content: str | None) -> CommentInDB:
        """Only the comment's author may edit it."""
        content = _require_text(content, "Content")
        comment = await self._load_comment(comment_id)
        if comment.user_id != self.actor_id:
            raise self._deny("edit comment", comment_id)

        updated = await self.store.update_comment(comment_id, content)
        if updated is None:
            raise NotFoundError("Comment", comment_id)
        return updated

    async def delete_comment(self, comment_id: str) -> None:
        """The comment's author, or the document's author as moderator."""
        comment = await self._load_comment(comment_id)
        if comment.user_id != self.actor_id:
            document = await self.store.find_document(comment.document_id)
            if document is None or document.author_id != self.actor_id:
                raise self._deny("delete comment", comment_id)

        if not await self.store.delete_comment(comment_id):
            raise NotFoundError("Comment", comment_id)
