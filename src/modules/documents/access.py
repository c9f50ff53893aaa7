"""
Access resolution for documents.

Computes the effective permission an actor holds on a document. The resolver
reads the store directly and never goes through ``DocumentReader``: the
reader calls into the resolver, so the reverse call would recurse.
"""

from dataclasses import dataclass

from src.core.store import EntityStore
from src.modules.documents.models import (
    EDIT_PERMISSIONS,
    DocumentInDB,
    Permission,
    Visibility,
)


@dataclass(frozen=True)
class AccessResult:
    can_access: bool
    permission: Permission | None = None

    @property
    def can_edit(self) -> bool:
        return self.can_access and self.permission in EDIT_PERMISSIONS


NO_ACCESS = AccessResult(can_access=False)
PUBLIC_READ = AccessResult(can_access=True, permission=Permission.READ)


class AccessResolver:
    """Resolves ``(document, actor)`` pairs to a permission level."""

    def __init__(self, store: EntityStore):
        self.store = store

    async def resolve_access(
        self, document_id: str, actor_id: str | None
    ) -> AccessResult:
        """Effective permission of ``actor_id`` on ``document_id``.

        Ordered, first match wins:

        1. missing document: no access, indistinguishable from a denial
        2. public document: read, for any actor including anonymous
        3. anonymous actor: no access
        4. author: admin
        5. collaborator: the stored permission, otherwise no access

        link_only and password_protected do not open the document to
        authenticated strangers; only the token-bearing link flow does.
        Powers that belong to the author whatever the visibility (editing,
        deleting, sharing, managing collaborators) are checked by identity
        in ``MutationGuard``, not derived from this result.
        """
        document = await self.store.find_document(document_id)
        if document is None:
            return NO_ACCESS
        return await self.resolve_for_document(document, actor_id)

    async def resolve_for_document(
        self, document: DocumentInDB, actor_id: str | None
    ) -> AccessResult:
        """Same rules as ``resolve_access`` for an already loaded document."""
        if document.visibility == Visibility.PUBLIC:
            return PUBLIC_READ
        if actor_id is None:
            return NO_ACCESS

        # The author outranks any collaborator row they might also hold.
        if document.author_id == actor_id:
            return AccessResult(can_access=True, permission=Permission.ADMIN)

        collaborator = await self.store.find_collaborator(document.id, actor_id)
        if collaborator is None:
            return NO_ACCESS
        return AccessResult(
            can_access=True, permission=Permission(collaborator.permission)
        )

    async def can_edit(self, document_id: str, actor_id: str | None) -> bool:
        if actor_id is None:
            return False
        return (await self.resolve_access(document_id, actor_id)).can_edit

    async def can_manage_collaborators(
        self, document: DocumentInDB, actor_id: str
    ) -> bool:
        """Author or admin collaborator, whatever the visibility."""
        if document.author_id == actor_id:
            return True
        collaborator = await self.store.find_collaborator(document.id, actor_id)
        return collaborator is not None and collaborator.permission == Permission.ADMIN
