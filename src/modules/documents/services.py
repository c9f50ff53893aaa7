"""Document services - read paths."""

import logging

from src.core.exceptions import AuthenticationRequiredError, NotFoundError
from src.core.store import EntityStore
from src.modules.auth.models import UserInDB
from src.modules.documents.access import AccessResolver, AccessResult
from src.modules.documents.models import (
    CollaboratorInDB,
    CommentInDB,
    DocumentInDB,
    DocumentVersionInDB,
)

logger = logging.getLogger(__name__)


class DocumentReader:
    """Read access to documents on behalf of one actor within one request.

    Document lookups are memoized for the lifetime of the instance, which is
    a single request. Denied and missing documents both raise
    ``NotFoundError`` so callers cannot probe for private documents.
    """

    def __init__(
        self, store: EntityStore, resolver: AccessResolver, actor_id: str | None
    ):
        self.store = store
        self.resolver = resolver
        self.actor_id = actor_id
        self._memo: dict[str, DocumentInDB | None] = {}

    async def _lookup(self, document_id: str) -> DocumentInDB | None:
        if document_id not in self._memo:
            self._memo[document_id] = await self.store.find_document(document_id)
        return self._memo[document_id]

    async def get_document_with_access(
        self, document_id: str
    ) -> tuple[DocumentInDB, AccessResult]:
        document = await self._lookup(document_id)
        if document is None:
            raise NotFoundError("Document", document_id)

        access = await self.resolver.resolve_for_document(document, self.actor_id)
        if not access.can_access:
            logger.info("Read of %s denied for %s", document_id, self.actor_id)
            raise NotFoundError("Document", document_id)
        return document, access

    async def get_document(self, document_id: str) -> DocumentInDB:
        document, _ = await self.get_document_with_access(document_id)
        return document

    async def list_own_documents(self) -> list[DocumentInDB]:
        """The actor's own documents, most recently updated first."""
        if self.actor_id is None:
            raise AuthenticationRequiredError()
        return await self.store.list_documents_by_author(self.actor_id)

    async def list_public_documents(self, limit: int) -> list[DocumentInDB]:
        return await self.store.list_public_documents(limit)

    async def list_collaborators(
        self, document_id: str
    ) -> list[tuple[CollaboratorInDB, UserInDB | None]]:
        await self.get_document(document_id)
        collaborators = await self.store.list_collaborators(document_id)
        users = await self._users_by_id([c.user_id for c in collaborators])
        return [(c, users.get(c.user_id)) for c in collaborators]

    async def list_comments(
        self, document_id: str
    ) -> list[tuple[CommentInDB, UserInDB | None]]:
        """Comments oldest first, each with its author."""
        await self.get_document(document_id)
        comments = await self.store.list_comments(document_id)
        users = await self._users_by_id([c.user_id for c in comments])
        return [(c, users.get(c.user_id)) for c in comments]

    async def list_versions(self, document_id: str) -> list[DocumentVersionInDB]:
        await self.get_document(document_id)
        return await self.store.list_versions(document_id)

    async def _users_by_id(self, user_ids: list[str]) -> dict[str, UserInDB]:
        """Fetch user details in bulk to avoid N+1 queries."""
        users = await self.store.get_users_by_ids(list(set(user_ids)))
        return {u.id: u for u in users}
