"""
Entity store adapter.

Typed async access to users, documents, collaborators, comments and document
versions. No business rules live here: callers decide who may do what, the
store only reads and writes. Cascades that a relational schema would express
as ``ON DELETE CASCADE`` are performed explicitly.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from src.core.exceptions import ConflictError, StoreFailureError
from src.core.models import utcnow
from src.modules.auth.models import UserInDB
from src.modules.documents.models import (
    CollaboratorInDB,
    CommentInDB,
    DocumentInDB,
    DocumentVersionInDB,
)

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
DOCUMENTS_COLLECTION = "documents"
COLLABORATORS_COLLECTION = "document_collaborators"
COMMENTS_COLLECTION = "comments"
VERSIONS_COLLECTION = "document_versions"


def _object_id(value: str) -> ObjectId | None:
    return ObjectId(value) if ObjectId.is_valid(value) else None


class EntityStore:
    """CRUD and queries over the application collections.

    One instance is built per request from the injected database handle.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self._users = db[USERS_COLLECTION]
        self._documents = db[DOCUMENTS_COLLECTION]
        self._collaborators = db[COLLABORATORS_COLLECTION]
        self._comments = db[COMMENTS_COLLECTION]
        self._versions = db[VERSIONS_COLLECTION]

    @asynccontextmanager
    async def _operation(self, name: str) -> AsyncIterator[None]:
        """Translate driver errors into application errors."""
        try:
            yield
        except DuplicateKeyError as exc:
            logger.info("Duplicate key during %s", name)
            raise ConflictError() from exc
        except PyMongoError as exc:
            logger.exception("Store failure during %s", name)
            raise StoreFailureError() from exc

    async def ensure_indexes(self) -> None:
        """Create the indexes that back uniqueness and common lookups."""
        async with self._operation("ensure_indexes"):
            await self._users.create_index("email", unique=True)
            await self._documents.create_index("author_id")
            await self._documents.create_index(
                [("visibility", ASCENDING), ("updated_at", DESCENDING)]
            )
            await self._collaborators.create_index(
                [("document_id", ASCENDING), ("user_id", ASCENDING)], unique=True
            )
            await self._collaborators.create_index("user_id")
            await self._comments.create_index(
                [("document_id", ASCENDING), ("created_at", ASCENDING)]
            )
            await self._comments.create_index("parent_comment_id")
            await self._versions.create_index(
                [("document_id", ASCENDING), ("version_number", DESCENDING)]
            )

    # Users

    async def insert_user(self, user: UserInDB) -> UserInDB:
        async with self._operation("insert_user"):
            result = await self._users.insert_one(user.to_mongo())
        user.id = str(result.inserted_id)
        return user

    async def get_user(self, user_id: str) -> UserInDB | None:
        oid = _object_id(user_id)
        if oid is None:
            return None
        async with self._operation("get_user"):
            doc = await self._users.find_one({"_id": oid})
        return UserInDB.from_mongo(doc)

    async def get_user_by_email(self, email: str) -> UserInDB | None:
        async with self._operation("get_user_by_email"):
            doc = await self._users.find_one({"email": email})
        return UserInDB.from_mongo(doc)

    async def get_users_by_ids(self, user_ids: list[str]) -> list[UserInDB]:
        """Fetch several users in one query."""
        oids = [oid for oid in map(_object_id, user_ids) if oid is not None]
        if not oids:
            return []
        async with self._operation("get_users_by_ids"):
            docs = await self._users.find({"_id": {"$in": oids}}).to_list(None)
        return [UserInDB.from_mongo(d) for d in docs]

    async def update_user(self, user_id: str, fields: dict[str, Any]) -> UserInDB | None:
        oid = _object_id(user_id)
        if oid is None:
            return None
        async with self._operation("update_user"):
            doc = await self._users.find_one_and_update(
                {"_id": oid},
                {"$set": {**fields, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        return UserInDB.from_mongo(doc)

    async def delete_user(self, user_id: str) -> bool:
        """Delete a user and everything that references them.

        The user row goes last so that a retry after a failure part way
        through finishes the cascade.
        """
        oid = _object_id(user_id)
        if oid is None:
            return False
        async with self._operation("delete_user"):
            if not await self._users.find_one({"_id": oid}, {"_id": 1}):
                return False

            authored = await self._documents.find(
                {"author_id": user_id}, {"_id": 1}
            ).to_list(None)
            for doc in authored:
                await self.delete_document(str(doc["_id"]))

            await self._collaborators.delete_many({"user_id": user_id})
            own_comments = await self._comments.find(
                {"user_id": user_id}, {"_id": 1}
            ).to_list(None)
            await self._delete_comment_trees([str(c["_id"]) for c in own_comments])
            await self._versions.delete_many({"created_by": user_id})
            await self._users.delete_one({"_id": oid})
        return True

    # Documents

    async def insert_document(self, document: DocumentInDB) -> DocumentInDB:
        async with self._operation("insert_document"):
            result = await self._documents.insert_one(document.to_mongo())
        document.id = str(result.inserted_id)
        return document

    async def find_document(self, document_id: str) -> DocumentInDB | None:
        """Plain lookup by id; no access checks."""
        oid = _object_id(document_id)
        if oid is None:
            return None
        async with self._operation("find_document"):
            doc = await self._documents.find_one({"_id": oid})
        return DocumentInDB.from_mongo(doc)

    async def list_documents_by_author(self, author_id: str) -> list[DocumentInDB]:
        async with self._operation("list_documents_by_author"):
            cursor = self._documents.find(
                {"author_id": author_id}, sort=[("updated_at", DESCENDING)]
            )
            docs = await cursor.to_list(None)
        return [DocumentInDB.from_mongo(d) for d in docs]

    async def list_public_documents(self, limit: int) -> list[DocumentInDB]:
        async with self._operation("list_public_documents"):
            cursor = self._documents.find(
                {"visibility": "public"},
                sort=[("updated_at", DESCENDING)],
                limit=limit,
            )
            docs = await cursor.to_list(None)
        return [DocumentInDB.from_mongo(d) for d in docs]

    async def update_document(
        self, document_id: str, fields: dict[str, Any]
    ) -> DocumentInDB | None:
        """Set ``fields`` and refresh ``updated_at``. Last writer wins."""
        oid = _object_id(document_id)
        if oid is None:
            return None
        async with self._operation("update_document"):
            doc = await self._documents.find_one_and_update(
                {"_id": oid},
                {"$set": {**fields, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        return DocumentInDB.from_mongo(doc)

    async def bump_document_version(self, document_id: str) -> DocumentInDB | None:
        """Atomically increment ``version``; returns the document as it was."""
        oid = _object_id(document_id)
        if oid is None:
            return None
        async with self._operation("bump_document_version"):
            doc = await self._documents.find_one_and_update(
                {"_id": oid},
                {"$inc": {"version": 1}},
                return_document=ReturnDocument.BEFORE,
            )
        return DocumentInDB.from_mongo(doc)

    async def delete_document(self, document_id: str) -> bool:
        """Delete a document with its collaborators, comments and versions.

        Dependants are removed before the document itself, so a retry after a
        failure part way through finishes the cascade.
        """
        oid = _object_id(document_id)
        if oid is None:
            return False
        async with self._operation("delete_document"):
            if not await self._documents.find_one({"_id": oid}, {"_id": 1}):
                return False
            await self._collaborators.delete_many({"document_id": document_id})
            await self._comments.delete_many({"document_id": document_id})
            await self._versions.delete_many({"document_id": document_id})
            await self._documents.delete_one({"_id": oid})
        return True

    # Collaborators

    async def find_collaborator(
        self, document_id: str, user_id: str
    ) -> CollaboratorInDB | None:
        async with self._operation("find_collaborator"):
            doc = await self._collaborators.find_one(
                {"document_id": document_id, "user_id": user_id}
            )
        return CollaboratorInDB.from_mongo(doc)

    async def list_collaborators(self, document_id: str) -> list[CollaboratorInDB]:
        async with self._operation("list_collaborators"):
            cursor = self._collaborators.find(
                {"document_id": document_id}, sort=[("created_at", ASCENDING)]
            )
            docs = await cursor.to_list(None)
        return [CollaboratorInDB.from_mongo(d) for d in docs]

    async def insert_collaborator(
        self, collaborator: CollaboratorInDB
    ) -> CollaboratorInDB:
        """Insert a grant; a second grant for the same pair is a ConflictError."""
        async with self._operation("insert_collaborator"):
            result = await self._collaborators.insert_one(collaborator.to_mongo())
        collaborator.id = str(result.inserted_id)
        return collaborator

    async def update_collaborator_permission(
        self, document_id: str, user_id: str, permission: str
    ) -> CollaboratorInDB | None:
        async with self._operation("update_collaborator_permission"):
            doc = await self._collaborators.find_one_and_update(
                {"document_id": document_id, "user_id": user_id},
                {"$set": {"permission": permission}},
                return_document=ReturnDocument.AFTER,
            )
        return CollaboratorInDB.from_mongo(doc)

    async def delete_collaborator(self, document_id: str, user_id: str) -> bool:
        async with self._operation("delete_collaborator"):
            result = await self._collaborators.delete_one(
                {"document_id": document_id, "user_id": user_id}
            )
        return result.deleted_count > 0

    # Comments

    async def insert_comment(self, comment: CommentInDB) -> CommentInDB:
        async with self._operation("insert_comment"):
            result = await self._comments.insert_one(comment.to_mongo())
        comment.id = str(result.inserted_id)
        return comment

    async def find_comment(self, comment_id: str) -> CommentInDB | None:
        oid = _object_id(comment_id)
        if oid is None:
            return None
        async with self._operation("find_comment"):
            doc = await self._comments.find_one({"_id": oid})
        return CommentInDB.from_mongo(doc)

    async def list_comments(self, document_id: str) -> list[CommentInDB]:
        async with self._operation("list_comments"):
            cursor = self._comments.find(
                {"document_id": document_id}, sort=[("created_at", ASCENDING)]
            )
            docs = await cursor.to_list(None)
        return [CommentInDB.from_mongo(d) for d in docs]

    async def update_comment(self, comment_id: str, content: str) -> CommentInDB | None:
        oid = _object_id(comment_id)
        if oid is None:
            return None
        async with self._operation("update_comment"):
            doc = await self._comments.find_one_and_update(
                {"_id": oid},
                {"$set": {"content": content, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        return CommentInDB.from_mongo(doc)

    async def delete_comment(self, comment_id: str) -> bool:
        """Delete a comment and every reply beneath it."""
        oid = _object_id(comment_id)
        if oid is None:
            return False
        async with self._operation("delete_comment"):
            if not await self._comments.find_one({"_id": oid}, {"_id": 1}):
                return False
            await self._delete_comment_trees([comment_id])
        return True

    async def _delete_comment_trees(self, root_ids: list[str]) -> None:
        # Deepest replies first; the roots go last.
        levels = []
        frontier = root_ids
        while frontier:
            levels.append(frontier)
            replies = await self._comments.find(
                {"parent_comment_id": {"$in": frontier}}, {"_id": 1}
            ).to_list(None)
            frontier = [str(r["_id"]) for r in replies]

        for level in reversed(levels):
            await self._comments.delete_many(
                {"_id": {"$in": [ObjectId(i) for i in level]}}
            )

    # Versions

    async def insert_version(self, version: DocumentVersionInDB) -> DocumentVersionInDB:
        async with self._operation("insert_version"):
            result = await self._versions.insert_one(version.to_mongo())
        version.id = str(result.inserted_id)
        return version

    async def list_versions(self, document_id: str) -> list[DocumentVersionInDB]:
        async with self._operation("list_versions"):
            cursor = self._versions.find(
                {"document_id": document_id}, sort=[("version_number", DESCENDING)]
            )
            docs = await cursor.to_list(None)
        return [DocumentVersionInDB.from_mongo(d) for d in docs]
