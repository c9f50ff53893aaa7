"""
Sharing policy: visibility transitions and their secrets.

Every change of a document's visibility goes through ``transition_fields``
so that ``password_hash`` and ``access_token`` always match the visibility:

==================  =============  ============
visibility          password_hash  access_token
==================  =============  ============
private             absent         absent
public              absent         absent
link_only           absent         fresh token
password_protected  bcrypt hash    fresh token
==================  =============  ============

Tokens are regenerated on every transition into a token-bearing mode, even
when the mode does not change, which closes previously distributed links.
"""

import logging
import secrets
from typing import Any

from src.core.config import settings
from src.core.exceptions import AccessDeniedError, InvalidInputError, NotFoundError
from src.core.store import EntityStore
from src.modules.auth.security import pwd_context
from src.modules.documents.models import DocumentInDB, Visibility

logger = logging.getLogger(__name__)

ACCESS_TOKEN_BYTES = 32


def parse_visibility(value: Any) -> Visibility:
    """Validate a client supplied visibility value."""
    try:
        return Visibility(value)
    except ValueError:
        raise InvalidInputError("Invalid visibility setting") from None


def generate_access_token() -> str:
    return secrets.token_urlsafe(ACCESS_TOKEN_BYTES)


def hash_share_password(password: str | None) -> str:
    """Hash a share password, enforcing the minimum length after trimming."""
    password = (password or "").strip()
    if len(password) < settings.SHARE_PASSWORD_MIN_LENGTH:
        raise InvalidInputError(
            f"Password must be at least {settings.SHARE_PASSWORD_MIN_LENGTH} "
            "characters long"
        )
    return pwd_context.hash(password)


def verify_share_password(document: DocumentInDB, password: str) -> bool:
    if document.visibility != Visibility.PASSWORD_PROTECTED or not document.password_hash:
        return False
    return pwd_context.verify(password.strip(), document.password_hash)


def transition_fields(
    visibility: Visibility, password: str | None = None
) -> dict[str, Any]:
    """Fields to persist when moving a document to ``visibility``."""
    fields: dict[str, Any] = {
        "visibility": visibility.value,
        "password_hash": None,
        "access_token": None,
    }
    if visibility == Visibility.PASSWORD_PROTECTED:
        fields["password_hash"] = hash_share_password(password)
    if visibility.carries_token:
        fields["access_token"] = generate_access_token()
    return fields


class SharingPolicy:
    """Applies sharing-mode changes. Only the author may change them."""

    def __init__(self, store: EntityStore):
        self.store = store

    async def apply_sharing(
        self,
        actor_id: str,
        document_id: str,
        requested_visibility: Any,
        password: str | None = None,
    ) -> DocumentInDB:
        # Rejected before any store access.
        visibility = parse_visibility(requested_visibility)

        document = await self.store.find_document(document_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        if document.author_id != actor_id:
            logger.info(
                "Sharing change on %s refused for non-author %s", document_id, actor_id
            )
            raise AccessDeniedError("Only the author can change sharing settings")

        fields = transition_fields(visibility, password)
        updated = await self.store.update_document(document_id, fields)
        if updated is None:
            # Deleted between the check and the write.
            raise NotFoundError("Document", document_id)

        logger.info(
            "Document %s visibility %s -> %s",
            document_id,
            document.visibility,
            visibility.value,
        )
        return updated
