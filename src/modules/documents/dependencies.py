"""Dependencies for the documents module.

Resolver, guard, reader and sharing policy are built per request around the
request's store, so nothing they remember outlives the request.
"""

from typing import Annotated

from fastapi import Depends

from src.core.dependencies import Store
from src.modules.auth.dependencies import CurrentUser, OptionalUser
from src.modules.documents.access import AccessResolver
from src.modules.documents.guard import MutationGuard
from src.modules.documents.services import DocumentReader
from src.modules.documents.sharing import SharingPolicy


async def get_resolver(store: Store) -> AccessResolver:
    return AccessResolver(store)


Resolver = Annotated[AccessResolver, Depends(get_resolver)]


async def get_reader(
    store: Store, resolver: Resolver, user: OptionalUser
) -> DocumentReader:
    """Reader for the current actor; anonymous requests are allowed."""
    return DocumentReader(store, resolver, user.id if user else None)


async def get_guard(
    store: Store, resolver: Resolver, user: CurrentUser
) -> MutationGuard:
    """Guard for the current actor; anonymous requests get 401."""
    return MutationGuard(store, resolver, user.id)


async def get_sharing_policy(store: Store, _user: CurrentUser) -> SharingPolicy:
    return SharingPolicy(store)


Reader = Annotated[DocumentReader, Depends(get_reader)]
Guard = Annotated[MutationGuard, Depends(get_guard)]
Sharing = Annotated[SharingPolicy, Depends(get_sharing_policy)]
