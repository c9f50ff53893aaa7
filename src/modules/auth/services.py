"""Auth services - account provisioning and credential checks."""

import logging

from src.core.exceptions import ConflictError, NotFoundError
from src.core.store import EntityStore
from src.modules.auth.models import UserInDB
from src.modules.auth.schemas import UserCreate, UserUpdate
from src.modules.auth.security import hash_password, verify_password

logger = logging.getLogger(__name__)


async def register_user(store: EntityStore, user_data: UserCreate) -> UserInDB:
    """Provision a new account."""
    if await store.get_user_by_email(user_data.email):
        raise ConflictError("Email already registered")

    user = UserInDB(
        email=user_data.email,
        name=user_data.name,
        hashed_password=hash_password(user_data.password),
    )
    # The unique email index still guards against a concurrent registration.
    user = await store.insert_user(user)
    logger.info("Provisioned user %s", user.id)
    return user


async def authenticate_user(
    store: EntityStore, email: str, password: str
) -> UserInDB | None:
    """Authenticate user by email and password."""
    user = await store.get_user_by_email(email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    if not user.is_active:
        return None
    return user


async def update_profile(
    store: EntityStore, user: UserInDB, user_update: UserUpdate
) -> UserInDB:
    update_data = user_update.model_dump(exclude_none=True)
    if not update_data:
        return user

    updated = await store.update_user(user.id, update_data)
    if updated is None:
        raise NotFoundError("User", user.id)
    return updated


async def delete_account(store: EntityStore, user: UserInDB) -> None:
    """Remove the account with its documents, grants, comments and versions."""
    if not await store.delete_user(user.id):
        raise NotFoundError("User", user.id)
    logger.info("Deleted user %s", user.id)
