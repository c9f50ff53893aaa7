"""Auth dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from src.core.dependencies import Store
from src.core.exceptions import AccessDeniedError, AuthenticationRequiredError
from src.modules.auth.models import UserInDB
from src.modules.auth.security import decode_access_token

# auto_error is off so anonymous requests reach routes that allow them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


async def get_optional_user(
    store: Store,
    token: str | None = Depends(oauth2_scheme),
) -> UserInDB | None:
    """Current user, or None for anonymous requests.

    A token that is present but invalid is rejected rather than treated as
    anonymous.
    """
    if token is None:
        return None

    user_id = decode_access_token(token)
    if user_id is None:
        raise AuthenticationRequiredError("Could not validate credentials")

    user = await store.get_user(user_id)
    if user is None:
        raise AuthenticationRequiredError("Could not validate credentials")
    if not user.is_active:
        raise AccessDeniedError("Inactive user")
    return user


async def get_current_user(
    user: UserInDB | None = Depends(get_optional_user),
) -> UserInDB:
    """Current user; anonymous requests are rejected with 401."""
    if user is None:
        raise AuthenticationRequiredError()
    return user


CurrentUser = Annotated[UserInDB, Depends(get_current_user)]
OptionalUser = Annotated[UserInDB | None, Depends(get_optional_user)]
