"""Auth router - API endpoints."""

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm

from src.core.dependencies import Store
from src.core.exceptions import AuthenticationRequiredError
from src.modules.auth.dependencies import CurrentUser
from src.modules.auth.schemas import Token, UserCreate, UserResponse, UserUpdate
from src.modules.auth.security import create_access_token
from src.modules.auth.services import (
    authenticate_user,
    delete_account,
    register_user,
    update_profile,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED
)
async def register(user_data: UserCreate, store: Store) -> UserResponse:
    """Provision a new account."""
    user = await register_user(store, user_data)
    return UserResponse(**user.model_dump())


@router.post("/login", response_model=Token)
async def login(
    store: Store,
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> Token:
    """Login and get access token.

    Uses OAuth2 password flow (username field contains email).
    """
    user = await authenticate_user(store, form_data.username, form_data.password)
    if not user:
        raise AuthenticationRequiredError("Incorrect email or password")

    return Token(access_token=create_access_token(subject=user.id))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser) -> UserResponse:
    """Get current authenticated user."""
    return UserResponse(**current_user.model_dump())


@router.patch("/me", response_model=UserResponse)
async def update_me(
    user_update: UserUpdate, store: Store, current_user: CurrentUser
) -> UserResponse:
    """Update current user's profile."""
    updated_user = await update_profile(store, current_user, user_update)
    return UserResponse(**updated_user.model_dump())


@router.delete("/me")
async def delete_me(store: Store, current_user: CurrentUser) -> dict:
    """Delete the account and everything it owns."""
    await delete_account(store, current_user)
    return {"success": True}
