"""Authentication and user management endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pymongo.errors import DuplicateKeyError
from slowapi import Limiter
from slowapi.util import get_remote_address

from winehub.config import settings
from winehub.models import User, UserRole
from winehub.models.common import utcnow
from winehub.schemas import (
    AuthResponse,
    DataResponse,
    LoginRequest,
    MessageResponse,
    ProfileUpdate,
    RegisterRequest,
    UserAdminUpdate,
    UserRead,
)
from winehub.services.auth import (
    CurrentUser,
    RequireAdmin,
    RequireAuth,
    authenticate_user,
    create_access_token,
    get_password_hash,
    get_user_by_email,
)
from winehub.services.policy import Action, ResourceKind, require_permission

from ._common import parse_object_id

router = APIRouter()


def default_rate_limit() -> str:
    return f"{settings.rate_limit_per_minute}/minute"


# Shared with the app: a per-IP default for every route, tighter on login/register
limiter = Limiter(key_func=get_remote_address, default_limits=[default_rate_limit])

security_logger = logging.getLogger("winehub.security")

CanUpdateUser = Annotated[User, Depends(require_permission(Action.UPDATE, ResourceKind.USER))]
CanDeleteUser = Annotated[User, Depends(require_permission(Action.DELETE, ResourceKind.USER))]


def auth_rate_limit() -> str:
    return f"{settings.auth_rate_limit_per_minute}/minute"


def token_response(user: User) -> dict:
    return {
        "success": True,
        "token": create_access_token(str(user.id)),
        "data": UserRead.model_validate(user),
    }


@router.post("/login", response_model=AuthResponse)
@limiter.limit(auth_rate_limit)
async def login(
    request: Request,  # Required for rate limiting
    credentials: LoginRequest,
) -> dict:
    """Exchange email and password for a bearer token."""
    user = await authenticate_user(
        credentials.email,
        credentials.password,
        ip_address=get_remote_address(request),
    )
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    user.last_login = utcnow()
    await user.save()

    return token_response(user)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(auth_rate_limit)
async def register(
    request: Request,  # Required for rate limiting
    body: RegisterRequest,
    current_user: CurrentUser,
) -> dict:
    """Create a user account.

    Admins may create users with any role. Everyone else gets a viewer
    account, and only while self-registration is enabled.
    """
    if current_user is not None and current_user.role == UserRole.ADMIN:
        role = body.role
    elif settings.registration_enabled:
        role = UserRole.VIEWER
    else:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Registration is disabled",
        )

    email = body.email.strip().lower()
    if await get_user_by_email(email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists",
        )

    user = User(
        email=email,
        hashed_password=get_password_hash(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
        role=role,
    )
    try:
        await user.insert()
    except DuplicateKeyError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists",
        )

    security_logger.info(
        "User registered: user_id=%s, role=%s, by=%s, ip=%s",
        user.id,
        role.value,
        current_user.id if current_user else "self",
        get_remote_address(request),
    )
    return token_response(user)


@router.get("/me", response_model=DataResponse[UserRead])
async def get_me(current_user: RequireAuth) -> dict:
    """Get the current authenticated user's information."""
    return {"success": True, "data": UserRead.model_validate(current_user)}


@router.put("/me", response_model=DataResponse[UserRead])
async def update_me(
    body: ProfileUpdate,
    current_user: RequireAuth,
) -> dict:
    """Update the current user's name or password."""
    if body.first_name is not None:
        current_user.first_name = body.first_name
    if body.last_name is not None:
        current_user.last_name = body.last_name
    if body.password is not None:
        current_user.hashed_password = get_password_hash(body.password)
        security_logger.info("Password changed: user_id=%s", current_user.id)

    current_user.updated_at = utcnow()
    await current_user.save()

    return {"success": True, "data": UserRead.model_validate(current_user)}


@router.get("/users", response_model=DataResponse[list[UserRead]])
async def list_users(current_user: RequireAdmin) -> dict:
    """List all users (admin only)."""
    users = await User.find_all().sort(-User.created_at).to_list()
    return {"success": True, "data": [UserRead.model_validate(u) for u in users]}


async def _get_user_or_404(user_id: str) -> User:
    user = await User.get(parse_object_id(user_id, "User"))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


@router.put("/users/{user_id}", response_model=DataResponse[UserRead])
async def update_user(
    user_id: str,
    body: UserAdminUpdate,
    current_user: CanUpdateUser,
) -> dict:
    """Change another user's role, status or name (admin only)."""
    user = await _get_user_or_404(user_id)

    for field, value in body.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, field, value)
    user.updated_at = utcnow()
    await user.save()

    security_logger.info(
        "User updated: user_id=%s, role=%s, active=%s, by=%s",
        user.id, user.role.value, user.is_active, current_user.id,
    )
    return {"success": True, "data": UserRead.model_validate(user)}


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    current_user: CanDeleteUser,
) -> dict:
    """Delete a user (admin only). Admins cannot delete themselves."""
    user = await _get_user_or_404(user_id)

    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )

    await user.delete()
    security_logger.info("User deleted: user_id=%s, by=%s", user.id, current_user.id)
    return {"success": True, "message": "User deleted successfully"}
