"""Pydantic schemas for authentication and user management."""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from winehub.models import UserRole
from winehub.schemas.common import APIModel, NonEmptyStr, ObjectIdStr


class UserRead(APIModel):
    """User as returned by the API. Never includes the password hash."""

    id: ObjectIdStr
    email: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None


class LoginRequest(APIModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(APIModel):
    """Schema for creating a user.

    The role is honoured only when an admin registers the user.
    """

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    first_name: NonEmptyStr
    last_name: NonEmptyStr
    role: UserRole = UserRole.VIEWER


class ProfileUpdate(APIModel):
    """Fields a user may change on their own account."""

    first_name: Optional[NonEmptyStr] = None
    last_name: Optional[NonEmptyStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)


class UserAdminUpdate(APIModel):
    """Fields an admin may change on any account."""

    first_name: Optional[NonEmptyStr] = None
    last_name: Optional[NonEmptyStr] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class AuthResponse(APIModel):
    """Login/registration envelope carrying the bearer token."""

    success: bool = True
    token: str
    data: UserRead
