"""Authentication service for password hashing, JWT tokens and user lookup."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Annotated

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pwdlib import PasswordHash
from pwdlib.hashers.argon2 import Argon2Hasher

from winehub.config import settings
from winehub.models.user import User, UserRole

security_logger = logging.getLogger("winehub.security")

password_hash = PasswordHash((Argon2Hasher(),))

# Bearer token scheme; missing credentials are handled by require_auth
bearer_scheme = HTTPBearer(auto_error=False)

ALGORITHM = "HS256"


def verify_password(password: str, stored_hash: str) -> bool:
    return password_hash.verify(password, stored_hash)


def get_password_hash(password: str) -> str:
    """Argon2 hash for storing in ``User.hashed_password``."""
    return password_hash.hash(password)


def create_access_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token for the given user id."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.token_lifetime_minutes)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"sub": user_id, "exp": expire, "jti": str(uuid.uuid4())}
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


async def get_user_by_email(email: str) -> User | None:
    """Get a user by email (case-insensitive, emails are stored lowercase)."""
    return await User.find_one(User.email == email.strip().lower())


def _reject_login(reason: str, who: str, ip_address: str | None) -> None:
    security_logger.warning("Login rejected (%s): %s, ip=%s", reason, who, ip_address or "-")


async def authenticate_user(
    email: str,
    password: str,
    ip_address: str | None = None,
) -> User | None:
    """Check an email/password pair and return the matching active user.

    Unknown emails, wrong passwords and deactivated accounts all return
    None; the caller answers each with the same 401.
    """
    user = await get_user_by_email(email)
    if user is None:
        _reject_login("unknown email", f"email={email}", ip_address)
        return None
    if not verify_password(password, user.hashed_password):
        _reject_login("bad password", f"user_id={user.id}", ip_address)
        return None
    if not user.is_active:
        _reject_login("inactive", f"user_id={user.id}", ip_address)
        return None

    security_logger.info("Login accepted: user_id=%s, ip=%s", user.id, ip_address or "-")
    return user


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> User | None:
    """Get the current user from the bearer token, or None."""
    if credentials is None:
        return None

    try:
        payload = jwt.decode(credentials.credentials, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None

    subject: str | None = payload.get("sub")
    if subject is None:
        return None

    try:
        user = await User.get(PydanticObjectId(subject))
    except InvalidId:
        return None

    if user is None or not user.is_active:
        return None

    return user


async def require_auth(
    user: Annotated[User | None, Depends(get_current_user)],
) -> User:
    """The signed-in user, or 401 when the token is missing or unusable."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no valid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(
    user: Annotated[User, Depends(require_auth)],
) -> User:
    """The signed-in user when they are an admin, otherwise 403."""
    if user.role != UserRole.ADMIN:
        security_logger.warning("Admin route denied: user_id=%s, role=%s", user.id, user.role.value)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return user


# Route parameter annotations
CurrentUser = Annotated[User | None, Depends(get_current_user)]
RequireAuth = Annotated[User, Depends(require_auth)]
RequireAdmin = Annotated[User, Depends(require_admin)]
