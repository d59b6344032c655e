"""User document model for authentication and role checks."""

import enum
from datetime import datetime
from typing import Optional

from beanie import Document, Indexed
from pydantic import Field

from winehub.models.common import utcnow


class UserRole(str, enum.Enum):
    """Role determining mutation rights."""

    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class User(Document):
    """User document model.

    Fields:
    - email: unique login, stored lowercase
    - hashed_password: Argon2 hash
    - first_name, last_name: display name
    - role: admin, editor or viewer
    - is_active: inactive accounts cannot authenticate
    """

    email: Indexed(str, unique=True)
    hashed_password: str
    first_name: str = ""
    last_name: str = ""
    role: UserRole = UserRole.VIEWER
    is_active: bool = True

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    last_login: Optional[datetime] = None

    class Settings:
        name = "users"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"
