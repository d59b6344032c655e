"""Authorization policy for catalog mutations.

Every mutation route asks this module whether a subject may perform an
action on a kind of resource, optionally on a loaded resource. Viewers only
read, editors create and change what they created, admins do anything.
Deleting a winery and managing users are reserved for admins.
"""

import enum
import logging
from typing import Awaitable, Callable, Protocol

from beanie import PydanticObjectId
from fastapi import HTTPException, status

from winehub.models.user import User, UserRole
from winehub.services.auth import RequireAuth

security_logger = logging.getLogger("winehub.security")


class Action(str, enum.Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ResourceKind(str, enum.Enum):
    WINERY = "winery"
    WINE = "wine"
    VINTAGE = "vintage"
    UPLOAD = "upload"
    USER = "user"


class OwnedResource(Protocol):
    created_by: PydanticObjectId | None


# (kind, action) pairs no role below admin may perform
ADMIN_ONLY: set[tuple[ResourceKind, Action]] = {
    (ResourceKind.WINERY, Action.DELETE),
    (ResourceKind.USER, Action.CREATE),
    (ResourceKind.USER, Action.UPDATE),
    (ResourceKind.USER, Action.DELETE),
}

WRITE_ROLES = {UserRole.ADMIN, UserRole.EDITOR}


def is_allowed(
    subject: User | None,
    action: Action,
    kind: ResourceKind,
    resource: OwnedResource | None = None,
) -> bool:
    """Decide whether subject may perform action on kind.

    Without a resource the answer covers the role alone, so a route can be
    gated before the document is loaded. With a resource, update and delete
    additionally require the subject to own it unless they are an admin.
    """
    if action == Action.READ:
        return True

    if subject is None or not subject.is_active:
        return False

    if subject.role == UserRole.ADMIN:
        return True

    if (kind, action) in ADMIN_ONLY:
        return False

    if subject.role not in WRITE_ROLES:
        return False

    if action == Action.CREATE or resource is None:
        return True

    return resource.created_by is not None and resource.created_by == subject.id


def authorize(
    subject: User | None,
    action: Action,
    kind: ResourceKind,
    resource: OwnedResource | None = None,
) -> None:
    """Raise 403 unless is_allowed() grants the action."""
    if is_allowed(subject, action, kind, resource):
        return

    security_logger.warning(
        "Forbidden: user_id=%s, role=%s, action=%s, kind=%s",
        subject.id if subject else None,
        subject.role.value if subject else None,
        action.value,
        kind.value,
    )
    if resource is None:
        detail = f"User role is not authorized to {action.value} {kind.value} resources"
    else:
        detail = f"Not authorized to {action.value} this {kind.value}"
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def require_permission(action: Action, kind: ResourceKind) -> Callable[..., Awaitable[User]]:
    """Build a route dependency that gates on the caller's role alone.

    Dependencies resolve before the request body is validated, so the
    401/403 answers never depend on what the caller sent. Ownership of a
    loaded document is still checked in the handler with authorize().
    """

    async def check_role(current_user: RequireAuth) -> User:
        authorize(current_user, action, kind)
        return current_user

    return check_role
