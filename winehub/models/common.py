"""Shared embedded subdocuments and base document for catalog entities."""

import enum
from datetime import datetime, timezone
from typing import Optional

from beanie import Document, PydanticObjectId
from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentStatus(str, enum.Enum):
    """Publication status shared by wineries, wines and vintages."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class AssetRecord(BaseModel):
    """Embedded metadata for one uploaded file."""

    filename: Optional[str] = None
    path: Optional[str] = None  # Relative to the upload root
    mimetype: Optional[str] = None
    size: Optional[int] = Field(default=None, ge=0)
    uploaded_at: Optional[datetime] = None


class CatalogDocument(Document):
    """Base for catalog documents carrying status and audit fields."""

    status: ContentStatus = ContentStatus.DRAFT

    # Ownership, stamped by the server
    created_by: Optional[PydanticObjectId] = None
    updated_by: Optional[PydanticObjectId] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def stamp(self, user_id: PydanticObjectId) -> None:
        """Record a mutation by the given user."""
        self.updated_by = user_id
        self.updated_at = utcnow()
