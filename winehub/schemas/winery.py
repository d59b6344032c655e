"""Pydantic schemas for Winery endpoints."""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from pydantic import Field

from winehub.models import ContentStatus
from winehub.schemas.common import (
    APIModel,
    AssetRecordSchema,
    NonEmptyStr,
    ObjectIdStr,
    UserSummary,
)

if TYPE_CHECKING:
    from winehub.schemas.wine import WineResponse


class LifestyleImageSchema(AssetRecordSchema):
    caption: Optional[str] = None


class WineryCreate(APIModel):
    """Schema for creating a winery."""

    name: NonEmptyStr = Field(..., max_length=200)
    description: NonEmptyStr
    featured_image: Optional[AssetRecordSchema] = None
    logo: Optional[AssetRecordSchema] = None
    lifestyle_images: list[LifestyleImageSchema] = Field(default_factory=list)
    status: ContentStatus = ContentStatus.DRAFT


class WineryUpdate(APIModel):
    """Schema for updating a winery. Only provided fields change."""

    name: Optional[NonEmptyStr] = Field(None, max_length=200)
    description: Optional[NonEmptyStr] = None
    featured_image: Optional[AssetRecordSchema] = None
    logo: Optional[AssetRecordSchema] = None
    lifestyle_images: Optional[list[LifestyleImageSchema]] = None
    status: Optional[ContentStatus] = None


class WineryResponse(APIModel):
    id: ObjectIdStr
    name: str
    description: str
    featured_image: Optional[AssetRecordSchema] = None
    logo: Optional[AssetRecordSchema] = None
    lifestyle_images: list[LifestyleImageSchema] = []
    status: ContentStatus
    created_by: Optional[UserSummary] = None
    updated_by: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime


class WineryDetail(WineryResponse):
    """Winery with its published wines."""

    wines: list["WineResponse"] = []
