"""Pydantic schemas for Vintage endpoints."""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, Field

from winehub.models import ContentStatus
from winehub.models.wine import max_vintage_year
from winehub.schemas.common import (
    APIModel,
    AssetRecordSchema,
    NonEmptyStr,
    ObjectIdStr,
    UserSummary,
)
from winehub.schemas.wine import WineResponse, WineWithWinery
from winehub.schemas.winery import WineryResponse


class VintageAssetsSchema(APIModel):
    bottle_image: Optional[AssetRecordSchema] = None
    tech_sheet: Optional[AssetRecordSchema] = None
    shelf_talker: Optional[AssetRecordSchema] = None
    tasting_card: Optional[AssetRecordSchema] = None
    label_image: Optional[AssetRecordSchema] = None
    lifestyle_image: Optional[AssetRecordSchema] = None


class ProductionSchema(APIModel):
    cases: Optional[int] = Field(None, ge=0)
    bottles: Optional[int] = Field(None, ge=0)


class PricingSchema(APIModel):
    wholesale: Optional[float] = Field(None, ge=0)
    retail: Optional[float] = Field(None, ge=0)
    currency: str = "USD"


def _check_year(v: int) -> int:
    if v > max_vintage_year():
        raise ValueError(f"Year must be {max_vintage_year()} or earlier")
    return v


VintageYear = Annotated[int, Field(ge=1900), AfterValidator(_check_year)]


class VintageCreate(APIModel):
    """Schema for creating a vintage."""

    wine: NonEmptyStr
    year: VintageYear
    assets: VintageAssetsSchema = Field(default_factory=VintageAssetsSchema)
    notes: Optional[str] = None
    production: ProductionSchema = Field(default_factory=ProductionSchema)
    pricing: PricingSchema = Field(default_factory=PricingSchema)
    status: ContentStatus = ContentStatus.DRAFT


class VintageUpdate(APIModel):
    """Schema for updating a vintage. Only provided fields change."""

    year: Optional[VintageYear] = None
    assets: Optional[VintageAssetsSchema] = None
    notes: Optional[str] = None
    production: Optional[ProductionSchema] = None
    pricing: Optional[PricingSchema] = None
    status: Optional[ContentStatus] = None


class VintageResponse(APIModel):
    id: ObjectIdStr
    wine: Optional[WineWithWinery] = None
    year: int
    assets: VintageAssetsSchema
    notes: Optional[str] = None
    production: ProductionSchema
    pricing: PricingSchema
    status: ContentStatus
    created_by: Optional[UserSummary] = None
    updated_by: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime


class WineWithFullWinery(WineResponse):
    winery: Optional[WineryResponse] = None


class VintageDetail(VintageResponse):
    """Vintage with its wine and the wine's full winery."""

    wine: Optional[WineWithFullWinery] = None
