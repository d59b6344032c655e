"""Pydantic schemas for Wine endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from winehub.models import ContentStatus, WineRegion, WineType
from winehub.models.wine import max_vintage_year
from winehub.schemas.common import (
    APIModel,
    NonEmptyStr,
    ObjectIdStr,
    UserSummary,
    WinerySummary,
)
from winehub.schemas.winery import WineryResponse


class BottleImageSchema(APIModel):
    url: Optional[str] = None
    generated_at: Optional[datetime] = None
    prompt: Optional[str] = None


class NutritionSchema(APIModel):
    serving_size: float = 5
    servings_per_container: Optional[float] = None
    alcohol_by_volume: Optional[float] = Field(None, ge=0, le=100)
    alcohol_per_serving: Optional[float] = None
    calories_per_serving: Optional[float] = None
    carbohydrates_per_serving: Optional[float] = None
    fat_per_serving: float = 0
    protein_per_serving: float = 0
    sugar_per_serving: Optional[float] = None


class AllergensSchema(APIModel):
    milk: bool = False
    eggs: bool = False
    fish: bool = False
    crustacean_shellfish: bool = False
    tree_nuts: bool = False
    wheat: bool = False
    peanuts: bool = False
    soybeans: bool = False
    sesame: bool = False


class IngredientsSchema(APIModel):
    primary_ingredients: list[str] = Field(default_factory=list)
    additives: list[str] = Field(default_factory=list)
    allergens: AllergensSchema = Field(default_factory=AllergensSchema)
    processing_aids: list[str] = Field(default_factory=list)
    notes: Optional[str] = None


class ComplianceQRCodeSchema(APIModel):
    url: Optional[str] = None
    generated_at: Optional[datetime] = None


class AwardCreate(APIModel):
    """Schema for adding an award to a wine."""

    score: int = Field(..., ge=0, le=100)
    award_name: NonEmptyStr
    year: int = Field(..., ge=1900)

    @field_validator("year")
    @classmethod
    def year_not_in_future(cls, v: int) -> int:
        if v > max_vintage_year():
            raise ValueError(f"Year must be {max_vintage_year()} or earlier")
        return v


class AwardResponse(APIModel):
    id: ObjectIdStr
    score: Optional[int] = None
    award_name: str
    year: int


class WineCreate(APIModel):
    """Schema for creating a wine."""

    name: NonEmptyStr = Field(..., max_length=200)
    winery: NonEmptyStr
    description: NonEmptyStr
    country: Optional[str] = None
    region: WineRegion
    type: WineType
    tasting_notes: NonEmptyStr
    variety: NonEmptyStr
    food_pairing: NonEmptyStr
    bottle_image: Optional[BottleImageSchema] = None
    awards: list[AwardCreate] = Field(default_factory=list)
    nutrition: Optional[NutritionSchema] = None
    ingredients: Optional[IngredientsSchema] = None
    compliance_qr_code: Optional[ComplianceQRCodeSchema] = None
    status: ContentStatus = ContentStatus.DRAFT


class WineUpdate(APIModel):
    """Schema for updating a wine. Only provided fields change."""

    name: Optional[NonEmptyStr] = Field(None, max_length=200)
    winery: Optional[NonEmptyStr] = None
    description: Optional[NonEmptyStr] = None
    country: Optional[str] = None
    region: Optional[WineRegion] = None
    type: Optional[WineType] = None
    tasting_notes: Optional[NonEmptyStr] = None
    variety: Optional[NonEmptyStr] = None
    food_pairing: Optional[NonEmptyStr] = None
    bottle_image: Optional[BottleImageSchema] = None
    nutrition: Optional[NutritionSchema] = None
    ingredients: Optional[IngredientsSchema] = None
    compliance_qr_code: Optional[ComplianceQRCodeSchema] = None
    status: Optional[ContentStatus] = None


class WineResponse(APIModel):
    id: ObjectIdStr
    name: str
    winery: Optional[WinerySummary] = None
    description: str
    country: Optional[str] = None
    region: WineRegion
    type: WineType
    tasting_notes: str
    variety: str
    food_pairing: str
    bottle_image: Optional[BottleImageSchema] = None
    awards: list[AwardResponse] = []
    nutrition: Optional[NutritionSchema] = None
    ingredients: Optional[IngredientsSchema] = None
    compliance_qr_code: Optional[ComplianceQRCodeSchema] = None
    status: ContentStatus
    created_by: Optional[UserSummary] = None
    updated_by: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime


class WineDetail(WineResponse):
    """Wine with its full winery and its vintages, newest first."""

    winery: Optional[WineryResponse] = None
    vintages: list["VintageResponse"] = []


class WineWithWinery(APIModel):
    """Wine reference embedded in vintage listings."""

    id: ObjectIdStr
    name: str
    type: WineType
    region: WineRegion
    variety: str
    status: ContentStatus
    winery: Optional[WinerySummary] = None
