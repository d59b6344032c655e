"""Vintage document model: one wine in one year."""

from typing import Optional

from beanie import PydanticObjectId
from pydantic import BaseModel, Field, field_validator
from pymongo import ASCENDING, IndexModel

from winehub.models.common import AssetRecord, CatalogDocument
from winehub.models.wine import max_vintage_year

# API name -> storage slot
ASSET_SLOTS = {
    "bottleImage": "bottle_image",
    "labelImage": "label_image",
    "techSheet": "tech_sheet",
    "tastingCard": "tasting_card",
    "lifestyleImage": "lifestyle_image",
    "shelfTalker": "shelf_talker",
}


class VintageAssets(BaseModel):
    """Sales and marketing files attached to a vintage."""

    bottle_image: Optional[AssetRecord] = None
    tech_sheet: Optional[AssetRecord] = None
    shelf_talker: Optional[AssetRecord] = None
    tasting_card: Optional[AssetRecord] = None
    label_image: Optional[AssetRecord] = None
    lifestyle_image: Optional[AssetRecord] = None


class Production(BaseModel):
    cases: Optional[int] = Field(default=None, ge=0)
    bottles: Optional[int] = Field(default=None, ge=0)


class Pricing(BaseModel):
    wholesale: Optional[float] = Field(default=None, ge=0)
    retail: Optional[float] = Field(default=None, ge=0)
    currency: str = "USD"


class Vintage(CatalogDocument):
    """Vintage document model.

    The (wine, year) pair is unique. The unique index is authoritative;
    routes pre-check it only to return a friendlier message.
    """

    wine: PydanticObjectId
    year: int = Field(..., ge=1900)
    assets: VintageAssets = Field(default_factory=VintageAssets)
    notes: Optional[str] = None
    production: Production = Field(default_factory=Production)
    pricing: Pricing = Field(default_factory=Pricing)

    @field_validator("year")
    @classmethod
    def year_not_in_future(cls, v: int) -> int:
        if v > max_vintage_year():
            raise ValueError(f"year must be {max_vintage_year()} or earlier")
        return v

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v

    class Settings:
        name = "vintages"
        validate_on_save = True
        indexes = [
            "status",
            IndexModel(
                [("wine", ASCENDING), ("year", ASCENDING)],
                unique=True,
                name="wine_year_unique",
            ),
        ]

    def __repr__(self) -> str:
        return f"<Vintage(id={self.id}, wine={self.wine}, year={self.year})>"
