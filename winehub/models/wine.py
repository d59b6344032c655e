"""Wine document model with embedded awards, nutrition and ingredients."""

import enum
from datetime import datetime
from typing import Optional

from beanie import Indexed, PydanticObjectId
from pydantic import BaseModel, Field, field_validator

from winehub.models.common import CatalogDocument, utcnow


def max_vintage_year() -> int:
    """Latest accepted year for awards and vintages: next calendar year."""
    return utcnow().year + 1


class WineRegion(str, enum.Enum):
    """Named regions a wine can be filed under."""

    NAPA_VALLEY = "Napa Valley"
    SONOMA_COUNTY = "Sonoma County"
    PASO_ROBLES = "Paso Robles"
    SANTA_BARBARA = "Santa Barbara"
    WILLAMETTE_VALLEY = "Willamette Valley"
    FINGER_LAKES = "Finger Lakes"
    COLUMBIA_VALLEY = "Columbia Valley"
    WALLA_WALLA = "Walla Walla"
    RUSSIAN_RIVER_VALLEY = "Russian River Valley"
    ALEXANDER_VALLEY = "Alexander Valley"
    OTHER = "Other"


class WineType(str, enum.Enum):
    """Style of wine."""

    RED = "red"
    WHITE = "white"
    SPARKLING = "sparkling"
    ROSE = "rosé"
    DESSERT = "dessert"
    FORTIFIED = "fortified"


class BottleImage(BaseModel):
    """Embedded bottle shot, generated or uploaded."""

    url: Optional[str] = None
    generated_at: Optional[datetime] = None
    prompt: Optional[str] = None


class Award(BaseModel):
    """Embedded competition award or critic score."""

    id: PydanticObjectId = Field(default_factory=PydanticObjectId)
    score: Optional[int] = Field(default=None, ge=0, le=100)
    award_name: str = Field(..., min_length=1)
    year: int = Field(..., ge=1900)

    @field_validator("year")
    @classmethod
    def year_not_in_future(cls, v: int) -> int:
        if v > max_vintage_year():
            raise ValueError(f"year must be {max_vintage_year()} or earlier")
        return v


class Nutrition(BaseModel):
    """Alcohol facts statement, per serving."""

    serving_size: float = 5  # US fl oz
    servings_per_container: Optional[float] = None
    alcohol_by_volume: Optional[float] = Field(default=None, ge=0, le=100)
    alcohol_per_serving: Optional[float] = None
    calories_per_serving: Optional[float] = None
    carbohydrates_per_serving: Optional[float] = None
    fat_per_serving: float = 0
    protein_per_serving: float = 0
    sugar_per_serving: Optional[float] = None


class Allergens(BaseModel):
    """Major food allergen flags."""

    milk: bool = False
    eggs: bool = False
    fish: bool = False
    crustacean_shellfish: bool = False
    tree_nuts: bool = False
    wheat: bool = False
    peanuts: bool = False
    soybeans: bool = False
    sesame: bool = False


class Ingredients(BaseModel):
    """Ingredient disclosure."""

    primary_ingredients: list[str] = Field(default_factory=list)
    additives: list[str] = Field(default_factory=list)
    allergens: Allergens = Field(default_factory=Allergens)
    processing_aids: list[str] = Field(default_factory=list)
    notes: Optional[str] = None


class ComplianceQRCode(BaseModel):
    """Link to the label compliance page."""

    url: Optional[str] = None
    generated_at: Optional[datetime] = None


class Wine(CatalogDocument):
    """Wine document model. Belongs to a winery; vintages reference it."""

    name: str = Field(..., min_length=1)
    winery: Indexed(PydanticObjectId)
    description: str = Field(..., min_length=1)
    country: Optional[str] = None
    region: WineRegion
    type: WineType
    tasting_notes: str = Field(..., min_length=1)
    variety: str = Field(..., min_length=1)
    food_pairing: str = Field(..., min_length=1)

    bottle_image: Optional[BottleImage] = None
    awards: list[Award] = Field(default_factory=list)
    nutrition: Optional[Nutrition] = None
    ingredients: Optional[Ingredients] = None
    compliance_qr_code: Optional[ComplianceQRCode] = None

    class Settings:
        name = "wines"
        validate_on_save = True
        indexes = [
            "status",
            [("winery", 1), ("type", 1)],
            [
                ("name", "text"),
                ("variety", "text"),
                ("description", "text"),
            ],
        ]

    def __repr__(self) -> str:
        return f"<Wine(id={self.id}, name={self.name}, type={self.type.value})>"
