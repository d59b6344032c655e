"""Winery document model."""

from typing import Optional

from beanie import Indexed
from pydantic import Field

from winehub.models.common import AssetRecord, CatalogDocument


class LifestyleImage(AssetRecord):
    """Embedded lifestyle photo with an optional caption."""

    caption: Optional[str] = None


class Winery(CatalogDocument):
    """Winery document model. Wines reference it by id."""

    name: Indexed(str, unique=True)
    description: str = Field(..., min_length=1)

    featured_image: Optional[AssetRecord] = None
    logo: Optional[AssetRecord] = None
    lifestyle_images: list[LifestyleImage] = Field(default_factory=list)

    class Settings:
        name = "wineries"
        validate_on_save = True
        indexes = [
            "status",
            [
                ("name", "text"),
                ("description", "text"),
            ],
        ]

    def __repr__(self) -> str:
        return f"<Winery(id={self.id}, name={self.name})>"
