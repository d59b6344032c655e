"""MongoDB document models for WineHub."""

from winehub.models.common import AssetRecord, CatalogDocument, ContentStatus
from winehub.models.user import User, UserRole
from winehub.models.vintage import (
    ASSET_SLOTS,
    Pricing,
    Production,
    Vintage,
    VintageAssets,
)
from winehub.models.wine import (
    Allergens,
    Award,
    BottleImage,
    ComplianceQRCode,
    Ingredients,
    Nutrition,
    Wine,
    WineRegion,
    WineType,
)
from winehub.models.winery import LifestyleImage, Winery

__all__ = [
    # Main documents
    "User",
    "Winery",
    "Wine",
    "Vintage",
    # Enums
    "UserRole",
    "ContentStatus",
    "WineRegion",
    "WineType",
    # Embedded subdocuments
    "AssetRecord",
    "LifestyleImage",
    "BottleImage",
    "Award",
    "Nutrition",
    "Allergens",
    "Ingredients",
    "ComplianceQRCode",
    "VintageAssets",
    "Production",
    "Pricing",
    "ASSET_SLOTS",
    # Base
    "CatalogDocument",
]
