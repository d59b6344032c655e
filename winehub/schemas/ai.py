"""Pydantic schemas for bottle image endpoints."""

from typing import Optional

from winehub.schemas.common import APIModel


class GenerateImageRequest(APIModel):
    wine_id: Optional[str] = None
    wine_name: Optional[str] = None
    wine_type: Optional[str] = None
    variety: Optional[str] = None
    region: Optional[str] = None
    winery_name: Optional[str] = None


class ManualImageRequest(APIModel):
    image_url: Optional[str] = None


class GeneratedImage(APIModel):
    image_url: str
    prompt: str
