"""Bottle image endpoints backed by AI image generation."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from winehub.models import BottleImage, User, Wine
from winehub.models.common import utcnow
from winehub.schemas import (
    DataResponse,
    GeneratedImage,
    GenerateImageRequest,
    ManualImageRequest,
    MessageResponse,
)
from winehub.services.bottle_images import BottleImageService
from winehub.services.policy import Action, ResourceKind, authorize, require_permission

from ._common import get_or_404

logger = logging.getLogger(__name__)

CanUpdateWine = Annotated[User, Depends(require_permission(Action.UPDATE, ResourceKind.WINE))]

router = APIRouter()

_service: BottleImageService | None = None


def get_bottle_image_service() -> BottleImageService:
    global _service
    if _service is None:
        _service = BottleImageService()
    return _service


def set_bottle_image_service(service: BottleImageService | None) -> None:
    global _service
    _service = service


async def _editable_wine(wine_id: str, current_user: User) -> Wine:
    wine = await get_or_404(Wine, wine_id, "Wine")
    authorize(current_user, Action.UPDATE, ResourceKind.WINE, wine)
    return wine


@router.post("/generate-wine-image", response_model=DataResponse[GeneratedImage])
async def generate_wine_image(
    body: GenerateImageRequest,
    current_user: CanUpdateWine,
) -> dict:
    """Generate a bottle shot and optionally attach it to a wine."""
    service = get_bottle_image_service()
    if not service.is_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI image generation is not configured. Please contact administrator.",
        )

    if not body.wine_name or not body.wine_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Wine name and type are required",
        )

    wine = await _editable_wine(body.wine_id, current_user) if body.wine_id else None

    result = await service.generate(
        wine_name=body.wine_name,
        wine_type=body.wine_type,
        variety=body.variety,
        region=body.region,
        winery_name=body.winery_name,
    )

    if wine is not None:
        wine.bottle_image = BottleImage(
            url=result.image_url,
            generated_at=utcnow(),
            prompt=result.prompt,
        )
        wine.stamp(current_user.id)
        await wine.save()
        logger.info("Bottle image generated for wine %s", wine.id)

    return {
        "success": True,
        "data": GeneratedImage(image_url=result.image_url, prompt=result.prompt),
    }


@router.post("/upload-wine-image/{wine_id}", response_model=DataResponse[GeneratedImage])
async def upload_wine_image(
    wine_id: str,
    body: ManualImageRequest,
    current_user: CanUpdateWine,
) -> dict:
    """Set a wine's bottle image from an existing URL."""
    if not body.image_url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Image URL is required",
        )

    wine = await _editable_wine(wine_id, current_user)
    prompt = "Manually uploaded"
    wine.bottle_image = BottleImage(url=body.image_url, generated_at=utcnow(), prompt=prompt)
    wine.stamp(current_user.id)
    await wine.save()

    return {"success": True, "data": GeneratedImage(image_url=body.image_url, prompt=prompt)}


@router.delete("/wine-image/{wine_id}", response_model=MessageResponse)
async def delete_wine_image(
    wine_id: str,
    current_user: CanUpdateWine,
) -> dict:
    """Remove a wine's bottle image."""
    wine = await _editable_wine(wine_id, current_user)

    wine.bottle_image = None
    wine.stamp(current_user.id)
    await wine.save()

    return {"success": True, "message": "Image removed successfully"}
