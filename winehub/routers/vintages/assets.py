"""Vintage asset slot endpoints."""

from typing import Annotated

from fastapi import Depends, HTTPException, status

from winehub.models import ASSET_SLOTS, AssetRecord, User, Vintage
from winehub.schemas import AssetRecordSchema, DataResponse, VintageResponse
from winehub.services.policy import Action, ResourceKind, authorize, require_permission

from .._common import get_or_404
from .._populate import vintage_response

CanUpdateVintage = Annotated[User, Depends(require_permission(Action.UPDATE, ResourceKind.VINTAGE))]


def resolve_slot(asset_type: str) -> str:
    """Map an API asset type to its storage slot or raise 400."""
    slot = ASSET_SLOTS.get(asset_type)
    if slot is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid asset type",
        )
    return slot


async def set_asset(
    vintage_id: str,
    asset_type: str,
    body: AssetRecordSchema,
    current_user: CanUpdateVintage,
) -> DataResponse[VintageResponse]:
    """Replace one asset slot of a vintage."""
    slot = resolve_slot(asset_type)
    vintage = await get_or_404(Vintage, vintage_id, "Vintage")
    authorize(current_user, Action.UPDATE, ResourceKind.VINTAGE, vintage)

    setattr(vintage.assets, slot, AssetRecord(**body.model_dump()))
    vintage.stamp(current_user.id)
    await vintage.save()

    return {"success": True, "data": await vintage_response(vintage)}


async def clear_asset(
    vintage_id: str,
    asset_type: str,
    current_user: CanUpdateVintage,
) -> DataResponse[VintageResponse]:
    """Clear one asset slot of a vintage."""
    slot = resolve_slot(asset_type)
    vintage = await get_or_404(Vintage, vintage_id, "Vintage")
    authorize(current_user, Action.UPDATE, ResourceKind.VINTAGE, vintage)

    setattr(vintage.assets, slot, None)
    vintage.stamp(current_user.id)
    await vintage.save()

    return {"success": True, "data": await vintage_response(vintage)}
