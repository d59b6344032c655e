"""Wine award endpoints."""

import logging
from typing import Annotated

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import Depends

from winehub.models import Award, User, Wine
from winehub.schemas import AwardCreate, DataResponse, WineResponse
from winehub.services.policy import Action, ResourceKind, authorize, require_permission

from .._common import get_or_404
from .._populate import wine_response

logger = logging.getLogger(__name__)

CanUpdateWine = Annotated[User, Depends(require_permission(Action.UPDATE, ResourceKind.WINE))]


async def add_award(
    wine_id: str,
    body: AwardCreate,
    current_user: CanUpdateWine,
) -> DataResponse[WineResponse]:
    """Append an award to a wine."""
    wine = await get_or_404(Wine, wine_id, "Wine")
    authorize(current_user, Action.UPDATE, ResourceKind.WINE, wine)

    wine.awards.append(Award(**body.model_dump()))
    wine.stamp(current_user.id)
    await wine.save()

    return {"success": True, "data": await wine_response(wine)}


async def remove_award(
    wine_id: str,
    award_id: str,
    current_user: CanUpdateWine,
) -> DataResponse[WineResponse]:
    """Remove an award from a wine.

    An unknown award id leaves the list unchanged and still succeeds.
    """
    wine = await get_or_404(Wine, wine_id, "Wine")
    authorize(current_user, Action.UPDATE, ResourceKind.WINE, wine)

    try:
        target = PydanticObjectId(award_id)
    except InvalidId:
        logger.debug("Ignoring malformed award id %s on wine %s", award_id, wine.id)
        target = None

    remaining = [a for a in wine.awards if a.id != target]
    if len(remaining) != len(wine.awards):
        wine.awards = remaining
        wine.stamp(current_user.id)
        await wine.save()

    return {"success": True, "data": await wine_response(wine)}
