"""Vintage CRUD endpoints (list, get, create, update, delete)."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from pymongo.errors import DuplicateKeyError

from winehub.models import ContentStatus, User, Vintage, Wine
from winehub.schemas import (
    DataResponse,
    MessageResponse,
    PageResponse,
    VintageCreate,
    VintageDetail,
    VintageResponse,
    VintageUpdate,
)
from winehub.services.auth import CurrentUser
from winehub.services.policy import Action, ResourceKind, authorize, require_permission

from .._common import (
    PageParams,
    apply_update,
    conflict,
    get_or_404,
    page_envelope,
    paginate,
    parse_filter_id,
    parse_object_id,
    visibility_filter,
)
from .._populate import vintage_detail, vintage_response, vintage_responses

logger = logging.getLogger(__name__)

CanCreateVintage = Annotated[User, Depends(require_permission(Action.CREATE, ResourceKind.VINTAGE))]
CanUpdateVintage = Annotated[User, Depends(require_permission(Action.UPDATE, ResourceKind.VINTAGE))]
CanDeleteVintage = Annotated[User, Depends(require_permission(Action.DELETE, ResourceKind.VINTAGE))]

DUPLICATE_YEAR = "A vintage for this wine and year already exists"


async def list_vintages(
    viewer: CurrentUser,
    pagination: PageParams,
    wine: str | None = None,
    year: int | None = None,
    status_filter: Annotated[ContentStatus | None, Query(alias="status")] = None,
) -> PageResponse[VintageResponse]:
    """List vintages, newest year first."""
    query = visibility_filter(viewer, status_filter)
    if wine:
        query["wine"] = parse_filter_id(wine, "Wine")
    if year is not None:
        query["year"] = year

    vintages, total = await paginate(
        Vintage, query, pagination, [("year", -1), ("created_at", -1)]
    )
    return page_envelope(await vintage_responses(vintages), total, pagination)


async def get_vintage(
    vintage_id: str,
    viewer: CurrentUser,
) -> DataResponse[VintageDetail]:
    """Get a vintage with its wine and winery."""
    vintage = await get_or_404(Vintage, vintage_id, "Vintage", viewer, anonymous_check=True)
    return {"success": True, "data": await vintage_detail(vintage, viewer)}


async def create_vintage(
    body: VintageCreate,
    current_user: CanCreateVintage,
) -> DataResponse[VintageResponse]:
    """Create a vintage of an existing wine."""
    wine = await Wine.get(parse_object_id(body.wine, "Wine"))
    if wine is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Wine not found",
        )

    if await Vintage.find_one(Vintage.wine == wine.id, Vintage.year == body.year):
        raise conflict(DUPLICATE_YEAR)

    data = body.model_dump()
    data["wine"] = wine.id
    vintage = Vintage(**data, created_by=current_user.id, updated_by=current_user.id)
    try:
        await vintage.insert()
    except DuplicateKeyError:
        raise conflict(DUPLICATE_YEAR)

    logger.info(
        "Vintage created: id=%s, wine=%s, year=%d, user_id=%s",
        vintage.id, wine.id, vintage.year, current_user.id,
    )
    return {"success": True, "data": await vintage_response(vintage)}


async def update_vintage(
    vintage_id: str,
    body: VintageUpdate,
    current_user: CanUpdateVintage,
) -> DataResponse[VintageResponse]:
    """Update a vintage. Only provided fields change."""
    vintage = await get_or_404(Vintage, vintage_id, "Vintage")
    authorize(current_user, Action.UPDATE, ResourceKind.VINTAGE, vintage)

    if body.year is not None and body.year != vintage.year:
        clash = await Vintage.find_one(
            Vintage.wine == vintage.wine,
            Vintage.year == body.year,
            Vintage.id != vintage.id,
        )
        if clash:
            raise conflict(DUPLICATE_YEAR)

    apply_update(vintage, body)
    vintage.stamp(current_user.id)
    try:
        await vintage.save()
    except DuplicateKeyError:
        raise conflict(DUPLICATE_YEAR)

    return {"success": True, "data": await vintage_response(vintage)}


async def delete_vintage(
    vintage_id: str,
    current_user: CanDeleteVintage,
) -> MessageResponse:
    """Delete a vintage."""
    vintage = await get_or_404(Vintage, vintage_id, "Vintage")
    authorize(current_user, Action.DELETE, ResourceKind.VINTAGE, vintage)

    await vintage.delete()
    logger.info("Vintage deleted: id=%s, user_id=%s", vintage.id, current_user.id)
    return {"success": True, "message": "Vintage deleted successfully"}
