"""Winery endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pymongo.errors import DuplicateKeyError

from winehub.models import ContentStatus, User, Wine, Winery
from winehub.schemas import (
    DataResponse,
    MessageResponse,
    PageResponse,
    WineryCreate,
    WineryDetail,
    WineryResponse,
    WineryUpdate,
)
from winehub.services.auth import CurrentUser
from winehub.services.policy import Action, ResourceKind, authorize, require_permission

from ._common import (
    PageParams,
    apply_update,
    conflict,
    get_or_404,
    page_envelope,
    paginate,
    search_pattern,
    visibility_filter,
)
from ._populate import winery_detail, winery_response, winery_responses

logger = logging.getLogger(__name__)

CanCreateWinery = Annotated[User, Depends(require_permission(Action.CREATE, ResourceKind.WINERY))]
CanUpdateWinery = Annotated[User, Depends(require_permission(Action.UPDATE, ResourceKind.WINERY))]
CanDeleteWinery = Annotated[User, Depends(require_permission(Action.DELETE, ResourceKind.WINERY))]

DUPLICATE_NAME = "A winery with this name already exists"


async def list_wineries(
    viewer: CurrentUser,
    pagination: PageParams,
    status_filter: Annotated[ContentStatus | None, Query(alias="status")] = None,
    search: str | None = None,
) -> PageResponse[WineryResponse]:
    """List wineries, newest first."""
    query = visibility_filter(viewer, status_filter)
    if search:
        pattern = search_pattern(search)
        query["$or"] = [{"name": pattern}, {"description": pattern}]

    wineries, total = await paginate(Winery, query, pagination, [("created_at", -1)])
    return page_envelope(await winery_responses(wineries), total, pagination)


async def get_winery(
    winery_id: str,
    viewer: CurrentUser,
) -> DataResponse[WineryDetail]:
    """Get a winery with its published wines."""
    winery = await get_or_404(Winery, winery_id, "Winery", viewer, anonymous_check=True)
    return {"success": True, "data": await winery_detail(winery)}


async def create_winery(
    body: WineryCreate,
    current_user: CanCreateWinery,
) -> DataResponse[WineryResponse]:
    """Create a winery."""
    if await Winery.find_one(Winery.name == body.name):
        raise conflict(DUPLICATE_NAME)

    winery = Winery(
        **body.model_dump(),
        created_by=current_user.id,
        updated_by=current_user.id,
    )
    try:
        await winery.insert()
    except DuplicateKeyError:
        raise conflict(DUPLICATE_NAME)

    logger.info("Winery created: id=%s, name=%s, user_id=%s", winery.id, winery.name, current_user.id)
    return {"success": True, "data": await winery_response(winery)}


async def update_winery(
    winery_id: str,
    body: WineryUpdate,
    current_user: CanUpdateWinery,
) -> DataResponse[WineryResponse]:
    """Update a winery. Only provided fields change."""
    winery = await get_or_404(Winery, winery_id, "Winery")
    authorize(current_user, Action.UPDATE, ResourceKind.WINERY, winery)

    if body.name is not None and body.name != winery.name:
        if await Winery.find_one(Winery.name == body.name, Winery.id != winery.id):
            raise conflict(DUPLICATE_NAME)

    apply_update(winery, body)
    winery.stamp(current_user.id)
    try:
        await winery.save()
    except DuplicateKeyError:
        raise conflict(DUPLICATE_NAME)

    return {"success": True, "data": await winery_response(winery)}


async def delete_winery(
    winery_id: str,
    current_user: CanDeleteWinery,
) -> MessageResponse:
    """Delete a winery that no wine references."""
    winery = await get_or_404(Winery, winery_id, "Winery")
    authorize(current_user, Action.DELETE, ResourceKind.WINERY, winery)

    wine_count = await Wine.find(Wine.winery == winery.id).count()
    if wine_count > 0:
        raise conflict(
            f"Cannot delete winery. It has {wine_count} associated wines. "
            "Please delete wines first."
        )

    await winery.delete()
    logger.info("Winery deleted: id=%s, user_id=%s", winery.id, current_user.id)
    return {"success": True, "message": "Winery deleted successfully"}


router = APIRouter()

router.add_api_route("", list_wineries, methods=["GET"])
router.add_api_route("", create_winery, methods=["POST"], status_code=status.HTTP_201_CREATED)
router.add_api_route("/{winery_id}", get_winery, methods=["GET"])
router.add_api_route("/{winery_id}", update_winery, methods=["PUT"])
router.add_api_route("/{winery_id}", delete_winery, methods=["DELETE"])
