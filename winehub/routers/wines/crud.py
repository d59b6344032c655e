"""Wine CRUD endpoints (list, get, create, update, delete)."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Query, status

from winehub import database
from winehub.models import ContentStatus, User, Vintage, Wine, Winery, WineRegion, WineType
from winehub.schemas import (
    DataResponse,
    MessageResponse,
    PageResponse,
    WineCreate,
    WineDetail,
    WineResponse,
    WineUpdate,
)
from winehub.services.auth import CurrentUser
from winehub.services.policy import Action, ResourceKind, authorize, require_permission

from .._common import (
    PageParams,
    apply_update,
    get_or_404,
    page_envelope,
    paginate,
    parse_filter_id,
    parse_object_id,
    search_pattern,
    visibility_filter,
)
from .._populate import wine_detail, wine_response, wine_responses

logger = logging.getLogger(__name__)

CanCreateWine = Annotated[User, Depends(require_permission(Action.CREATE, ResourceKind.WINE))]
CanUpdateWine = Annotated[User, Depends(require_permission(Action.UPDATE, ResourceKind.WINE))]
CanDeleteWine = Annotated[User, Depends(require_permission(Action.DELETE, ResourceKind.WINE))]


async def require_winery(winery_id: str) -> Winery:
    """Resolve the winery a wine points at, or raise 404."""
    winery = await Winery.get(parse_object_id(winery_id, "Winery"))
    if winery is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Winery not found",
        )
    return winery


async def list_wines(
    viewer: CurrentUser,
    pagination: PageParams,
    winery: str | None = None,
    wine_type: Annotated[WineType | None, Query(alias="type")] = None,
    region: WineRegion | None = None,
    status_filter: Annotated[ContentStatus | None, Query(alias="status")] = None,
    search: str | None = None,
) -> PageResponse[WineResponse]:
    """List wines, newest first, with their winery."""
    query = visibility_filter(viewer, status_filter)
    if winery:
        query["winery"] = parse_filter_id(winery, "Winery")
    if wine_type is not None:
        query["type"] = wine_type.value
    if region is not None:
        query["region"] = region.value
    if search:
        pattern = search_pattern(search)
        query["$or"] = [
            {"name": pattern},
            {"description": pattern},
            {"variety": pattern},
            {"region": pattern},
        ]

    wines, total = await paginate(Wine, query, pagination, [("created_at", -1)])
    return page_envelope(await wine_responses(wines), total, pagination)


async def get_wine(
    wine_id: str,
    viewer: CurrentUser,
) -> DataResponse[WineDetail]:
    """Get a wine with its winery and vintages."""
    wine = await get_or_404(Wine, wine_id, "Wine", viewer, anonymous_check=True)
    return {"success": True, "data": await wine_detail(wine, viewer)}


async def create_wine(
    body: WineCreate,
    current_user: CanCreateWine,
) -> DataResponse[WineResponse]:
    """Create a wine under an existing winery."""
    winery = await require_winery(body.winery)

    data = body.model_dump()
    data["winery"] = winery.id
    wine = Wine(**data, created_by=current_user.id, updated_by=current_user.id)
    await wine.insert()

    logger.info("Wine created: id=%s, winery=%s, user_id=%s", wine.id, winery.id, current_user.id)
    return {"success": True, "data": await wine_response(wine)}


async def update_wine(
    wine_id: str,
    body: WineUpdate,
    current_user: CanUpdateWine,
) -> DataResponse[WineResponse]:
    """Update a wine. Only provided fields change."""
    wine = await get_or_404(Wine, wine_id, "Wine")
    authorize(current_user, Action.UPDATE, ResourceKind.WINE, wine)

    if body.winery is not None:
        winery = await require_winery(body.winery)
        body = body.model_copy(update={"winery": str(winery.id)})

    apply_update(wine, body)
    wine.stamp(current_user.id)
    await wine.save()

    return {"success": True, "data": await wine_response(wine)}


async def delete_wine(
    wine_id: str,
    current_user: CanDeleteWine,
) -> MessageResponse:
    """Delete a wine and all of its vintages."""
    wine = await get_or_404(Wine, wine_id, "Wine")
    authorize(current_user, Action.DELETE, ResourceKind.WINE, wine)

    async with database.transaction() as session:
        result = await Vintage.find(Vintage.wine == wine.id, session=session).delete(
            session=session
        )
        await wine.delete(session=session)

    deleted_vintages = result.deleted_count if result else 0
    logger.info(
        "Wine deleted: id=%s, vintages=%d, user_id=%s",
        wine.id, deleted_vintages, current_user.id,
    )
    return {"success": True, "message": "Wine and associated vintages deleted successfully"}
