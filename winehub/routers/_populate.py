"""Response builders that populate document references.

References are fetched in one query per collection for a whole page of
documents, never per row.
"""

from typing import Any

from winehub.models import ContentStatus, User, Vintage, Wine, Winery
from winehub.schemas import (
    VintageDetail,
    VintageResponse,
    WineDetail,
    WineResponse,
    WineryDetail,
    WineryResponse,
)

from ._common import audit_ids, dump_with_users, fetch_users, fetch_wineries, fetch_wines


def _visible(doc, viewer: User | None):
    # Anonymous callers never see an embedded document that is not published
    if doc is None or (viewer is None and doc.status != ContentStatus.PUBLISHED):
        return None
    return doc


def _winery_summary(winery: Winery | None) -> dict[str, Any] | None:
    if winery is None:
        return None
    return {
        "id": winery.id,
        "name": winery.name,
        "logo": winery.logo.model_dump() if winery.logo else None,
    }


async def winery_responses(wineries: list[Winery]) -> list[WineryResponse]:
    users = await fetch_users(audit_ids(wineries))
    return [WineryResponse.model_validate(dump_with_users(w, users)) for w in wineries]


async def wine_responses(wines: list[Wine]) -> list[WineResponse]:
    users = await fetch_users(audit_ids(wines))
    wineries = await fetch_wineries(w.winery for w in wines)
    responses = []
    for wine in wines:
        data = dump_with_users(wine, users)
        data["winery"] = _winery_summary(wineries.get(wine.winery))
        responses.append(WineResponse.model_validate(data))
    return responses


async def vintage_responses(vintages: list[Vintage]) -> list[VintageResponse]:
    users = await fetch_users(audit_ids(vintages))
    wines = await fetch_wines(v.wine for v in vintages)
    wineries = await fetch_wineries(w.winery for w in wines.values())
    responses = []
    for vintage in vintages:
        data = dump_with_users(vintage, users)
        wine = wines.get(vintage.wine)
        if wine is None:
            data["wine"] = None
        else:
            winery = wineries.get(wine.winery)
            data["wine"] = {
                "id": wine.id,
                "name": wine.name,
                "type": wine.type,
                "region": wine.region,
                "variety": wine.variety,
                "status": wine.status,
                "winery": {"id": winery.id, "name": winery.name} if winery else None,
            }
        responses.append(VintageResponse.model_validate(data))
    return responses


async def winery_detail(winery: Winery) -> WineryDetail:
    """Winery with its published wines."""
    wines = (
        await Wine.find(Wine.winery == winery.id, Wine.status == ContentStatus.PUBLISHED)
        .sort(-Wine.created_at)
        .to_list()
    )
    users = await fetch_users(audit_ids([winery]))
    data = dump_with_users(winery, users)
    data["wines"] = await wine_responses(wines)
    return WineryDetail.model_validate(data)


async def wine_detail(wine: Wine, viewer: User | None) -> WineDetail:
    """Wine with its full winery and its vintages, newest year first.

    Anonymous callers only get published vintages, and no winery unless it
    is published.
    """
    criteria: list[Any] = [Vintage.wine == wine.id]
    if viewer is None:
        criteria.append(Vintage.status == ContentStatus.PUBLISHED)
    vintages = await Vintage.find(*criteria).sort(-Vintage.year).to_list()

    winery = _visible(await Winery.get(wine.winery), viewer)
    owners = [winery] if winery else []
    users = await fetch_users(audit_ids([wine, *owners]))

    data = dump_with_users(wine, users)
    data["winery"] = dump_with_users(winery, users) if winery else None
    data["vintages"] = await vintage_responses(vintages)
    return WineDetail.model_validate(data)


async def vintage_detail(vintage: Vintage, viewer: User | None) -> VintageDetail:
    """Vintage with its wine and the wine's full winery.

    The same published-only rule as wine_detail applies to both embeds.
    """
    wine = _visible(await Wine.get(vintage.wine), viewer)
    winery = _visible(await Winery.get(wine.winery), viewer) if wine else None

    related = [d for d in (vintage, wine, winery) if d is not None]
    users = await fetch_users(audit_ids(related))

    data = dump_with_users(vintage, users)
    if wine is None:
        data["wine"] = None
    else:
        wine_data = dump_with_users(wine, users)
        wine_data["winery"] = dump_with_users(winery, users) if winery else None
        data["wine"] = wine_data
    return VintageDetail.model_validate(data)


async def winery_response(winery: Winery) -> WineryResponse:
    return (await winery_responses([winery]))[0]


async def wine_response(wine: Wine) -> WineResponse:
    return (await wine_responses([wine]))[0]


async def vintage_response(vintage: Vintage) -> VintageResponse:
    return (await vintage_responses([vintage]))[0]
