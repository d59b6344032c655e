"""Common utilities shared by the catalog routers."""

import logging
import math
import re
from dataclasses import dataclass
from typing import Annotated, Any, Iterable, TypeVar

from beanie import Document, PydanticObjectId
from bson.errors import InvalidId
from fastapi import Depends, HTTPException, Query, status
from pydantic import BaseModel, ValidationError

from winehub.config import settings
from winehub.models import CatalogDocument, ContentStatus, User, Wine, Winery

logger = logging.getLogger(__name__)

DocT = TypeVar("DocT", bound=Document)

# Fields the server stamps; never taken from a request body
SERVER_FIELDS = {"id", "created_by", "updated_by", "created_at", "updated_at", "revision_id"}


def parse_object_id(value: str, label: str) -> PydanticObjectId:
    """Parse a path id, treating malformed ids as not found."""
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError, ValidationError) as e:
        logger.debug("Invalid %s ID format: %s - %s", label, value, e)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} not found",
        )


def parse_filter_id(value: str, label: str) -> PydanticObjectId:
    """Parse an id given as a list filter; malformed ids are a bad request."""
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label.lower()} id: {value}",
        )


async def get_or_404(
    model: type[DocT],
    doc_id: str,
    label: str,
    viewer: User | None = None,
    anonymous_check: bool = False,
) -> DocT:
    """Load a document by id or raise 404.

    With anonymous_check, documents that are not published are hidden
    from callers without a viewer.
    """
    oid = parse_object_id(doc_id, label)
    doc = await model.get(oid)
    if doc is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} not found",
        )
    hidden = getattr(doc, "status", None) != ContentStatus.PUBLISHED
    if anonymous_check and viewer is None and hidden:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} not found",
        )
    return doc


def search_pattern(term: str) -> dict[str, str]:
    """Case-insensitive substring match with the term taken literally."""
    return {"$regex": re.escape(term), "$options": "i"}


def visibility_filter(viewer: User | None, requested: ContentStatus | None) -> dict[str, Any]:
    """Status filter: anonymous callers only ever see published documents."""
    if viewer is None:
        return {"status": ContentStatus.PUBLISHED.value}
    if requested is not None:
        return {"status": requested.value}
    return {}


@dataclass
class Pagination:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def get_pagination(
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> Pagination:
    """Read page and limit from the query string."""
    if limit is None:
        limit = settings.default_page_size
    if limit > settings.max_page_size:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"limit must be between 1 and {settings.max_page_size}",
        )
    return Pagination(page=page, limit=limit)


PageParams = Annotated[Pagination, Depends(get_pagination)]


async def paginate(
    model: type[DocT],
    query: dict[str, Any],
    pagination: Pagination,
    sort: list[tuple[str, int]],
) -> tuple[list[DocT], int]:
    """Fetch one page of documents and the total match count.

    The id breaks ties so documents sharing a sort key keep a stable order
    across pages.
    """
    total = await model.find(query).count()
    docs = (
        await model.find(query)
        .sort([*sort, ("_id", -1)])
        .skip(pagination.skip)
        .limit(pagination.limit)
        .to_list()
    )
    return docs, total


def page_envelope(data: list, total: int, pagination: Pagination) -> dict[str, Any]:
    return {
        "success": True,
        "count": len(data),
        "total": total,
        "total_pages": math.ceil(total / pagination.limit) if total else 0,
        "current_page": pagination.page,
        "data": data,
    }


async def fetch_users(ids: Iterable[PydanticObjectId | None]) -> dict[PydanticObjectId, dict]:
    """Batch-fetch user summaries keyed by id."""
    wanted = list({i for i in ids if i is not None})
    if not wanted:
        return {}
    users = await User.find({"_id": {"$in": wanted}}).to_list()
    return {
        u.id: {"id": u.id, "first_name": u.first_name, "last_name": u.last_name}
        for u in users
    }


async def fetch_wineries(ids: Iterable[PydanticObjectId | None]) -> dict[PydanticObjectId, Winery]:
    wanted = list({i for i in ids if i is not None})
    if not wanted:
        return {}
    wineries = await Winery.find({"_id": {"$in": wanted}}).to_list()
    return {w.id: w for w in wineries}


async def fetch_wines(ids: Iterable[PydanticObjectId | None]) -> dict[PydanticObjectId, Wine]:
    wanted = list({i for i in ids if i is not None})
    if not wanted:
        return {}
    wines = await Wine.find({"_id": {"$in": wanted}}).to_list()
    return {w.id: w for w in wines}


def audit_ids(docs: Iterable[CatalogDocument]) -> list[PydanticObjectId | None]:
    ids = []
    for doc in docs:
        ids.extend([doc.created_by, doc.updated_by])
    return ids


def dump_with_users(doc: CatalogDocument, users: dict[PydanticObjectId, dict]) -> dict[str, Any]:
    """Dump a document with createdBy/updatedBy replaced by user summaries."""
    data = doc.model_dump()
    data["created_by"] = users.get(doc.created_by) if doc.created_by else None
    data["updated_by"] = users.get(doc.updated_by) if doc.updated_by else None
    return data


def apply_update(doc: DocT, update: BaseModel) -> DocT:
    """Merge the provided fields of update into doc and revalidate.

    Only top-level fields merge; a nested object in update replaces the
    stored one whole.

    The merged document is validated as a whole, so a field that is valid on
    its own but breaks a document rule still fails. Raises ValidationError.
    """
    changes = {
        k: v for k, v in update.model_dump(exclude_unset=True).items() if k not in SERVER_FIELDS
    }
    merged = doc.model_dump()
    merged.update(changes)
    validated = type(doc).model_validate(merged)
    for field in changes:
        setattr(doc, field, getattr(validated, field))
    return doc


def conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
