"""Shared schemas: camelCase base model, response envelopes and summaries."""

from datetime import datetime
from typing import Annotated, Any, Generic, Optional, TypeVar

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

T = TypeVar("T")


def _object_id_to_str(v: Any) -> Any:
    """Convert ObjectId to string."""
    if isinstance(v, ObjectId):
        return str(v)
    return v


ObjectIdStr = Annotated[str, BeforeValidator(_object_id_to_str)]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class APIModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class AssetRecordSchema(APIModel):
    """Uploaded file metadata as sent and returned by the API."""

    filename: Optional[str] = None
    path: Optional[str] = None
    mimetype: Optional[str] = None
    size: Optional[int] = Field(default=None, ge=0)
    uploaded_at: Optional[datetime] = None


class UserSummary(APIModel):
    """Populated createdBy/updatedBy reference."""

    id: ObjectIdStr
    first_name: str = ""
    last_name: str = ""


class WinerySummary(APIModel):
    """Populated winery reference in wine listings."""

    id: ObjectIdStr
    name: str
    logo: Optional[AssetRecordSchema] = None


class ErrorDetail(APIModel):
    field: str
    message: str


class MessageResponse(APIModel):
    success: bool = True
    message: str


class DataResponse(APIModel, Generic[T]):
    """Single-item envelope."""

    success: bool = True
    message: Optional[str] = None
    data: T


class PageResponse(APIModel, Generic[T]):
    """Paginated list envelope."""

    success: bool = True
    count: int
    total: int
    total_pages: int
    current_page: int
    data: list[T]
