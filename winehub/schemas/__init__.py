"""Pydantic schemas for the WineHub API."""

from winehub.schemas.common import (
    APIModel,
    AssetRecordSchema,
    DataResponse,
    ErrorDetail,
    MessageResponse,
    PageResponse,
    UserSummary,
    WinerySummary,
)
from winehub.schemas.user import (
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    UserAdminUpdate,
    UserRead,
)
from winehub.schemas.winery import (
    WineryCreate,
    WineryDetail,
    WineryResponse,
    WineryUpdate,
)
from winehub.schemas.wine import (
    AwardCreate,
    WineCreate,
    WineDetail,
    WineResponse,
    WineUpdate,
    WineWithWinery,
)
from winehub.schemas.vintage import (
    VintageCreate,
    VintageDetail,
    VintageResponse,
    VintageUpdate,
)
from winehub.schemas.upload import UploadedFile
from winehub.schemas.ai import GeneratedImage, GenerateImageRequest, ManualImageRequest

# Resolve the forward references between winery, wine and vintage detail views
WineryDetail.model_rebuild(_types_namespace={"WineResponse": WineResponse})
WineDetail.model_rebuild(_types_namespace={"VintageResponse": VintageResponse})

__all__ = [
    "APIModel",
    "AssetRecordSchema",
    "DataResponse",
    "ErrorDetail",
    "MessageResponse",
    "PageResponse",
    "UserSummary",
    "WinerySummary",
    "AuthResponse",
    "LoginRequest",
    "ProfileUpdate",
    "RegisterRequest",
    "UserAdminUpdate",
    "UserRead",
    "WineryCreate",
    "WineryDetail",
    "WineryResponse",
    "WineryUpdate",
    "AwardCreate",
    "WineCreate",
    "WineDetail",
    "WineResponse",
    "WineUpdate",
    "WineWithWinery",
    "VintageCreate",
    "VintageDetail",
    "VintageResponse",
    "VintageUpdate",
    "UploadedFile",
    "GeneratedImage",
    "GenerateImageRequest",
    "ManualImageRequest",
]
