"""File upload endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import FileResponse

from winehub.config import settings
from winehub.models import User
from winehub.schemas import DataResponse, MessageResponse, UploadedFile
from winehub.services.policy import Action, ResourceKind, require_permission
from winehub.services.upload_storage import StoredFile, UploadStorageService

logger = logging.getLogger(__name__)

CanCreateUpload = Annotated[User, Depends(require_permission(Action.CREATE, ResourceKind.UPLOAD))]
CanDeleteUpload = Annotated[User, Depends(require_permission(Action.DELETE, ResourceKind.UPLOAD))]

router = APIRouter()

_storage: UploadStorageService | None = None


def get_storage() -> UploadStorageService:
    """Get the upload storage service, created on first use."""
    global _storage
    if _storage is None:
        _storage = UploadStorageService()
    return _storage


def set_storage(storage: UploadStorageService | None) -> None:
    """Replace the storage service (tests point it at a temporary root)."""
    global _storage
    _storage = storage


def _uploaded(stored: StoredFile, user_id: str) -> UploadedFile:
    return UploadedFile(
        filename=stored.filename,
        original_name=stored.original_name or stored.filename,
        path=stored.path,
        mimetype=stored.mimetype,
        size=stored.size,
        uploaded_at=stored.uploaded_at,
        uploaded_by=user_id,
    )


def _no_file() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="No file uploaded",
    )


@router.post("", response_model=DataResponse[UploadedFile], status_code=status.HTTP_201_CREATED)
async def upload_file(
    current_user: CanCreateUpload,
    file: Annotated[UploadFile | None, File()] = None,
) -> dict:
    """Store a single file."""
    if file is None or not file.filename:
        raise _no_file()

    stored = await get_storage().save(file)
    return {
        "success": True,
        "message": "File uploaded successfully",
        "data": _uploaded(stored, str(current_user.id)),
    }


@router.post(
    "/multiple",
    response_model=DataResponse[list[UploadedFile]],
    status_code=status.HTTP_201_CREATED,
)
async def upload_multiple(
    current_user: CanCreateUpload,
    files: Annotated[list[UploadFile] | None, File()] = None,
) -> dict:
    """Store several files at once.

    When one file is rejected, the files already stored by this request are
    removed again.
    """
    files = [f for f in files or [] if f.filename]
    if not files:
        raise _no_file()
    if len(files) > settings.max_files_per_request:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Too many files. Maximum is {settings.max_files_per_request}",
        )

    storage = get_storage()
    stored = []
    try:
        for f in files:
            stored.append(await storage.save(f))
    except HTTPException:
        for s in stored:
            storage.delete(s.filename)
        raise

    return {
        "success": True,
        "message": f"{len(stored)} files uploaded successfully",
        "data": [_uploaded(s, str(current_user.id)) for s in stored],
    }


@router.delete("/{filename}", response_model=MessageResponse)
async def delete_file(
    filename: str,
    current_user: CanDeleteUpload,
) -> dict:
    """Delete a stored file by name."""
    if not get_storage().delete(filename):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )

    logger.info("Upload deleted: filename=%s, user_id=%s", filename, current_user.id)
    return {"success": True, "message": "File deleted successfully"}


@router.get("/{subdir}/{filename}")
async def get_file(subdir: str, filename: str) -> FileResponse:
    """Serve a stored file."""
    file_path = get_storage().get_path(subdir, filename)
    if file_path is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )
    return FileResponse(file_path)
