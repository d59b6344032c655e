"""Upload storage service for catalog assets.

Files land under ``<upload_dir>/<subdir>/<uuid><ext>`` where the subdirectory
is picked from the MIME type. The ``path`` recorded in documents is relative
to the directory that holds the upload root, e.g. ``uploads/images/<name>``,
which is also the URL under which the static mount serves it.
"""

import logging
import mimetypes
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import aiofiles
from fastapi import HTTPException, UploadFile, status

from winehub.config import settings

logger = logging.getLogger(__name__)

# Uploads are copied to disk in pieces of this size
CHUNK_SIZE = 64 * 1024

# Subdirectories searched in this order on delete
SUBDIRS = ("images", "documents", "others")

DOCUMENT_MIMETYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
}

# Raster formats whose content must match the declared type
RASTER_MIMETYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}

# Magic byte signatures for image formats
# Each entry is (magic_bytes, offset, detected_extension)
IMAGE_MAGIC_SIGNATURES = [
    (b"\xff\xd8\xff", 0, ".jpg"),
    (b"\x89PNG\r\n\x1a\n", 0, ".png"),
    (b"GIF87a", 0, ".gif"),
    (b"GIF89a", 0, ".gif"),
    (b"RIFF", 0, ".webp"),  # WEBP marker checked at offset 8
]


def detect_image_type(content: bytes) -> str | None:
    """Detect image type from file content using magic bytes.

    Returns:
        The detected extension (e.g., ".jpg") or None if not a valid image.
    """
    if len(content) < 12:
        return None

    for magic, offset, ext in IMAGE_MAGIC_SIGNATURES:
        if content[offset:offset + len(magic)] == magic:
            if ext == ".webp" and content[8:12] != b"WEBP":
                continue
            return ext

    return None


def subdir_for(mimetype: str) -> str:
    """Pick the storage subdirectory for a MIME type."""
    if mimetype.startswith("image/"):
        return "images"
    if mimetype in DOCUMENT_MIMETYPES:
        return "documents"
    return "others"


def extension_for(filename: str | None, mimetype: str) -> str:
    """Keep the client's extension when it has one, else guess from the type."""
    if filename:
        ext = Path(filename).suffix.lower()
        if ext and len(ext) <= 10:
            return ext
    return mimetypes.guess_extension(mimetype) or ""


def validate_filename(filename: str) -> str:
    """Reject names carrying path components."""
    if (
        not filename
        or filename in (".", "..")
        or "/" in filename
        or "\\" in filename
        or "\x00" in filename
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid filename",
        )
    return filename


@dataclass
class StoredFile:
    """Metadata of a file written to the upload root."""

    filename: str
    original_name: str | None
    path: str
    mimetype: str
    size: int
    uploaded_at: datetime


class UploadStorageService:
    """Service for storing and removing uploaded files."""

    def __init__(
        self,
        upload_dir: Path | None = None,
        max_size_bytes: int | None = None,
        allowed_mimetypes: list[str] | None = None,
    ) -> None:
        """Initialize the upload storage service.

        Args:
            upload_dir: Upload root. Defaults to config setting.
            max_size_bytes: Maximum file size in bytes. Defaults to config setting.
            allowed_mimetypes: Accepted MIME types. Defaults to config setting.
        """
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self.max_size_bytes = max_size_bytes or settings.max_upload_size_bytes
        self.allowed_mimetypes = set(allowed_mimetypes or settings.allowed_mimetypes)
        for subdir in SUBDIRS:
            (self.upload_dir / subdir).mkdir(parents=True, exist_ok=True)

    def relative_path(self, subdir: str, filename: str) -> str:
        return f"{self.upload_dir.name}/{subdir}/{filename}"

    async def save(self, upload_file: UploadFile) -> StoredFile:
        """Validate and store one uploaded file.

        The body is copied to disk in ``CHUNK_SIZE`` pieces; a file that
        passes the size limit is removed as soon as the limit is crossed.

        Raises:
            HTTPException: 400 for a disallowed type or content that does not
                match it, 413 when the file exceeds the size limit.
        """
        mimetype = (upload_file.content_type or "application/octet-stream").lower()
        if mimetype not in self.allowed_mimetypes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File type {mimetype} is not allowed",
            )

        chunk = await upload_file.read(CHUNK_SIZE)
        ext = extension_for(upload_file.filename, mimetype)
        if mimetype in RASTER_MIMETYPES:
            detected_ext = detect_image_type(chunk)
            if detected_ext is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Invalid file content. File does not appear to be a valid image.",
                )
            ext = detected_ext

        subdir = subdir_for(mimetype)
        filename = f"{uuid.uuid4()}{ext}"
        file_path = self.upload_dir / subdir / filename

        size = 0
        try:
            async with aiofiles.open(file_path, "wb") as f:
                while chunk:
                    size += len(chunk)
                    if size > self.max_size_bytes:
                        max_mb = self.max_size_bytes / (1024 * 1024)
                        raise HTTPException(
                            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
                            detail=f"File size exceeds maximum allowed size of {max_mb:.1f} MB",
                        )
                    await f.write(chunk)
                    chunk = await upload_file.read(CHUNK_SIZE)
        except Exception:
            file_path.unlink(missing_ok=True)
            raise

        logger.info("Stored upload %s (%s, %d bytes)", file_path, mimetype, size)
        return StoredFile(
            filename=filename,
            original_name=upload_file.filename,
            path=self.relative_path(subdir, filename),
            mimetype=mimetype,
            size=size,
            uploaded_at=datetime.now(timezone.utc),
        )

    def find(self, filename: str) -> Path | None:
        """Find a stored file by name, searching subdirectories in order."""
        validate_filename(filename)
        for subdir in SUBDIRS:
            file_path = self.upload_dir / subdir / filename
            if file_path.is_file():
                return file_path
        return None

    def get_path(self, subdir: str, filename: str) -> Path | None:
        """Get the full path to a stored file in one subdirectory."""
        validate_filename(filename)
        if subdir not in SUBDIRS:
            return None
        file_path = self.upload_dir / subdir / filename
        if file_path.is_file():
            return file_path
        return None

    def delete(self, filename: str) -> bool:
        """Delete a stored file.

        Returns:
            True if deleted, False if not found.
        """
        file_path = self.find(filename)
        if file_path is None:
            return False
        file_path.unlink()
        logger.info("Deleted upload %s", file_path)
        return True
