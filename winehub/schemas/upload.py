"""Pydantic schemas for the upload service."""

from datetime import datetime

from winehub.schemas.common import APIModel


class UploadedFile(APIModel):
    """Metadata of a stored upload, ready to embed as an asset record."""

    filename: str
    original_name: str
    path: str
    mimetype: str
    size: int
    uploaded_at: datetime
    uploaded_by: str
