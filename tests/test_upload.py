"""Tests for the upload service and endpoints."""

import io

import pytest
from fastapi import HTTPException, UploadFile
from starlette.datastructures import Headers

from winehub.config import get_settings
from winehub.routers import upload as upload_router
from winehub.services.upload_storage import (
    CHUNK_SIZE,
    UploadStorageService,
    detect_image_type,
    extension_for,
    subdir_for,
    validate_filename,
)

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


def make_upload(content: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


class TestHelpers:
    """Pure helpers used by the storage service."""

    def test_subdir_for(self):
        assert subdir_for("image/png") == "images"
        assert subdir_for("image/svg+xml") == "images"
        assert subdir_for("application/pdf") == "documents"
        assert subdir_for("text/csv") == "documents"
        assert subdir_for("application/zip") == "others"

    def test_extension_for(self):
        assert extension_for("Label.JPG", "image/jpeg") == ".jpg"
        assert extension_for("notes", "application/pdf") == ".pdf"
        assert extension_for(None, "application/pdf") == ".pdf"

    def test_detect_image_type(self, sample_image_bytes):
        assert detect_image_type(sample_image_bytes) == ".png"
        assert detect_image_type(b"\xff\xd8\xff\xe0" + b"\x00" * 12) == ".jpg"
        assert detect_image_type(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == ".webp"
        assert detect_image_type(b"RIFF\x00\x00\x00\x00WAVEfmt ") is None
        assert detect_image_type(b"short") is None

    @pytest.mark.parametrize("name", ["", "..", "../etc/passwd", "a/b.png", "a\\b.png", "a\x00.png"])
    def test_validate_filename_rejects_paths(self, name):
        with pytest.raises(HTTPException) as exc_info:
            validate_filename(name)
        assert exc_info.value.status_code == 400

    def test_validate_filename_accepts_plain_names(self):
        assert validate_filename("3f1c.pdf") == "3f1c.pdf"


class TestUploadStorageService:
    """Storage service against a temporary upload root."""

    def test_creates_subdirectories(self, tmp_path):
        UploadStorageService(upload_dir=tmp_path / "files")
        for subdir in ("images", "documents", "others"):
            assert (tmp_path / "files" / subdir).is_dir()

    @pytest.mark.asyncio
    async def test_save_image_uses_detected_extension(self, tmp_path, sample_image_bytes):
        storage = UploadStorageService(upload_dir=tmp_path / "uploads")
        stored = await storage.save(make_upload(sample_image_bytes, "label.bin", "image/png"))

        assert stored.filename.endswith(".png")
        assert stored.original_name == "label.bin"
        assert stored.path == f"uploads/images/{stored.filename}"
        assert stored.size == len(sample_image_bytes)
        assert (tmp_path / "uploads" / "images" / stored.filename).read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_save_document(self, tmp_path):
        storage = UploadStorageService(upload_dir=tmp_path / "uploads")
        stored = await storage.save(make_upload(PDF_BYTES, "tech.pdf", "application/pdf"))
        assert stored.path.startswith("uploads/documents/")
        assert stored.filename.endswith(".pdf")

    @pytest.mark.asyncio
    async def test_save_rejects_disallowed_type(self, tmp_path):
        storage = UploadStorageService(upload_dir=tmp_path, allowed_mimetypes=["image/png"])
        with pytest.raises(HTTPException) as exc_info:
            await storage.save(make_upload(PDF_BYTES, "tech.pdf", "application/pdf"))
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "File type application/pdf is not allowed"

    @pytest.mark.asyncio
    async def test_save_rejects_oversized_file(self, tmp_path):
        storage = UploadStorageService(upload_dir=tmp_path, max_size_bytes=16)
        with pytest.raises(HTTPException) as exc_info:
            await storage.save(make_upload(PDF_BYTES, "tech.pdf", "application/pdf"))
        assert exc_info.value.status_code == 413

    @pytest.mark.asyncio
    async def test_save_copies_large_file_in_chunks(self, tmp_path):
        content = PDF_BYTES + b"0" * (CHUNK_SIZE * 3)
        storage = UploadStorageService(upload_dir=tmp_path, max_size_bytes=len(content))
        stored = await storage.save(make_upload(content, "tech.pdf", "application/pdf"))

        assert stored.size == len(content)
        assert (tmp_path / "documents" / stored.filename).read_bytes() == content

    @pytest.mark.asyncio
    async def test_oversized_file_is_removed_mid_copy(self, tmp_path):
        content = PDF_BYTES + b"0" * (CHUNK_SIZE * 3)
        storage = UploadStorageService(upload_dir=tmp_path, max_size_bytes=CHUNK_SIZE + 1)
        with pytest.raises(HTTPException) as exc_info:
            await storage.save(make_upload(content, "tech.pdf", "application/pdf"))

        assert exc_info.value.status_code == 413
        assert not any((tmp_path / "documents").iterdir())

    @pytest.mark.asyncio
    async def test_save_rejects_spoofed_image(self, tmp_path):
        storage = UploadStorageService(upload_dir=tmp_path)
        with pytest.raises(HTTPException) as exc_info:
            await storage.save(make_upload(b"<html>not an image</html>", "x.png", "image/png"))
        assert exc_info.value.status_code == 400
        assert not any((tmp_path / "images").iterdir())

    @pytest.mark.asyncio
    async def test_find_and_delete(self, tmp_path):
        storage = UploadStorageService(upload_dir=tmp_path)
        stored = await storage.save(make_upload(PDF_BYTES, "tech.pdf", "application/pdf"))

        assert storage.find(stored.filename) == tmp_path / "documents" / stored.filename
        assert storage.get_path("images", stored.filename) is None
        assert storage.get_path("secrets", stored.filename) is None
        assert storage.delete(stored.filename) is True
        assert storage.delete(stored.filename) is False


# =============================================================================
# ENDPOINTS
# =============================================================================


@pytest.mark.asyncio
async def test_upload_single_file(editor_client, editor_user, upload_root, sample_image_bytes) -> None:
    """Test uploading one image through the API."""
    files = {"file": ("label.png", io.BytesIO(sample_image_bytes), "image/png")}
    response = await editor_client.post("/api/upload", files=files)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "File uploaded successfully"
    data = body["data"]
    assert data["originalName"] == "label.png"
    assert data["mimetype"] == "image/png"
    assert data["size"] == len(sample_image_bytes)
    assert data["uploadedBy"] == str(editor_user.id)
    assert data["path"] == f"uploads/images/{data['filename']}"
    assert (upload_root / "images" / data["filename"]).is_file()

    # The stored file can be fetched back
    response = await editor_client.get(f"/api/upload/images/{data['filename']}")
    assert response.status_code == 200
    assert response.content == sample_image_bytes


@pytest.mark.asyncio
async def test_upload_without_file(editor_client) -> None:
    response = await editor_client.post("/api/upload")
    assert response.status_code == 400
    assert response.json()["message"] == "No file uploaded"


@pytest.mark.asyncio
async def test_upload_disallowed_type(editor_client) -> None:
    files = {"file": ("setup.exe", io.BytesIO(b"MZ\x90\x00"), "application/x-msdownload")}
    response = await editor_client.post("/api/upload", files=files)
    assert response.status_code == 400
    assert response.json()["message"] == "File type application/x-msdownload is not allowed"


@pytest.mark.asyncio
async def test_upload_permissions(viewer_client, unauthenticated_client, sample_image_bytes) -> None:
    files = {"file": ("label.png", io.BytesIO(sample_image_bytes), "image/png")}
    response = await viewer_client.post("/api/upload", files=files)
    assert response.status_code == 403

    files = {"file": ("label.png", io.BytesIO(sample_image_bytes), "image/png")}
    response = await unauthenticated_client.post("/api/upload", files=files)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_upload_multiple(editor_client, upload_root, sample_image_bytes) -> None:
    files = [
        ("files", ("front.png", io.BytesIO(sample_image_bytes), "image/png")),
        ("files", ("tech.pdf", io.BytesIO(PDF_BYTES), "application/pdf")),
    ]
    response = await editor_client.post("/api/upload/multiple", files=files)
    assert response.status_code == 201
    data = response.json()["data"]
    assert [f["originalName"] for f in data] == ["front.png", "tech.pdf"]
    assert data[1]["path"].startswith("uploads/documents/")


@pytest.mark.asyncio
async def test_upload_multiple_rolls_back_on_failure(
    editor_client, upload_root, sample_image_bytes
) -> None:
    """Test that one rejected file leaves nothing from the request behind."""
    files = [
        ("files", ("front.png", io.BytesIO(sample_image_bytes), "image/png")),
        ("files", ("fake.png", io.BytesIO(b"definitely not a png"), "image/png")),
    ]
    response = await editor_client.post("/api/upload/multiple", files=files)
    assert response.status_code == 400
    assert list((upload_root / "images").iterdir()) == []


@pytest.mark.asyncio
async def test_upload_multiple_too_many(editor_client, monkeypatch) -> None:
    monkeypatch.setattr(get_settings().config.storage, "max_files_per_request", 2)
    files = [
        ("files", (f"{i}.pdf", io.BytesIO(PDF_BYTES), "application/pdf")) for i in range(3)
    ]
    response = await editor_client.post("/api/upload/multiple", files=files)
    assert response.status_code == 400
    assert response.json()["message"] == "Too many files. Maximum is 2"


@pytest.mark.asyncio
async def test_delete_uploaded_file(editor_client, upload_root) -> None:
    files = {"file": ("tech.pdf", io.BytesIO(PDF_BYTES), "application/pdf")}
    filename = (await editor_client.post("/api/upload", files=files)).json()["data"]["filename"]

    response = await editor_client.delete(f"/api/upload/{filename}")
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "File deleted successfully"}
    assert not (upload_root / "documents" / filename).exists()

    response = await editor_client.delete(f"/api/upload/{filename}")
    assert response.status_code == 404
    assert response.json()["message"] == "File not found"


@pytest.mark.asyncio
async def test_get_missing_file(unauthenticated_client) -> None:
    response = await unauthenticated_client.get("/api/upload/images/missing.png")
    assert response.status_code == 404


def test_storage_is_replaceable(tmp_path) -> None:
    storage = UploadStorageService(upload_dir=tmp_path / "elsewhere")
    upload_router.set_storage(storage)
    assert upload_router.get_storage() is storage
