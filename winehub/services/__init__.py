"""Services for WineHub application."""

from winehub.services.bottle_images import BottleImageService
from winehub.services.stock_photos import StockPhotoService
from winehub.services.upload_storage import UploadStorageService

__all__ = ["BottleImageService", "StockPhotoService", "UploadStorageService"]
