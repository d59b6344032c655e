"""Vintage router package."""

from fastapi import APIRouter

from .assets import clear_asset, set_asset
from .crud import create_vintage, delete_vintage, get_vintage, list_vintages, update_vintage

router = APIRouter()

# CRUD endpoints
router.add_api_route("", list_vintages, methods=["GET"])
router.add_api_route("", create_vintage, methods=["POST"], status_code=201)
router.add_api_route("/{vintage_id}", get_vintage, methods=["GET"])
router.add_api_route("/{vintage_id}", update_vintage, methods=["PUT"])
router.add_api_route("/{vintage_id}", delete_vintage, methods=["DELETE"])

# Asset slot endpoints
router.add_api_route("/{vintage_id}/assets/{asset_type}", set_asset, methods=["PUT"])
router.add_api_route("/{vintage_id}/assets/{asset_type}", clear_asset, methods=["DELETE"])

__all__ = ["router"]
