"""Wine router package."""

from fastapi import APIRouter

from .awards import add_award, remove_award
from .crud import create_wine, delete_wine, get_wine, list_wines, update_wine

router = APIRouter()

# CRUD endpoints
router.add_api_route("", list_wines, methods=["GET"])
router.add_api_route("", create_wine, methods=["POST"], status_code=201)
router.add_api_route("/{wine_id}", get_wine, methods=["GET"])
router.add_api_route("/{wine_id}", update_wine, methods=["PUT"])
router.add_api_route("/{wine_id}", delete_wine, methods=["DELETE"])

# Award endpoints
router.add_api_route("/{wine_id}/awards", add_award, methods=["POST"])
router.add_api_route("/{wine_id}/awards/{award_id}", remove_award, methods=["DELETE"])

__all__ = ["router"]
