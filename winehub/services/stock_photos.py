"""Unsplash stock photo lookup for vineyard imagery.

Without an access key, or when Unsplash fails, placeholder photos are
returned so callers never have to handle a missing image.
"""

import logging
import secrets
from dataclasses import dataclass

import httpx

from winehub.config import settings

logger = logging.getLogger(__name__)

UNSPLASH_API_URL = "https://api.unsplash.com"
PLACEHOLDER_PHOTO = "https://images.unsplash.com/photo-1506377247377-2a5b3b417ebb"
REQUEST_TIMEOUT = 15.0


@dataclass
class StockPhoto:
    id: str
    url: str
    download_url: str
    thumb_url: str
    description: str | None
    photographer: str
    photographer_url: str
    width: int
    height: int


def placeholder_photos(count: int = 1) -> list[StockPhoto]:
    """Build placeholder photos pointing at a fixed vineyard image."""
    return [
        StockPhoto(
            id=f"placeholder-{secrets.token_hex(3)}",
            url=f"{PLACEHOLDER_PHOTO}?w=1200&h=800&fit=crop",
            download_url=f"{PLACEHOLDER_PHOTO}?w=1920&h=1280&fit=crop",
            thumb_url=f"{PLACEHOLDER_PHOTO}?w=400&h=267&fit=crop",
            description="Beautiful vineyard landscape",
            photographer="Unsplash",
            photographer_url="https://unsplash.com",
            width=1200,
            height=800,
        )
        for _ in range(count)
    ]


def photo_from_payload(photo: dict) -> StockPhoto:
    """Convert an Unsplash photo object."""
    return StockPhoto(
        id=photo["id"],
        url=photo["urls"]["regular"],
        download_url=photo["urls"]["full"],
        thumb_url=photo["urls"]["thumb"],
        description=photo.get("description") or photo.get("alt_description"),
        photographer=photo["user"]["name"],
        photographer_url=photo["user"]["links"]["html"],
        width=photo.get("width", 0),
        height=photo.get("height", 0),
    )


class StockPhotoService:
    """Client for the Unsplash photo API."""

    def __init__(
        self,
        access_key: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.access_key = access_key if access_key is not None else settings.unsplash_access_key
        self._client = http_client

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Client-ID {self.access_key}"}

    async def _get(self, path: str, params: dict) -> dict | list:
        if self._client is not None:
            response = await self._client.get(
                f"{UNSPLASH_API_URL}{path}", params=params, headers=self._headers()
            )
        else:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                response = await client.get(
                    f"{UNSPLASH_API_URL}{path}", params=params, headers=self._headers()
                )
        response.raise_for_status()
        return response.json()

    async def search(
        self,
        query: str = "vineyard",
        per_page: int = 30,
        page: int = 1,
    ) -> list[StockPhoto]:
        """Search landscape photos matching query."""
        if not self.access_key:
            logger.warning("Unsplash access key not configured - using placeholder images")
            return placeholder_photos(per_page)

        try:
            payload = await self._get(
                "/search/photos",
                {"query": query, "per_page": per_page, "page": page, "orientation": "landscape"},
            )
            return [photo_from_payload(p) for p in payload["results"]]
        except (httpx.HTTPError, KeyError, TypeError) as e:
            logger.error("Error fetching from Unsplash: %s", e)
            return placeholder_photos(per_page)

    async def random(self, query: str = "vineyard,winery") -> StockPhoto:
        """Get one random landscape photo matching query."""
        if not self.access_key:
            logger.warning("Unsplash access key not configured - using placeholder image")
            return placeholder_photos(1)[0]

        try:
            payload = await self._get("/photos/random", {"query": query, "orientation": "landscape"})
            return photo_from_payload(payload)
        except (httpx.HTTPError, KeyError, TypeError) as e:
            logger.error("Error fetching random image from Unsplash: %s", e)
            return placeholder_photos(1)[0]
