"""Bottle shot generation with the OpenAI images API.

Generated images have a white studio background. When a remove.bg key is
configured the background is removed and the bottle is trimmed and fitted
onto a transparent 800x1200 canvas, returned inline as a PNG data URL.
"""

import asyncio
import base64
import io
import logging
from dataclasses import dataclass

import httpx
from fastapi import HTTPException, status
from openai import AsyncOpenAI, OpenAIError
from PIL import Image, ImageOps, UnidentifiedImageError

from winehub.config import settings

logger = logging.getLogger(__name__)

REMOVEBG_URL = "https://api.remove.bg/v1.0/removebg"
IMAGE_MODEL = "dall-e-3"
IMAGE_SIZE = "1024x1024"
CANVAS_SIZE = (800, 1200)
# Alpha values at or below this count as empty when trimming
TRIM_THRESHOLD = 10

GLASS_COLOURS = {
    "red": "dark bordeaux",
    "white": "light champagne",
    "rosé": "pink",
}


@dataclass
class BottleImageResult:
    image_url: str
    prompt: str


def build_prompt(
    wine_name: str,
    wine_type: str,
    variety: str | None = None,
    region: str | None = None,
    winery_name: str | None = None,
) -> str:
    """Build the product photography prompt for a wine."""
    glass = GLASS_COLOURS.get(wine_type.lower(), "dark")
    lines = [
        f"Professional product photography of a {wine_type} wine bottle isolated on pure white background.",
        f"The bottle is elegant and premium, with a {glass} glass bottle.",
    ]
    if winery_name:
        lines.append(f'The label shows "{winery_name}" as the winery name.')
    lines.append(f'The label features "{wine_name}" prominently displayed.')
    if variety:
        lines.append(f"It's a {variety} wine.")
    if region:
        lines.append(f"From {region}.")
    lines.append(
        "Clean white background, no shadows, studio lighting on the bottle only, "
        "centered composition, photorealistic, professional product shot, "
        "sharp focus on the label details, cutout style, product photography."
    )
    return "\n".join(lines)


def fit_to_canvas(png_bytes: bytes) -> bytes:
    """Trim transparent edges and center the image on the bottle canvas."""
    image = Image.open(io.BytesIO(png_bytes)).convert("RGBA")

    alpha = image.getchannel("A").point(lambda a: 255 if a > TRIM_THRESHOLD else 0)
    bbox = alpha.getbbox()
    if bbox:
        image = image.crop(bbox)

    image = ImageOps.contain(image, CANVAS_SIZE)
    canvas = Image.new("RGBA", CANVAS_SIZE, (0, 0, 0, 0))
    offset = ((CANVAS_SIZE[0] - image.width) // 2, (CANVAS_SIZE[1] - image.height) // 2)
    canvas.paste(image, offset, image)

    output = io.BytesIO()
    canvas.save(output, format="PNG")
    return output.getvalue()


def to_data_url(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


class BottleImageService:
    """Generates bottle shots and optionally removes their background."""

    def __init__(
        self,
        openai_api_key: str | None = None,
        removebg_api_key: str | None = None,
        openai_client: AsyncOpenAI | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.openai_api_key = openai_api_key if openai_api_key is not None else settings.openai_api_key
        self.removebg_api_key = (
            removebg_api_key if removebg_api_key is not None else settings.removebg_api_key
        )
        self._openai = openai_client
        self._http = http_client

    @property
    def is_configured(self) -> bool:
        return bool(self.openai_api_key) or self._openai is not None

    def _get_openai(self) -> AsyncOpenAI:
        if self._openai is None:
            self._openai = AsyncOpenAI(api_key=self.openai_api_key)
        return self._openai

    async def _remove_background(self, image_url: str) -> bytes:
        data = {"image_url": image_url, "size": "auto", "format": "png"}
        headers = {"X-Api-Key": self.removebg_api_key or ""}
        if self._http is not None:
            response = await self._http.post(REMOVEBG_URL, data=data, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=60.0) as client:
                response = await client.post(REMOVEBG_URL, data=data, headers=headers)
        response.raise_for_status()
        return response.content

    async def process(self, image_url: str) -> str:
        """Remove the background and fit the bottle, or return image_url unchanged."""
        if not self.removebg_api_key:
            logger.info("remove.bg key not configured - keeping white background")
            return image_url

        try:
            removed = await self._remove_background(image_url)
            processed = await asyncio.to_thread(fit_to_canvas, removed)
        except (httpx.HTTPError, UnidentifiedImageError, OSError) as e:
            logger.warning("Background removal failed, using original image: %s", e)
            return image_url

        return to_data_url(processed)

    async def generate(
        self,
        wine_name: str,
        wine_type: str,
        variety: str | None = None,
        region: str | None = None,
        winery_name: str | None = None,
    ) -> BottleImageResult:
        """Generate a bottle shot for a wine.

        Raises:
            HTTPException: 503 when no OpenAI key is configured, 500 when
                generation fails.
        """
        if not self.is_configured:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="AI image generation is not configured. Please contact administrator.",
            )

        prompt = build_prompt(wine_name, wine_type, variety, region, winery_name)
        logger.info("Generating bottle image for %s", wine_name)

        try:
            response = await self._get_openai().images.generate(
                model=IMAGE_MODEL,
                prompt=prompt,
                n=1,
                size=IMAGE_SIZE,
                quality="standard",
                style="natural",
            )
        except OpenAIError as e:
            logger.error("Image generation failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to generate image: {e}",
            )

        generated = response.data[0]
        if not generated.url:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to generate image",
            )

        image_url = await self.process(generated.url)
        return BottleImageResult(image_url=image_url, prompt=generated.revised_prompt or prompt)
