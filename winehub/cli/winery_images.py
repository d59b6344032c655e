"""Assign stock vineyard photos to wineries.

Usage:
    winehub-winery-images [--overwrite]

Without --overwrite only wineries lacking a featured image are updated.
"""

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from winehub.database import close_db, init_db
from winehub.models import AssetRecord, Winery
from winehub.models.common import utcnow
from winehub.services.stock_photos import StockPhotoService

logger = logging.getLogger(__name__)

PHOTO_QUERY = "vineyard,winery,wine estate"


async def assign_images(
    service: StockPhotoService,
    overwrite: bool = False,
    delay: float = 1.0,
) -> tuple[int, int]:
    """Give wineries a featured image.

    Returns:
        (updated, failed) counts.
    """
    query = {} if overwrite else {"featured_image.path": None}
    wineries = await Winery.find(query).to_list()

    if not wineries:
        print("All wineries already have featured images!")
        return 0, 0

    print(f"Adding images to {len(wineries)} wineries...")
    updated = 0
    failed = 0

    for winery in wineries:
        photo = await service.random(PHOTO_QUERY)
        winery.featured_image = AssetRecord(
            filename=f"{photo.id}.jpg",
            path=photo.url,
            mimetype="image/jpeg",
            size=0,
            uploaded_at=utcnow(),
        )
        try:
            await winery.save()
        except (PyMongoError, ValidationError) as e:
            logger.error("Could not update winery %s: %s", winery.id, e)
            failed += 1
            continue

        print(f"  {winery.name}: photo by {photo.photographer}")
        updated += 1

        # Stay inside the Unsplash rate limit
        if delay:
            await asyncio.sleep(delay)

    return updated, failed


async def run(overwrite: bool) -> tuple[int, int]:
    await init_db()
    try:
        return await assign_images(StockPhotoService(), overwrite=overwrite)
    finally:
        await close_db()


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Assign Unsplash vineyard photos to wineries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace existing featured images",
    )
    args = parser.parse_args()

    if args.overwrite:
        print("Overwrite mode: will replace existing images")

    try:
        updated, failed = asyncio.run(run(args.overwrite))
    except KeyboardInterrupt:
        print("\nAborted.")
        return 1

    print(f"Complete. Updated: {updated}")
    if failed:
        print(f"Errors: {failed}")
        return 1

    print("Images are from Unsplash and require attribution.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
