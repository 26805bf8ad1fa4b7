import logging
from typing import Any, Dict, List, Optional

from ..common import database as db
from ..common.errors import NotFoundError, UpstreamError
from ..common.validation import parse
from ..media.cloudinary_host import upload_options
from ..realtime.bus import FOOD_ADDED, FOOD_DELETED, FOOD_UPDATED, NotificationBus
from .schemas import FoodCreate, FoodUpdate

_logger = logging.getLogger(__name__)


class CatalogService:
    """
    Food catalog operations.

    Image host calls are awaited before the matching database write and are
    not rolled back if that write fails.
    """

    def __init__(self, bus: NotificationBus, media, folder: str = "foods"):
        self._bus = bus
        self._media = media
        self._folder = folder

    async def list_foods(self) -> List[Dict[str, Any]]:
        return await db.fetch_foods()

    async def get_food(self, food_id: str) -> Dict[str, Any]:
        food = await db.fetch_food(food_id)
        if food is None:
            raise NotFoundError("Food not found")
        return food

    async def create_food(self, fields: Dict[str, Any], image: Optional[bytes] = None) -> Dict[str, Any]:
        values = parse(FoodCreate, fields).model_dump()
        if image:
            values.update(await self._upload(image))
        food = await db.insert_food(values)
        _logger.info("Food added | id=%s name=%s", food["_id"], food["name"])
        await self._bus.publish(FOOD_ADDED, food)
        return food

    async def update_food(self, food_id: str, fields: Dict[str, Any], image: Optional[bytes] = None) -> Dict[str, Any]:
        existing = await self.get_food(food_id)
        values = parse(FoodUpdate, fields).model_dump(exclude_none=True)
        if image:
            old = existing.get("image") or {}
            if old.get("public_id"):
                await self._destroy(old["public_id"])
            values.update(await self._upload(image))
        food = await db.update_food_row(food_id, values)
        if food is None:
            # removed while the image was uploading
            raise NotFoundError("Food not found")
        _logger.info("Food updated | id=%s fields=%s", food_id, ",".join(sorted(values)) or "-")
        await self._bus.publish(FOOD_UPDATED, food)
        return food

    async def delete_food(self, food_id: str) -> None:
        existing = await self.get_food(food_id)
        image = existing.get("image") or {}
        if image.get("public_id"):
            await self._destroy(image["public_id"])
        if not await db.delete_food_row(food_id):
            raise NotFoundError("Food not found")
        _logger.info("Food deleted | id=%s", food_id)
        await self._bus.publish(FOOD_DELETED, food_id)

    async def _upload(self, image: bytes) -> Dict[str, Any]:
        try:
            result = await self._media.upload(image, upload_options(self._folder))
        except Exception as e:
            _logger.error("Image upload failed | err=%s", e)
            raise UpstreamError("Image upload failed") from e
        return {"image_url": result["secure_url"], "image_public_id": result["public_id"]}

    async def _destroy(self, public_id: str) -> None:
        try:
            await self._media.destroy(public_id)
        except Exception as e:
            _logger.error("Image destroy failed | public_id=%s err=%s", public_id, e)
            raise UpstreamError("Image upload failed") from e
