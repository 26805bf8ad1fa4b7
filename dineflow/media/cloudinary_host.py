import asyncio
import io
import logging
from typing import Any, Dict, List

import cloudinary
import cloudinary.uploader

from ..common.config import Settings

_logger = logging.getLogger(__name__)

# Bound to 800x800, automatic compression and format
TRANSFORMATION: List[Dict[str, Any]] = [
    {"width": 800, "height": 800, "crop": "limit"},
    {"quality": "auto", "fetch_format": "auto"},
]


def upload_options(folder: str) -> Dict[str, Any]:
    return {"folder": folder, "transformation": TRANSFORMATION}


class CloudinaryHost:
    """Blob host adapter. The SDK is blocking, so calls run in a worker thread."""

    def __init__(self, cfg: Settings):
        missing = [
            name
            for name in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")
            if not getattr(cfg, name)
        ]
        if missing:
            _logger.error("Missing Cloudinary credentials | missing=%s", ",".join(missing))
        cloudinary.config(
            cloud_name=cfg.CLOUDINARY_CLOUD_NAME,
            api_key=cfg.CLOUDINARY_API_KEY,
            api_secret=cfg.CLOUDINARY_API_SECRET,
            secure=True,
        )

    async def upload(self, data: bytes, options: Dict[str, Any]) -> Dict[str, Any]:
        result = await asyncio.to_thread(cloudinary.uploader.upload, io.BytesIO(data), **options)
        _logger.info("Uploaded image | public_id=%s bytes=%s", result.get("public_id"), len(data))
        return {"secure_url": result["secure_url"], "public_id": result["public_id"]}

    async def destroy(self, public_id: str) -> None:
        result = await asyncio.to_thread(cloudinary.uploader.destroy, public_id)
        _logger.info("Destroyed image | public_id=%s result=%s", public_id, result.get("result"))
