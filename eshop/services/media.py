"""
Uploaded image storage.
"""

import uuid
from pathlib import Path
from typing import Optional

import aiofiles
from fastapi import HTTPException, UploadFile

from ..config import settings
from ..logger import get_logger

logger = get_logger(__name__)

EXTENSION_MAP = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


class MediaService:
    """Stores uploaded images under UPLOADS_DIR/<folder>/ and returns their /media URL."""

    def __init__(self, uploads_dir: Path = None):
        self.uploads_dir = Path(uploads_dir or settings.UPLOADS_DIR)
        self.max_size = settings.MAX_FILE_SIZE
        self.allowed_images = settings.ALLOWED_IMAGE_TYPES

    async def save_image(self, file: UploadFile, folder: str = "products") -> str:
        """
        Validates and saves an uploaded image.

        Returns:
            str: URL of the stored file, e.g. ``/media/products/<uuid>.png``

        Raises:
            HTTPException: 400 for non-image files, 413 when the file is too large.
        """
        content_type = file.content_type
        if content_type not in self.allowed_images:
            raise HTTPException(
                status_code=400,
                detail=f"Unsupported file type: {content_type}. Allowed: {', '.join(self.allowed_images)}"
            )

        content = await file.read()
        if len(content) > self.max_size:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum size: {self.max_size / 1024 / 1024:.1f} MB"
            )

        extension = Path(file.filename or "").suffix.lower() or EXTENSION_MAP.get(content_type, ".jpg")
        filename = f"{uuid.uuid4().hex}{extension}"

        target_dir = self.uploads_dir / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(target_dir / filename, "wb") as f:
            await f.write(content)

        logger.info("[MEDIA] Stored %s (%d bytes)", filename, len(content))
        return f"/media/{folder}/{filename}"


_media_service: Optional[MediaService] = None


def get_media_service() -> MediaService:
    """FastAPI dependency returning the MediaService."""
    global _media_service
    if _media_service is None:
        _media_service = MediaService()
    return _media_service
