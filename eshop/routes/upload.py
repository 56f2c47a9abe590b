"""
Image upload for the admin panel.
"""

from fastapi import APIRouter, Depends, File, UploadFile

from ..models.user import User
from ..services.media import MediaService, get_media_service
from .users import get_admin_user

router = APIRouter()


@router.post("")
async def upload_image(
    file: UploadFile = File(...),
    admin_user: User = Depends(get_admin_user),
    media: MediaService = Depends(get_media_service)
):
    """Stores a product/banner image and returns its public URL."""
    url = await media.save_image(file)
    return {"success": True, "url": url}
