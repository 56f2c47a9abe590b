"""
Public store settings (announcement bar, payment gateway, charges).
"""

from fastapi import APIRouter, Depends

from ..models.setting import PublicSettings
from ..services.database import DatabaseService, get_db
from ..services.store_settings import load_settings

router = APIRouter()


@router.get("", response_model=PublicSettings)
async def get_public_settings(db: DatabaseService = Depends(get_db)):
    """Settings the storefront needs; defaults when nothing has been saved yet."""
    return await load_settings(db)
