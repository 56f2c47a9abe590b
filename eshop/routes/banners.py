"""
API routes for banners.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..models.banner import Banner, BannerCreate, BannerUpdate
from ..models.user import User
from ..services.database import DatabaseService, get_db, now_ts
from .users import get_admin_user

router = APIRouter()
admin_router = APIRouter()


async def _get_banner(db: DatabaseService, banner_id: int) -> dict:
    banner = await db.fetch_one("SELECT * FROM banners WHERE id = ?", (banner_id,))
    if not banner:
        raise HTTPException(status_code=404, detail="Banner not found")
    return banner


@router.get("", response_model=List[Banner])
async def get_active_banners(db: DatabaseService = Depends(get_db)):
    """Active banners for the storefront carousel."""
    return await db.fetch_all(
        """SELECT * FROM banners
           WHERE is_active = 1
           ORDER BY display_order ASC, created_at DESC, id DESC"""
    )


# ==================== Admin ====================

@admin_router.get("", response_model=List[Banner])
async def get_all_banners(
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    return await db.fetch_all(
        "SELECT * FROM banners ORDER BY display_order ASC, created_at DESC, id DESC"
    )


@admin_router.get("/{banner_id}", response_model=Banner)
async def get_banner(
    banner_id: int,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    return await _get_banner(db, banner_id)


@admin_router.post("", response_model=Banner, status_code=201)
async def create_banner(
    banner: BannerCreate,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    data = banner.model_dump()
    data["is_active"] = 1 if banner.is_active else 0
    banner_id = await db.insert("banners", data)
    return await _get_banner(db, banner_id)


@admin_router.put("/{banner_id}", response_model=Banner)
async def update_banner(
    banner_id: int,
    banner_update: BannerUpdate,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    await _get_banner(db, banner_id)

    update_data = banner_update.model_dump(exclude_unset=True)
    for required in ("image_url", "alt_text"):
        if required in update_data and not (update_data[required] or "").strip():
            raise HTTPException(status_code=400, detail=f"{required} cannot be empty")
    if update_data.get("is_active") is None:
        update_data.pop("is_active", None)
    if update_data.get("display_order") is None:
        update_data.pop("display_order", None)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    if "is_active" in update_data:
        update_data["is_active"] = 1 if update_data["is_active"] else 0
    update_data["updated_at"] = now_ts()
    await db.update("banners", update_data, "id = ?", (banner_id,))
    return await _get_banner(db, banner_id)


@admin_router.delete("/{banner_id}")
async def delete_banner(
    banner_id: int,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    await _get_banner(db, banner_id)
    await db.delete("banners", "id = ?", (banner_id,))
    return {"message": "Banner deleted successfully"}
