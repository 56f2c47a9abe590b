"""
Address book of the signed-in user.
"""

from fastapi import APIRouter, Depends, HTTPException

from ..models.user import ShippingAddressCreate, ShippingAddressUpdate, User
from ..services.accounts import (
    add_address,
    clear_primary,
    ensure_primary_address,
    get_user_with_addresses,
    list_addresses,
)
from ..services.database import DatabaseService, get_db, now_ts
from .users import get_current_user

router = APIRouter()


async def _get_own_address(db: DatabaseService, user_id: int, address_id: int) -> dict:
    address = await db.fetch_one(
        "SELECT * FROM user_addresses WHERE id = ? AND user_id = ?",
        (address_id, user_id)
    )
    if not address:
        raise HTTPException(status_code=404, detail="Address not found")
    return address


@router.get("/addresses")
async def get_addresses(
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    return {"addresses": await list_addresses(db, current_user.id)}


@router.post("/addresses", status_code=201)
async def create_address(
    address: ShippingAddressCreate,
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    """Adds an address. A primary address un-marks the previous one."""
    await add_address(db, current_user.id, address.model_dump())
    return {
        "message": "Address added successfully",
        "user": await get_user_with_addresses(db, current_user.id),
    }


@router.put("/addresses/{address_id}")
async def update_address(
    address_id: int,
    address_update: ShippingAddressUpdate,
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    await _get_own_address(db, current_user.id, address_id)

    update_data = {
        k: v for k, v in address_update.model_dump(exclude_unset=True).items()
        if v is not None or k == "phone"
    }
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    async with db.transaction():
        if update_data.get("is_primary"):
            await clear_primary(db, current_user.id, except_id=address_id)
        if "is_primary" in update_data:
            update_data["is_primary"] = 1 if update_data["is_primary"] else 0
        update_data["updated_at"] = now_ts()
        await db.update("user_addresses", update_data, "id = ?", (address_id,))
        await ensure_primary_address(db, current_user.id)

    return {
        "message": "Address updated successfully",
        "user": await get_user_with_addresses(db, current_user.id),
    }


@router.delete("/addresses/{address_id}")
async def delete_address(
    address_id: int,
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    """Removes an address; the first remaining one becomes primary if needed."""
    await _get_own_address(db, current_user.id, address_id)

    async with db.transaction():
        await db.delete("user_addresses", "id = ?", (address_id,))
        await ensure_primary_address(db, current_user.id)

    return {
        "message": "Address deleted successfully",
        "user": await get_user_with_addresses(db, current_user.id),
    }
