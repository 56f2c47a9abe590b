"""
API routes for customer orders.
"""

from fastapi import APIRouter, Depends, HTTPException

from ..models.order import OrderList, OrderResponse
from ..models.user import User
from ..services.database import DatabaseService, get_db
from ..services.orders import get_order, order_from_rows
from .users import get_current_user

router = APIRouter()


async def _with_current_products(db: DatabaseService, order: dict) -> dict:
    """Adds the product's current title and thumbnail to items whose product still exists."""
    for item in order["items"]:
        if item["product_id"] is None:
            continue
        product = await db.fetch_one(
            "SELECT id, title, thumbnail_url FROM products WHERE id = ?", (item["product_id"],)
        )
        item["product"] = product
    return order


@router.get("", response_model=OrderList)
async def get_my_orders(
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    """Orders of the current user, newest first."""
    rows = await db.fetch_all(
        "SELECT * FROM orders WHERE user_id = ? ORDER BY created_at DESC, id DESC",
        (current_user.id,)
    )
    orders = []
    for row in rows:
        items = await db.fetch_all(
            "SELECT * FROM order_items WHERE order_id = ? ORDER BY id", (row["id"],)
        )
        orders.append(order_from_rows(row, items))
    return {"orders": orders}


@router.get("/{order_id}", response_model=OrderResponse)
async def get_my_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    order = await get_order(db, order_id)
    if not order or (order["user_id"] != current_user.id and not current_user.is_admin):
        raise HTTPException(status_code=404, detail="Order not found")
    return {"order": await _with_current_products(db, order)}
