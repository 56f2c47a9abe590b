"""
API routes for the shopping cart.
"""

from fastapi import APIRouter, Depends, HTTPException

from ..models.cart import CartItemCreate, CartItemUpdate, CartResponse
from ..models.user import User
from ..services.catalog import available_stock, find_color, get_product, product_image
from ..services.database import DatabaseService, get_db, now_ts
from ..services.pricing import checkout_totals, unit_price
from .users import get_current_user

router = APIRouter()


def _cart_item(row: dict) -> dict:
    color = None
    if row.get("color_name"):
        color = {"name": row["color_name"], "hex_code": row.get("color_hex_code")}
    return {
        "id": row["id"],
        "product_id": row["product_id"],
        "quantity": row["quantity"],
        "name": row["name_snapshot"],
        "price": row["price_snapshot"],
        "image": row.get("image_snapshot"),
        "selected_color": color,
    }


async def load_cart(db: DatabaseService, user_id: int) -> dict:
    rows = await db.fetch_all(
        "SELECT * FROM cart_items WHERE user_id = ? ORDER BY id", (user_id,)
    )
    items = [_cart_item(row) for row in rows]
    totals = checkout_totals([(item["price"], item["quantity"]) for item in items])
    return {"user_id": user_id, "items": items, "subtotal": totals["subtotal"]}


def _check_quantity(product: dict, color_name, quantity: int) -> None:
    min_quantity = product.get("min_order_quantity") or 1
    if quantity < min_quantity:
        raise HTTPException(
            status_code=400,
            detail=f"Minimum order quantity for {product['title']} is {min_quantity}"
        )
    stock = available_stock(product, color_name)
    if quantity > stock:
        raise HTTPException(
            status_code=400,
            detail=f"Not enough stock for {product['title']}. Only {stock} available."
        )


async def _get_own_item(db: DatabaseService, user_id: int, item_id: int) -> dict:
    item = await db.fetch_one(
        "SELECT * FROM cart_items WHERE id = ? AND user_id = ?", (item_id, user_id)
    )
    if not item:
        raise HTTPException(status_code=404, detail="Item not found in cart")
    return item


@router.get("", response_model=CartResponse)
async def get_cart(
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    return {"cart": await load_cart(db, current_user.id)}


@router.post("", response_model=CartResponse)
async def add_to_cart(
    item: CartItemCreate,
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    """Adds a product (or sets the quantity of the existing product/color line)."""
    product = await get_product(db, item.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    color = None
    if item.selected_color_name:
        color = find_color(product, item.selected_color_name)
        if color is None:
            raise HTTPException(
                status_code=400,
                detail=f"Color '{item.selected_color_name}' is not available for this product"
            )
    color_name = color["name"] if color else None

    _check_quantity(product, color_name, item.quantity)

    existing = await db.fetch_one(
        """SELECT id FROM cart_items
           WHERE user_id = ? AND product_id = ? AND IFNULL(color_name, '') = ?""",
        (current_user.id, product["id"], color_name or "")
    )
    if existing:
        await db.update(
            "cart_items",
            {"quantity": item.quantity, "updated_at": now_ts()},
            "id = ?", (existing["id"],)
        )
        message = "Cart updated"
    else:
        await db.insert("cart_items", {
            "user_id": current_user.id,
            "product_id": product["id"],
            "quantity": item.quantity,
            "name_snapshot": product["title"],
            "price_snapshot": unit_price(product["price"], product.get("discount")),
            "image_snapshot": product_image(product, color_name),
            "color_name": color_name,
            "color_hex_code": color.get("hex_code") if color else None,
        })
        message = "Item added to cart"

    return {"message": message, "cart": await load_cart(db, current_user.id)}


@router.put("/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: int,
    item_update: CartItemUpdate,
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    """Changes a line's quantity. Lines whose product or color is gone are removed."""
    line = await _get_own_item(db, current_user.id, item_id)

    product = await get_product(db, line["product_id"])
    if not product:
        await db.delete("cart_items", "id = ?", (item_id,))
        raise HTTPException(status_code=404, detail="Product no longer exists and was removed from your cart")

    color_name = line.get("color_name")
    if color_name and find_color(product, color_name) is None:
        await db.delete("cart_items", "id = ?", (item_id,))
        raise HTTPException(
            status_code=400,
            detail=f"Color '{color_name}' is no longer available and was removed from your cart"
        )

    _check_quantity(product, color_name, item_update.new_quantity)

    await db.update(
        "cart_items",
        {"quantity": item_update.new_quantity, "updated_at": now_ts()},
        "id = ?", (item_id,)
    )
    return {"message": "Cart updated", "cart": await load_cart(db, current_user.id)}


@router.delete("/{item_id}", response_model=CartResponse)
async def remove_cart_item(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    await _get_own_item(db, current_user.id, item_id)
    await db.delete("cart_items", "id = ?", (item_id,))
    return {"message": "Item removed from cart", "cart": await load_cart(db, current_user.id)}


@router.delete("", response_model=CartResponse)
async def clear_cart(
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    await db.delete("cart_items", "user_id = ?", (current_user.id,))
    return {"message": "Cart cleared", "cart": await load_cart(db, current_user.id)}
