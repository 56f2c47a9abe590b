"""
Checkout and order fulfillment.

Every payment path (cash on delivery, Razorpay verification, Razorpay
webhook, PayU callback) ends here: cart lines become an order, product stock
is decremented and the cart is cleared inside one database transaction.
"""

from typing import Any, Dict, List, Optional, Tuple

from ..logger import get_logger
from .catalog import available_stock, colors_stock_total, find_color, get_product, product_image
from .database import DatabaseService, from_json, now_ts, to_json
from .pricing import checkout_totals, generate_order_number, money, to_decimal, unit_price
from .store_settings import load_settings
from .telegram_notifier import TelegramNotifier

logger = get_logger(__name__)


class CheckoutError(Exception):
    """A checkout request that cannot be fulfilled."""

    status_code = 400

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InsufficientStockError(CheckoutError):
    pass


# ==================== Serialization ====================

def transaction_from_row(row: Dict[str, Any]) -> Dict[str, Any]:
    transaction = dict(row)
    transaction["items"] = from_json(row.get("items"), [])
    transaction["shipping_address"] = from_json(row.get("shipping_address"), {})
    return transaction


def order_item_from_row(row: Dict[str, Any]) -> Dict[str, Any]:
    color = None
    if row.get("color_name"):
        color = {"name": row["color_name"], "hex_code": row.get("color_hex_code")}
    return {
        "product_id": row.get("product_id"),
        "product_name": row["product_name"],
        "quantity": row["quantity"],
        "price": row["price"],
        "bargain_discount": row.get("bargain_discount") or 0,
        "image": row.get("image"),
        "selected_color": color,
    }


def order_from_rows(row: Dict[str, Any], item_rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    order = dict(row)
    order["shipping_address"] = from_json(row.get("shipping_address"), {})
    order["payment_details"] = from_json(row.get("payment_details"), None)
    order["items"] = [order_item_from_row(item) for item in item_rows]
    return order


async def get_order(db: DatabaseService, order_id: int) -> Optional[Dict[str, Any]]:
    row = await db.fetch_one("SELECT * FROM orders WHERE id = ?", (order_id,))
    if not row:
        return None
    items = await db.fetch_all(
        "SELECT * FROM order_items WHERE order_id = ? ORDER BY id", (order_id,)
    )
    return order_from_rows(row, items)


async def get_transaction(db: DatabaseService, transaction_id: int) -> Optional[Dict[str, Any]]:
    row = await db.fetch_one("SELECT * FROM transactions WHERE id = ?", (transaction_id,))
    return transaction_from_row(row) if row else None


async def set_transaction_status(
    db: DatabaseService,
    transaction_id: int,
    status: str,
    **fields: Any
) -> None:
    data = {"status": status, "updated_at": now_ts()}
    data.update({k: v for k, v in fields.items() if v is not None})
    await db.update("transactions", data, "id = ?", (transaction_id,))
    logger.info("[PAYMENTS] Transaction %s -> %s", transaction_id, status)


# ==================== Cart -> line items ====================

async def build_checkout_items(
    db: DatabaseService,
    user_id: int,
    bargained_amounts: Dict[int, float] = None,
) -> List[Dict[str, Any]]:
    """
    Snapshots the user's cart for checkout.

    Each line gets the current discounted unit price minus the agreed
    per-unit bargain amount. Raises CheckoutError for an empty cart, a
    product that no longer exists, insufficient stock or a bargain that
    makes the price negative.
    """
    bargained_amounts = bargained_amounts or {}
    cart_rows = await db.fetch_all(
        "SELECT * FROM cart_items WHERE user_id = ? ORDER BY id", (user_id,)
    )
    if not cart_rows:
        raise CheckoutError("Your cart is empty.")

    items = []
    for line in cart_rows:
        product = await get_product(db, line["product_id"])
        if not product:
            raise CheckoutError(f"Product '{line['name_snapshot']}' is no longer available.")

        color_name = line.get("color_name")
        if color_name and product["colors"] and find_color(product, color_name) is None:
            raise CheckoutError(f"Color '{color_name}' of '{product['title']}' is no longer available.")
        if line["quantity"] > available_stock(product, color_name):
            raise InsufficientStockError(f"Insufficient stock for product: {product['title']}")

        bargain = to_decimal(bargained_amounts.get(product["id"], 0))
        price = to_decimal(unit_price(product["price"], product.get("discount"))) - bargain
        if price < 0:
            raise CheckoutError(f"Invalid bargained price for product: {product['title']}")

        items.append({
            "product_id": product["id"],
            "product_name": product["title"],
            "quantity": line["quantity"],
            "price": money(price),
            "bargain_discount": money(bargain),
            "image": line.get("image_snapshot") or product_image(product, color_name),
            "selected_color": (
                {"name": color_name, "hex_code": line.get("color_hex_code")} if color_name else None
            ),
        })
    return items


async def totals_for_items(db: DatabaseService, items: List[Dict[str, Any]]) -> Dict[str, float]:
    store = await load_settings(db)
    return checkout_totals(
        [(item["price"], item["quantity"]) for item in items],
        store["tax_percentage"],
        store["shipping_charge"],
    )


# ==================== Stock and cart ====================

async def decrement_stock(db: DatabaseService, items: List[Dict[str, Any]]) -> None:
    """
    Takes ordered quantities out of stock.

    Color lines decrement the color's stock and the product stock is
    recomputed as the sum of its colors. Raises InsufficientStockError if a
    quantity is no longer available.
    """
    for item in items:
        product = await get_product(db, item["product_id"])
        if not product:
            raise CheckoutError(f"Product '{item['product_name']}' not found during stock reduction.")

        color_name = (item.get("selected_color") or {}).get("name")
        colors = product["colors"]
        color = find_color(product, color_name)
        if color is not None:
            if color["stock"] < item["quantity"]:
                raise InsufficientStockError(f"Insufficient stock for product: {product['title']}")
            color["stock"] -= item["quantity"]
            stock = colors_stock_total(colors)
        else:
            if product["stock"] < item["quantity"]:
                raise InsufficientStockError(f"Insufficient stock for product: {product['title']}")
            stock = product["stock"] - item["quantity"]
            if colors:
                stock = colors_stock_total(colors)

        await db.update(
            "products",
            {"stock": stock, "colors": to_json(colors), "updated_at": now_ts()},
            "id = ?", (product["id"],)
        )


async def clear_cart(db: DatabaseService, user_id: int) -> int:
    return await db.delete("cart_items", "user_id = ?", (user_id,))


# ==================== Orders ====================

async def _insert_order(
    db: DatabaseService,
    *,
    user_id: int,
    items: List[Dict[str, Any]],
    total: float,
    shipping_address: Dict[str, Any],
    payment_method: str,
    payment_status: str,
    shipping_cost: float,
    tax_amount: float,
    currency: str,
    transaction_id: Optional[int] = None,
    payment_details: Optional[Dict[str, Any]] = None,
) -> int:
    total_bargain = sum(
        to_decimal(item.get("bargain_discount") or 0) * item["quantity"] for item in items
    )
    order_id = await db.insert("orders", {
        "order_number": generate_order_number(),
        "user_id": user_id,
        "transaction_id": transaction_id,
        "total": money(total),
        "total_bargain_discount": money(total_bargain),
        "currency": currency,
        "status": "Processing",
        "payment_status": payment_status,
        "shipping_address": to_json(shipping_address),
        "payment_method": payment_method,
        "payment_details": to_json(payment_details) if payment_details else None,
        "shipping_cost": money(shipping_cost),
        "tax_amount": money(tax_amount),
    })
    for item in items:
        color = item.get("selected_color") or {}
        await db.insert("order_items", {
            "order_id": order_id,
            "product_id": item.get("product_id"),
            "product_name": item["product_name"],
            "quantity": item["quantity"],
            "price": item["price"],
            "bargain_discount": item.get("bargain_discount") or 0,
            "image": item.get("image"),
            "color_name": color.get("name"),
            "color_hex_code": color.get("hex_code"),
        })
    return order_id


async def _notify(order: Dict[str, Any]) -> None:
    await TelegramNotifier.send_new_order_notification(order)


async def create_cod_order(
    db: DatabaseService,
    user_id: int,
    shipping_address: Dict[str, Any],
    currency: str,
) -> Dict[str, Any]:
    """Cash on delivery: order with a pending payment, stock taken, cart cleared."""
    async with db.transaction():
        items = await build_checkout_items(db, user_id)
        totals = await totals_for_items(db, items)
        order_id = await _insert_order(
            db,
            user_id=user_id,
            items=items,
            total=totals["total"],
            shipping_address=shipping_address,
            payment_method="COD",
            payment_status="Pending",
            shipping_cost=totals["shipping_cost"],
            tax_amount=totals["tax_amount"],
            currency=currency,
        )
        await decrement_stock(db, items)
        await clear_cart(db, user_id)

    order = await get_order(db, order_id)
    logger.info("[CHECKOUT] COD order %s placed by user %s", order["order_number"], user_id)
    await _notify(order)
    return order


async def find_order_for_transaction(db: DatabaseService, transaction_id: int) -> Optional[Dict[str, Any]]:
    order_id = await db.fetch_value(
        "SELECT id FROM orders WHERE transaction_id = ?", (transaction_id,)
    )
    return await get_order(db, order_id) if order_id else None


async def create_order_from_transaction(
    db: DatabaseService,
    transaction: Dict[str, Any],
    payment_method: str,
    payment_details: Optional[Dict[str, Any]] = None,
) -> Tuple[Dict[str, Any], bool]:
    """
    Turns a paid transaction into an order.

    Idempotent: if an order already exists for the transaction it is
    returned unchanged. Must run inside ``db.transaction()`` together with
    the status change of the transaction.

    Returns:
        (order, created)
    """
    existing = await find_order_for_transaction(db, transaction["id"])
    if existing:
        return existing, False

    order_id = await _insert_order(
        db,
        user_id=transaction["user_id"],
        transaction_id=transaction["id"],
        items=transaction["items"],
        total=transaction["amount"],
        shipping_address=transaction["shipping_address"],
        payment_method=payment_method,
        payment_status="Paid",
        payment_details=payment_details,
        shipping_cost=transaction.get("shipping_cost") or 0,
        tax_amount=transaction.get("tax_amount") or 0,
        currency=transaction.get("currency") or "INR",
    )
    await decrement_stock(db, transaction["items"])
    await clear_cart(db, transaction["user_id"])
    order = await get_order(db, order_id)
    logger.info(
        "[PAYMENTS] Order %s created from transaction %s",
        order["order_number"], transaction["id"]
    )
    return order, True


async def complete_transaction(
    db: DatabaseService,
    transaction: Dict[str, Any],
    payment_method: str,
    payment_details: Optional[Dict[str, Any]] = None,
    **gateway_fields: Any
) -> Tuple[Dict[str, Any], bool]:
    """Marks the transaction successful and creates its order atomically."""
    async with db.transaction():
        await set_transaction_status(db, transaction["id"], "Success", **gateway_fields)
        order, created = await create_order_from_transaction(
            db, transaction, payment_method, payment_details
        )
    if created:
        await _notify(order)
    return order, created
