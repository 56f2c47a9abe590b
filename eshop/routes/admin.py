"""
API routes for the admin panel.
"""

import math
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from ..models.order import (
    ORDER_STATUSES, PAYMENT_STATUSES, AdminOrderResponse, OrderResponse, OrderStatusUpdate,
)
from ..models.setting import StoreSettingsResponse, StoreSettingsUpdate
from ..models.transaction import PAYMENT_GATEWAYS, TRANSACTION_STATUSES
from ..models.user import User
from ..services.database import DatabaseService, get_db, now_ts
from ..services.export import build_orders_workbook
from ..services.orders import get_order, get_transaction, order_from_rows
from ..services.pricing import money
from ..services.store_settings import load_settings, save_settings
from .users import get_admin_user

router = APIRouter()


def _status_filter(value: str, allowed: tuple, column: str, conditions: list, params: list) -> None:
    if not value or value == "all":
        return
    if value not in allowed:
        raise HTTPException(status_code=400, detail=f"Invalid status filter: {value}")
    conditions.append(f"{column} = ?")
    params.append(value)


# ==================== Dashboard ====================

@router.get("/dashboard")
async def get_dashboard(
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    """Revenue, new customers this month, orders today, orders awaiting processing."""
    now = datetime.now(timezone.utc)
    start_of_day = now.strftime("%Y-%m-%d 00:00:00")
    start_of_month = now.strftime("%Y-%m-01 00:00:00")

    total_revenue = await db.fetch_value(
        "SELECT SUM(amount) FROM transactions WHERE status = 'Success'", (), 0
    )
    new_customers = await db.fetch_value(
        "SELECT COUNT(*) FROM users WHERE created_at >= ?", (start_of_month,), 0
    )
    orders_today = await db.fetch_value(
        "SELECT COUNT(*) FROM orders WHERE created_at >= ?", (start_of_day,), 0
    )
    pending_issues = await db.fetch_value(
        "SELECT COUNT(*) FROM orders WHERE status = 'Processing'", (), 0
    )

    return {
        "summary": {
            "total_revenue": money(total_revenue),
            "new_customers": new_customers,
            "orders_today": orders_today,
            "pending_issues": pending_issues,
        }
    }


# ==================== Orders ====================

@router.get("/orders")
async def get_all_orders(
    search_query: Optional[str] = None,
    status: str = "all",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    """Orders filtered by payment status and searchable by order number or gateway payment id."""
    conditions = []
    params = []

    if search_query:
        conditions.append("(LOWER(o.order_number) LIKE ? OR LOWER(o.payment_details) LIKE ?)")
        pattern = f"%{search_query.lower()}%"
        params.extend([pattern, pattern])
    _status_filter(status, PAYMENT_STATUSES, "o.payment_status", conditions, params)

    where_clause = " AND ".join(conditions) if conditions else "1=1"
    total_count = await db.fetch_value(
        f"SELECT COUNT(*) FROM orders o WHERE {where_clause}", tuple(params), 0
    )
    rows = await db.fetch_all(
        f"""SELECT o.*, u.name AS user_name, u.email AS user_email
            FROM orders o
            LEFT JOIN users u ON o.user_id = u.id
            WHERE {where_clause}
            ORDER BY o.created_at DESC, o.id DESC
            LIMIT ? OFFSET ?""",
        tuple(params) + (limit, (page - 1) * limit)
    )

    orders = []
    for row in rows:
        items = await db.fetch_all(
            "SELECT * FROM order_items WHERE order_id = ? ORDER BY id", (row["id"],)
        )
        orders.append(order_from_rows(row, items))

    return {
        "orders": orders,
        "total_count": total_count,
        "current_page": page,
        "total_pages": math.ceil(total_count / limit),
    }


@router.get("/orders/export")
async def export_orders(
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    """All orders as an Excel workbook."""
    rows = await db.fetch_all(
        """SELECT o.*, u.name AS user_name, u.email AS user_email
           FROM orders o
           LEFT JOIN users u ON o.user_id = u.id
           ORDER BY o.created_at DESC, o.id DESC"""
    )
    orders = []
    for row in rows:
        items = await db.fetch_all(
            "SELECT * FROM order_items WHERE order_id = ? ORDER BY id", (row["id"],)
        )
        orders.append(order_from_rows(row, items))

    filename = f"orders_export_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    return Response(
        content=build_orders_workbook(orders),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/orders/{order_id}", response_model=AdminOrderResponse)
async def get_order_details(
    order_id: int,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    order = await get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    order["user"] = await db.fetch_one(
        "SELECT id, name, email FROM users WHERE id = ?", (order["user_id"],)
    )
    order["transaction"] = (
        await get_transaction(db, order["transaction_id"]) if order["transaction_id"] else None
    )
    return {"order": order}


@router.put("/orders/{order_id}", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    status_update: OrderStatusUpdate,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    """Changes the fulfillment status of an order."""
    if status_update.status not in ORDER_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status. Allowed: {', '.join(ORDER_STATUSES)}"
        )

    updated = await db.update(
        "orders",
        {"status": status_update.status, "updated_at": now_ts()},
        "id = ?", (order_id,)
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Order not found")

    return {"message": "Order status updated", "order": await get_order(db, order_id)}


# ==================== Transactions ====================

@router.get("/transactions")
async def get_all_transactions(
    search_query: Optional[str] = None,
    status: str = "all",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    """Payment transactions with the customer's name and email."""
    conditions = []
    params = []

    if search_query:
        conditions.append(
            """(LOWER(IFNULL(t.razorpay_order_id, '')) LIKE ?
                OR LOWER(IFNULL(t.razorpay_payment_id, '')) LIKE ?
                OR LOWER(IFNULL(t.payu_txnid, '')) LIKE ?
                OR LOWER(IFNULL(t.payu_mihpayid, '')) LIKE ?)"""
        )
        pattern = f"%{search_query.lower()}%"
        params.extend([pattern] * 4)
    _status_filter(status, TRANSACTION_STATUSES, "t.status", conditions, params)

    where_clause = " AND ".join(conditions) if conditions else "1=1"
    total_count = await db.fetch_value(
        f"SELECT COUNT(*) FROM transactions t WHERE {where_clause}", tuple(params), 0
    )
    rows = await db.fetch_all(
        f"""SELECT t.id, t.user_id, t.amount, t.currency, t.status, t.gateway,
                   t.razorpay_order_id, t.razorpay_payment_id, t.payu_txnid, t.payu_mihpayid,
                   t.created_at, t.updated_at,
                   u.name AS user_name, u.email AS user_email
            FROM transactions t
            LEFT JOIN users u ON t.user_id = u.id
            WHERE {where_clause}
            ORDER BY t.created_at DESC, t.id DESC
            LIMIT ? OFFSET ?""",
        tuple(params) + (limit, (page - 1) * limit)
    )

    return {
        "transactions": rows,
        "total_count": total_count,
        "current_page": page,
        "total_pages": math.ceil(total_count / limit),
    }


# ==================== Settings ====================

@router.get("/settings", response_model=StoreSettingsResponse)
async def get_settings(
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    return {"settings": await load_settings(db)}


@router.post("/settings", response_model=StoreSettingsResponse)
async def update_settings(
    settings_update: StoreSettingsUpdate,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    """Creates or updates the store settings document."""
    changes = {k: v for k, v in settings_update.model_dump(exclude_unset=True).items() if v is not None}

    if "store_name" in changes:
        changes["store_name"] = changes["store_name"].strip()
        if not changes["store_name"]:
            raise HTTPException(status_code=400, detail="Store name cannot be empty")
    if "support_email" in changes and "@" not in changes["support_email"]:
        raise HTTPException(status_code=400, detail="Invalid support email")
    if "tax_percentage" in changes and not 0 <= changes["tax_percentage"] <= 100:
        raise HTTPException(status_code=400, detail="Tax percentage must be between 0 and 100")
    if "shipping_charge" in changes and changes["shipping_charge"] < 0:
        raise HTTPException(status_code=400, detail="Shipping charge cannot be negative")
    if "active_payment_gateway" in changes and changes["active_payment_gateway"] not in PAYMENT_GATEWAYS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid payment gateway. Allowed: {', '.join(PAYMENT_GATEWAYS)}"
        )

    return {
        "message": "Settings saved successfully",
        "settings": await save_settings(db, changes),
    }
