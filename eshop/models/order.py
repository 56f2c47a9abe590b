"""
Order models.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

from .transaction import Transaction

ORDER_STATUSES = ("Processing", "Shipped", "Delivered", "Cancelled")
PAYMENT_STATUSES = ("Pending", "Paid", "Failed", "Refunded")
PAYMENT_METHODS = ("Razorpay", "COD", "PayU")


class OrderItem(BaseModel):
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    price: float
    bargain_discount: float = 0
    image: Optional[str] = None
    selected_color: Optional[Dict[str, Optional[str]]] = None
    # current title and thumbnail, when the product still exists
    product: Optional[Dict[str, Any]] = None


class Order(BaseModel):
    id: int
    order_number: str
    user_id: Optional[int] = None
    transaction_id: Optional[int] = None
    items: List[OrderItem] = []
    total: float
    total_bargain_discount: float = 0
    currency: str = "INR"
    status: str = "Processing"
    payment_status: str = "Pending"
    shipping_address: Dict[str, Any]
    payment_method: str
    payment_details: Optional[Dict[str, Any]] = None
    shipping_cost: float = 0
    tax_amount: float = 0
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderStatusUpdate(BaseModel):
    status: str


class OrderList(BaseModel):
    orders: List[Order]


class OrderResponse(BaseModel):
    message: Optional[str] = None
    order: Order


class AdminOrder(Order):
    """An order with its customer and the payment transaction behind it."""
    user: Optional[Dict[str, Any]] = None
    transaction: Optional[Transaction] = None


class AdminOrderResponse(BaseModel):
    order: AdminOrder
