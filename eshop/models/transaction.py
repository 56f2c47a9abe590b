"""
Payment transaction models.
"""

from datetime import datetime
from typing import Annotated, Dict, List, Optional
from pydantic import BaseModel, Field

TRANSACTION_STATUSES = ("Pending", "Success", "Failed", "Cancelled")
PAYMENT_GATEWAYS = ("razorpay", "payu")


class CheckoutAddress(BaseModel):
    """Shipping address captured at checkout."""
    name: str = Field(..., min_length=1, max_length=255)
    street: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=255)
    state: str = Field(..., min_length=1, max_length=255)
    zip: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)


class CheckoutInitiate(BaseModel):
    shipping_address: CheckoutAddress
    save_address: bool = False
    # product id -> per-unit discount agreed with the bargain assistant
    bargained_amounts: Dict[int, Annotated[float, Field(ge=0)]] = {}


class CashOnDeliveryCheckout(BaseModel):
    shipping_address: CheckoutAddress


class TransactionItem(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    price: float
    bargain_discount: float = 0
    image: Optional[str] = None
    selected_color: Optional[Dict[str, Optional[str]]] = None


class Transaction(BaseModel):
    id: int
    user_id: Optional[int] = None
    items: List[TransactionItem] = []
    shipping_address: Dict
    subtotal: float
    tax_amount: float
    shipping_cost: float
    amount: float
    currency: str = "INR"
    gateway: str = "razorpay"
    status: str = "Pending"
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    payu_mihpayid: Optional[str] = None
    payu_txnid: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RazorpayVerification(BaseModel):
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)
    transaction_id: int


class PaymentCancel(BaseModel):
    transaction_id: int
    razorpay_order_id: Optional[str] = None
