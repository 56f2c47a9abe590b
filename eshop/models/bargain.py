"""
Bargain assistant models.
"""

from typing import List
from pydantic import BaseModel, Field


class BargainCartItem(BaseModel):
    product_id: int
    product_name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)


class BargainRequest(BaseModel):
    prompt: str
    cart_items: List[BargainCartItem] = []


class BargainDiscount(BaseModel):
    product_id: int
    discount_amount: float = Field(..., ge=0)


class BargainResult(BaseModel):
    response_message: str
    discounts: List[BargainDiscount] = []
