"""
Cart models.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class CartItemCreate(BaseModel):
    """Add a product to the cart (or set the quantity of an existing line)."""
    product_id: int
    quantity: int = Field(1, ge=1)
    selected_color_name: Optional[str] = None


class CartItemUpdate(BaseModel):
    new_quantity: int = Field(..., ge=1)


class SelectedColor(BaseModel):
    name: str
    hex_code: Optional[str] = None


class CartItem(BaseModel):
    id: int
    product_id: int
    quantity: int
    name: str
    price: float
    image: Optional[str] = None
    selected_color: Optional[SelectedColor] = None


class Cart(BaseModel):
    user_id: int
    items: List[CartItem] = []
    subtotal: float = 0


class CartResponse(BaseModel):
    message: Optional[str] = None
    cart: Cart
