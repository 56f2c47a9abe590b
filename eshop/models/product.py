"""
Product models.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class ProductColor(BaseModel):
    """Color variant with its own images and stock."""
    name: str = Field(..., min_length=1, max_length=100)
    hex_code: Optional[str] = Field(None, max_length=20)
    image_urls: List[str] = Field(..., min_length=1)
    stock: int = Field(0, ge=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Color name cannot be empty")
        return v

    @field_validator("image_urls")
    @classmethod
    def non_empty_urls(cls, v: List[str]) -> List[str]:
        urls = [url.strip() for url in v if url and url.strip()]
        if not urls:
            raise ValueError("Each color needs at least one image URL")
        return urls


class ProductBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    discount: Optional[float] = Field(None, ge=0, le=100)
    category_id: int
    subcategory: Optional[str] = None
    stock: int = Field(0, ge=0)
    features: List[str] = []
    colors: List[ProductColor] = []
    thumbnail_url: str = Field(..., min_length=1)
    min_order_quantity: int = Field(1, ge=1)
    is_top_buy: bool = False
    is_newly_launched: bool = False


class ProductCreate(ProductBase):

    @model_validator(mode="after")
    def sync_stock_with_colors(self):
        if self.colors:
            self.stock = sum(color.stock for color in self.colors)
        return self


class ProductUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0, le=100)
    category_id: Optional[int] = None
    subcategory: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    features: Optional[List[str]] = None
    colors: Optional[List[ProductColor]] = None
    thumbnail_url: Optional[str] = Field(None, min_length=1)
    min_order_quantity: Optional[int] = Field(None, ge=1)
    is_top_buy: Optional[bool] = None
    is_newly_launched: Optional[bool] = None


class ProductRating(BaseModel):
    rating_value: int = Field(..., ge=1, le=5)


class Product(ProductBase):
    id: int
    rating: float = 0
    num_ratings: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductCategory(BaseModel):
    id: int
    name: str
    subcategories: List[str] = []


class ProductDetail(Product):
    """A product with its price after discount and its category."""
    effective_price: float
    category: Optional[ProductCategory] = None


class ProductPagination(BaseModel):
    current_page: int
    total_pages: int
    total_products: int
    limit: int


class ProductList(BaseModel):
    products: List[ProductDetail]
    pagination: ProductPagination


class ProductResponse(BaseModel):
    message: str
    product: ProductDetail
