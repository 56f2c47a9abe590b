"""
eShop data models.
"""

from .user import (
    User, UserCreate, UserLogin, UserUpdate,
    ShippingAddress, ShippingAddressCreate, ShippingAddressUpdate,
)
from .category import Category, CategoryCreate, CategoryUpdate, CategoryList, CategoryResponse
from .product import (
    Product, ProductCreate, ProductUpdate, ProductColor, ProductRating,
    ProductCategory, ProductDetail, ProductList, ProductResponse,
)
from .cart import Cart, CartItem, CartItemCreate, CartItemUpdate, CartResponse, SelectedColor
from .transaction import (
    Transaction, TransactionItem, CheckoutAddress, CheckoutInitiate, CashOnDeliveryCheckout,
    RazorpayVerification, PaymentCancel,
)
from .order import (
    Order, OrderItem, OrderStatusUpdate, OrderList, OrderResponse, AdminOrder, AdminOrderResponse,
)
from .banner import Banner, BannerCreate, BannerUpdate
from .setting import StoreSettings, StoreSettingsUpdate, StoreSettingsResponse, PublicSettings
from .contact import ContactMessageCreate
from .bargain import BargainRequest, BargainResult, BargainDiscount, BargainCartItem

__all__ = [
    # User
    "User", "UserCreate", "UserLogin", "UserUpdate",
    "ShippingAddress", "ShippingAddressCreate", "ShippingAddressUpdate",
    # Catalog
    "Category", "CategoryCreate", "CategoryUpdate", "CategoryList", "CategoryResponse",
    "Product", "ProductCreate", "ProductUpdate", "ProductColor", "ProductRating",
    "ProductCategory", "ProductDetail", "ProductList", "ProductResponse",
    # Cart
    "Cart", "CartItem", "CartItemCreate", "CartItemUpdate", "CartResponse", "SelectedColor",
    # Payments
    "Transaction", "TransactionItem", "CheckoutAddress", "CheckoutInitiate", "CashOnDeliveryCheckout",
    "RazorpayVerification", "PaymentCancel",
    # Order
    "Order", "OrderItem", "OrderStatusUpdate", "OrderList", "OrderResponse",
    "AdminOrder", "AdminOrderResponse",
    # Banner
    "Banner", "BannerCreate", "BannerUpdate",
    # Settings
    "StoreSettings", "StoreSettingsUpdate", "StoreSettingsResponse", "PublicSettings",
    # Misc
    "ContactMessageCreate",
    "BargainRequest", "BargainResult", "BargainDiscount", "BargainCartItem",
]
