"""
API routes.
"""

from .auth import router as auth_router
from .users import router as users_router
from .account import router as account_router
from .categories import router as categories_router
from .products import router as products_router
from .cart import router as cart_router
from .checkout import router as checkout_router
from .payments import router as payments_router
from .orders import router as orders_router
from .banners import router as banners_router, admin_router as admin_banners_router
from .settings import router as settings_router
from .admin import router as admin_router
from .upload import router as upload_router
from .contact import router as contact_router
from .bargain import router as bargain_router

__all__ = [
    "auth_router",
    "users_router",
    "account_router",
    "categories_router",
    "products_router",
    "cart_router",
    "checkout_router",
    "payments_router",
    "orders_router",
    "banners_router",
    "admin_banners_router",
    "settings_router",
    "admin_router",
    "upload_router",
    "contact_router",
    "bargain_router",
]
