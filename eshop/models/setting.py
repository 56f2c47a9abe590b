"""
Store settings models.
"""

from typing import Optional
from pydantic import BaseModel

SETTINGS_KEY = "global_settings"

DEFAULT_SETTINGS = {
    "store_name": "eShop Simplified",
    "support_email": "support@eshop.com",
    "tax_percentage": 0.0,
    "shipping_charge": 0.0,
    "announcement_text": "",
    "announcement_link": "",
    "is_announcement_active": False,
    "active_payment_gateway": "razorpay",
}


class StoreSettings(BaseModel):
    store_name: str = DEFAULT_SETTINGS["store_name"]
    support_email: str = DEFAULT_SETTINGS["support_email"]
    tax_percentage: float = 0
    shipping_charge: float = 0
    announcement_text: str = ""
    announcement_link: str = ""
    is_announcement_active: bool = False
    active_payment_gateway: str = "razorpay"


class StoreSettingsUpdate(BaseModel):
    """Partial update; values are checked by the admin route."""
    store_name: Optional[str] = None
    support_email: Optional[str] = None
    tax_percentage: Optional[float] = None
    shipping_charge: Optional[float] = None
    announcement_text: Optional[str] = None
    announcement_link: Optional[str] = None
    is_announcement_active: Optional[bool] = None
    active_payment_gateway: Optional[str] = None


class PublicSettings(BaseModel):
    """Settings visible to the storefront."""
    announcement_text: str = ""
    announcement_link: str = ""
    is_announcement_active: bool = False
    active_payment_gateway: str = "razorpay"
    tax_percentage: float = 0
    shipping_charge: float = 0


class StoreSettingsResponse(BaseModel):
    message: Optional[str] = None
    settings: StoreSettings
