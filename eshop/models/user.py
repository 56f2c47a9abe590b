"""
User and address book models.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field

USER_ROLES = ("user", "admin")
USER_STATUSES = ("Active", "Inactive")


class ShippingAddressBase(BaseModel):
    """Postal address used for shipping."""
    name: str = Field(..., min_length=1, max_length=255)
    street: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=255)
    state: str = Field(..., min_length=1, max_length=255)
    zip: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)


class ShippingAddressCreate(ShippingAddressBase):
    is_primary: bool = False


class ShippingAddressUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    street: Optional[str] = Field(None, min_length=1, max_length=500)
    city: Optional[str] = Field(None, min_length=1, max_length=255)
    state: Optional[str] = Field(None, min_length=1, max_length=255)
    zip: Optional[str] = Field(None, min_length=1, max_length=20)
    country: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    is_primary: Optional[bool] = None


class ShippingAddress(ShippingAddressBase):
    id: int
    is_primary: bool = False

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    """Registration payload."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserUpdate(BaseModel):
    """Admin update of a user. Unknown role/status values are ignored."""
    name: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None


class User(BaseModel):
    """Public user representation (no password hash)."""
    id: int
    name: str
    email: str
    role: str = "user"
    status: str = "Active"
    avatar_url: Optional[str] = None
    joined_date: Optional[datetime] = None
    addresses: List[ShippingAddress] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
