"""
Banner models.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class BannerBase(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    image_url: str = Field(..., max_length=1000, description="Banner image URL")
    alt_text: str = Field(..., max_length=255, description="Accessible image description")
    link_url: Optional[str] = Field(None, max_length=1000)
    display_order: int = Field(0, description="Lower values are shown first")
    data_ai_hint: Optional[str] = Field(None, max_length=255)
    is_active: bool = True

    @field_validator("image_url", "alt_text")
    @classmethod
    def required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field is required")
        return v


class BannerCreate(BannerBase):
    pass


class BannerUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    image_url: Optional[str] = Field(None, min_length=1, max_length=1000)
    alt_text: Optional[str] = Field(None, min_length=1, max_length=255)
    link_url: Optional[str] = Field(None, max_length=1000)
    display_order: Optional[int] = None
    data_ai_hint: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None


class Banner(BannerBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
