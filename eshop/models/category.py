"""
Category models.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


def clean_subcategories(values: Optional[List[str]]) -> List[str]:
    """Trims names, drops empty ones and duplicates, keeps order."""
    result: List[str] = []
    for value in values or []:
        name = str(value).strip()
        if name and name not in result:
            result.append(name)
    return result


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    subcategories: List[str] = []

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Category name cannot be empty")
        return v

    @field_validator("subcategories")
    @classmethod
    def normalize_subcategories(cls, v):
        return clean_subcategories(v)


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    subcategories: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Category name cannot be empty")
        return v

    @field_validator("subcategories")
    @classmethod
    def normalize_subcategories(cls, v):
        return None if v is None else clean_subcategories(v)


class Category(CategoryBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategoryList(BaseModel):
    categories: List[Category]


class CategoryResponse(BaseModel):
    message: Optional[str] = None
    category: Category
