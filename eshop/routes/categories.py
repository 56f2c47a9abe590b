"""
API routes for categories.
"""

from fastapi import APIRouter, Depends, HTTPException

from ..models.category import CategoryCreate, CategoryList, CategoryResponse, CategoryUpdate
from ..models.user import User
from ..services.catalog import category_from_row, get_category
from ..services.database import DatabaseService, get_db, now_ts, to_json
from .users import get_admin_user

router = APIRouter()


async def _name_taken(db: DatabaseService, name: str, exclude_id: int = None) -> bool:
    query = "SELECT id FROM categories WHERE name = ? COLLATE NOCASE"
    params = (name,)
    if exclude_id is not None:
        query += " AND id != ?"
        params += (exclude_id,)
    return await db.fetch_one(query, params) is not None


@router.get("", response_model=CategoryList)
async def get_categories(db: DatabaseService = Depends(get_db)):
    """All categories sorted by name."""
    rows = await db.fetch_all("SELECT * FROM categories ORDER BY name COLLATE NOCASE")
    return {"categories": [category_from_row(row) for row in rows]}


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category_by_id(category_id: int, db: DatabaseService = Depends(get_db)):
    category = await get_category(db, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"category": category}


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(
    category: CategoryCreate,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    if await _name_taken(db, category.name):
        raise HTTPException(status_code=409, detail=f"Category '{category.name}' already exists")

    category_id = await db.insert("categories", {
        "name": category.name,
        "subcategories": to_json(category.subcategories),
    })
    return {
        "message": "Category created successfully",
        "category": await get_category(db, category_id),
    }


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    category_update: CategoryUpdate,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    if not await get_category(db, category_id):
        raise HTTPException(status_code=404, detail="Category not found")

    update_data = {
        k: v for k, v in category_update.model_dump(exclude_unset=True).items() if v is not None
    }
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    if "name" in update_data and await _name_taken(db, update_data["name"], category_id):
        raise HTTPException(status_code=409, detail=f"Category '{update_data['name']}' already exists")
    if "subcategories" in update_data:
        update_data["subcategories"] = to_json(update_data["subcategories"])

    update_data["updated_at"] = now_ts()
    await db.update("categories", update_data, "id = ?", (category_id,))
    return {
        "message": "Category updated successfully",
        "category": await get_category(db, category_id),
    }


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    """Deletes a category that no product references."""
    if not await get_category(db, category_id):
        raise HTTPException(status_code=404, detail="Category not found")

    product_count = await db.fetch_value(
        "SELECT COUNT(*) FROM products WHERE category_id = ?", (category_id,), 0
    )
    if product_count:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete category: {product_count} product(s) are still assigned to it"
        )

    await db.delete("categories", "id = ?", (category_id,))
    return {"message": "Category deleted successfully"}
