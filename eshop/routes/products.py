"""
API routes for products.
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..models.product import (
    ProductCreate, ProductDetail, ProductList, ProductRating, ProductResponse, ProductUpdate,
)
from ..models.user import User
from ..services.catalog import get_category, get_product, product_from_row
from ..services.database import DatabaseService, get_db, now_ts, to_json
from ..services.pricing import rating_average
from .users import get_admin_user, get_current_user

router = APIRouter()

SORT_FIELDS = {
    "created_at": "created_at",
    "price": "price",
    "rating": "rating",
    "title": "title COLLATE NOCASE",
}


def _check_subcategory(category: dict, subcategory: Optional[str]) -> Optional[str]:
    """Returns the trimmed subcategory (None for empty) or raises 400 if it is not in the category."""
    if subcategory is None or not subcategory.strip():
        return None
    subcategory = subcategory.strip()
    if subcategory not in category["subcategories"]:
        raise HTTPException(
            status_code=400,
            detail=f"Subcategory '{subcategory}' does not exist in category '{category['name']}'"
        )
    return subcategory


async def _product_with_category(db: DatabaseService, product_id: int) -> Optional[dict]:
    product = await get_product(db, product_id)
    if not product:
        return None
    category = await get_category(db, product["category_id"])
    product["category"] = (
        {"id": category["id"], "name": category["name"], "subcategories": category["subcategories"]}
        if category else None
    )
    return product


@router.get("", response_model=ProductList)
async def get_products(
    category: Optional[int] = Query(None, description="Category id"),
    subcategory: Optional[str] = None,
    search_query: Optional[str] = None,
    max_price: Optional[float] = Query(None, ge=0),
    discounted_only: bool = False,
    top_buy: Optional[bool] = None,
    newly_launched: Optional[bool] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    db: DatabaseService = Depends(get_db)
):
    """Product listing with filters, sorting and pagination."""
    conditions = []
    params = []

    if category is not None:
        conditions.append("category_id = ?")
        params.append(category)
    if subcategory:
        conditions.append("subcategory = ?")
        params.append(subcategory)
    if search_query:
        conditions.append("(LOWER(title) LIKE ? OR LOWER(description) LIKE ?)")
        pattern = f"%{search_query.lower()}%"
        params.extend([pattern, pattern])
    if max_price is not None:
        conditions.append("price <= ?")
        params.append(max_price)
    if discounted_only:
        conditions.append("discount IS NOT NULL AND discount > 0")
    if top_buy is not None:
        conditions.append("is_top_buy = ?")
        params.append(1 if top_buy else 0)
    if newly_launched is not None:
        conditions.append("is_newly_launched = ?")
        params.append(1 if newly_launched else 0)

    where_clause = " AND ".join(conditions) if conditions else "1=1"
    order_column = SORT_FIELDS.get(sort_by, SORT_FIELDS["created_at"])
    direction = "ASC" if sort_order.lower() == "asc" else "DESC"

    total = await db.fetch_value(
        f"SELECT COUNT(*) FROM products WHERE {where_clause}", tuple(params), 0
    )
    rows = await db.fetch_all(
        f"""SELECT * FROM products WHERE {where_clause}
            ORDER BY {order_column} {direction}, id {direction}
            LIMIT ? OFFSET ?""",
        tuple(params) + (limit, (page - 1) * limit)
    )

    return {
        "products": [product_from_row(row) for row in rows],
        "pagination": {
            "current_page": page,
            "total_pages": math.ceil(total / limit),
            "total_products": total,
            "limit": limit,
        },
    }


@router.get("/{product_id}", response_model=ProductDetail)
async def get_product_by_id(product_id: int, db: DatabaseService = Depends(get_db)):
    product = await _product_with_category(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    product: ProductCreate,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    category = await get_category(db, product.category_id)
    if not category:
        raise HTTPException(status_code=400, detail="Selected category does not exist")
    subcategory = _check_subcategory(category, product.subcategory)

    data = product.model_dump()
    data.update({
        "subcategory": subcategory,
        "features": to_json([f.strip() for f in product.features if f.strip()]),
        "colors": to_json(data["colors"]),
        "is_top_buy": 1 if product.is_top_buy else 0,
        "is_newly_launched": 1 if product.is_newly_launched else 0,
    })
    product_id = await db.insert("products", data)
    return {
        "message": "Product created successfully",
        "product": await _product_with_category(db, product_id),
    }


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    product_update: ProductUpdate,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    """Partial update. A new category without a valid subcategory clears the subcategory."""
    existing = await get_product(db, product_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Product not found")

    provided = product_update.model_dump(exclude_unset=True)
    if not provided:
        raise HTTPException(status_code=400, detail="No fields to update")

    update_data = {k: v for k, v in provided.items() if v is not None or k in ("discount", "subcategory")}

    if update_data.get("category_id") is not None:
        category = await get_category(db, update_data["category_id"])
        if not category:
            raise HTTPException(status_code=400, detail="Selected category for update does not exist")
        update_data["subcategory"] = _check_subcategory(category, update_data.get("subcategory"))
    elif "subcategory" in update_data:
        category = await get_category(db, existing["category_id"])
        update_data["subcategory"] = _check_subcategory(category, update_data["subcategory"])

    if "features" in update_data:
        update_data["features"] = to_json([f.strip() for f in update_data["features"] if f.strip()])
    if "colors" in update_data:
        colors = update_data["colors"]
        if colors:
            update_data["stock"] = sum(color["stock"] for color in colors)
        update_data["colors"] = to_json(colors)
    elif "stock" in update_data and existing["colors"]:
        # stock of a product with colors is always the sum of its colors
        update_data.pop("stock")
    for flag in ("is_top_buy", "is_newly_launched"):
        if flag in update_data:
            update_data[flag] = 1 if update_data[flag] else 0

    update_data["updated_at"] = now_ts()
    await db.update("products", update_data, "id = ?", (product_id,))
    return {
        "message": "Product updated successfully",
        "product": await _product_with_category(db, product_id),
    }


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    deleted = await db.delete("products", "id = ?", (product_id,))
    if not deleted:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"message": "Product deleted successfully"}


@router.post("/{product_id}/rate")
async def rate_product(
    product_id: int,
    rating: ProductRating,
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    """Adds a 1-5 rating to the product's running average."""
    async with db.transaction():
        product = await db.fetch_one(
            "SELECT id, rating, num_ratings FROM products WHERE id = ?", (product_id,)
        )
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")

        new_rating, new_count = rating_average(
            product["rating"], product["num_ratings"], rating.rating_value
        )
        await db.update(
            "products",
            {"rating": new_rating, "num_ratings": new_count, "updated_at": now_ts()},
            "id = ?", (product_id,)
        )

    return {
        "message": "Rating submitted successfully",
        "updated_product": {"id": product_id, "rating": new_rating, "num_ratings": new_count},
    }
