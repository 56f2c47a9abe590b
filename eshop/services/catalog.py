"""
Catalog row helpers shared by product, cart and checkout routes.
"""

from typing import Any, Dict, List, Optional

from .database import DatabaseService, from_json
from .pricing import unit_price


def category_from_row(row: Dict[str, Any]) -> Dict[str, Any]:
    category = dict(row)
    category["subcategories"] = from_json(row.get("subcategories"), [])
    return category


def product_from_row(row: Dict[str, Any]) -> Dict[str, Any]:
    product = dict(row)
    product["features"] = from_json(row.get("features"), [])
    product["colors"] = from_json(row.get("colors"), [])
    product["is_top_buy"] = bool(row.get("is_top_buy"))
    product["is_newly_launched"] = bool(row.get("is_newly_launched"))
    product["effective_price"] = unit_price(row["price"], row.get("discount"))
    return product


async def get_category(db: DatabaseService, category_id: int) -> Optional[Dict[str, Any]]:
    row = await db.fetch_one("SELECT * FROM categories WHERE id = ?", (category_id,))
    return category_from_row(row) if row else None


async def get_product(db: DatabaseService, product_id: int) -> Optional[Dict[str, Any]]:
    row = await db.fetch_one("SELECT * FROM products WHERE id = ?", (product_id,))
    return product_from_row(row) if row else None


def find_color(product: Dict[str, Any], color_name: Optional[str]) -> Optional[Dict[str, Any]]:
    """Color variant by name, or None."""
    if not color_name:
        return None
    for color in product.get("colors") or []:
        if color.get("name") == color_name:
            return color
    return None


def available_stock(product: Dict[str, Any], color_name: Optional[str] = None) -> int:
    """Stock of the chosen color variant, or of the product itself."""
    color = find_color(product, color_name)
    if color is not None:
        return int(color.get("stock") or 0)
    return int(product.get("stock") or 0)


def product_image(product: Dict[str, Any], color_name: Optional[str] = None) -> str:
    color = find_color(product, color_name)
    if color and color.get("image_urls"):
        return color["image_urls"][0]
    return product.get("thumbnail_url")


def colors_stock_total(colors: List[Dict[str, Any]]) -> int:
    return sum(int(color.get("stock") or 0) for color in colors)
