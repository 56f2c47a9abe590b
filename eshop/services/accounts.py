"""
User and address book helpers.
"""

from typing import Any, Dict, List, Optional

from .database import DatabaseService

PUBLIC_USER_FIELDS = (
    "id", "name", "email", "role", "status", "avatar_url",
    "joined_date", "created_at", "updated_at",
)


def address_from_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "name": row["name"],
        "street": row["street"],
        "city": row["city"],
        "state": row["state"],
        "zip": row["zip"],
        "country": row["country"],
        "phone": row.get("phone"),
        "is_primary": bool(row["is_primary"]),
    }


def public_user(row: Dict[str, Any], addresses: List[Dict[str, Any]] = None) -> Dict[str, Any]:
    """User without the password hash."""
    user = {field: row.get(field) for field in PUBLIC_USER_FIELDS}
    user["addresses"] = addresses if addresses is not None else []
    return user


async def list_addresses(db: DatabaseService, user_id: int) -> List[Dict[str, Any]]:
    rows = await db.fetch_all(
        "SELECT * FROM user_addresses WHERE user_id = ? ORDER BY id",
        (user_id,)
    )
    return [address_from_row(row) for row in rows]


async def get_user_with_addresses(db: DatabaseService, user_id: int) -> Optional[Dict[str, Any]]:
    row = await db.fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))
    if not row:
        return None
    return public_user(row, await list_addresses(db, user_id))


async def clear_primary(db: DatabaseService, user_id: int, except_id: int = None) -> None:
    if except_id is None:
        await db.update("user_addresses", {"is_primary": 0}, "user_id = ?", (user_id,))
    else:
        await db.update(
            "user_addresses", {"is_primary": 0},
            "user_id = ? AND id != ?", (user_id, except_id)
        )


async def ensure_primary_address(db: DatabaseService, user_id: int) -> None:
    """If the user has addresses and none is primary, the first one becomes primary."""
    primary = await db.fetch_value(
        "SELECT COUNT(*) FROM user_addresses WHERE user_id = ? AND is_primary = 1",
        (user_id,), 0
    )
    if primary:
        return
    first_id = await db.fetch_value(
        "SELECT id FROM user_addresses WHERE user_id = ? ORDER BY id LIMIT 1",
        (user_id,)
    )
    if first_id is not None:
        await db.update("user_addresses", {"is_primary": 1}, "id = ?", (first_id,))


async def add_address(db: DatabaseService, user_id: int, data: Dict[str, Any]) -> int:
    """Adds an address keeping at most one primary per user."""
    async with db.transaction():
        is_primary = bool(data.get("is_primary"))
        if is_primary:
            await clear_primary(db, user_id)
        address_id = await db.insert("user_addresses", {
            "user_id": user_id,
            "name": data["name"],
            "street": data["street"],
            "city": data["city"],
            "state": data["state"],
            "zip": data["zip"],
            "country": data["country"],
            "phone": data.get("phone"),
            "is_primary": 1 if is_primary else 0,
        })
        await ensure_primary_address(db, user_id)
    return address_id
