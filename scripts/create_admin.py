"""
Creates the administrator account from ADMIN_EMAIL / ADMIN_PASSWORD.

    python -m scripts.create_admin
"""

import asyncio
import sys

from eshop.config import settings
from eshop.services.database import get_db_context
from eshop.services.security import hash_password


async def create_admin(email: str, password: str, name: str = "Admin") -> bool:
    """Returns True if the account was created, False if it already existed."""
    async with get_db_context(settings.DATABASE_PATH) as db:
        existing = await db.fetch_one("SELECT id, role FROM users WHERE email = ?", (email,))
        if existing:
            print(f"[INFO] User {email} already exists (role: {existing['role']})")
            return False

        await db.insert("users", {
            "name": name,
            "email": email,
            "password_hash": hash_password(password),
            "role": "admin",
        })
        print(f"[OK] Admin user {email} created")
        return True


def main() -> int:
    if not settings.ADMIN_PASSWORD:
        print("[ERROR] ADMIN_PASSWORD is not set in .env")
        return 1
    if len(settings.ADMIN_PASSWORD) < 6:
        print("[ERROR] ADMIN_PASSWORD must be at least 6 characters long")
        return 1

    asyncio.run(create_admin(settings.ADMIN_EMAIL.lower(), settings.ADMIN_PASSWORD))
    return 0


if __name__ == "__main__":
    sys.exit(main())
