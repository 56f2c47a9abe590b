"""
API routes for users, plus the authentication dependencies used by every router.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..models.user import USER_ROLES, USER_STATUSES, User, UserUpdate
from ..services.accounts import get_user_with_addresses, public_user
from ..services.database import DatabaseService, get_db, now_ts
from ..services.security import InvalidTokenError, decode_access_token

router = APIRouter()

security = HTTPBearer(auto_error=False)


async def _user_from_credentials(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: DatabaseService,
) -> Optional[User]:
    if not credentials:
        return None
    try:
        payload = decode_access_token(credentials.credentials)
        user_id = int(payload["sub"])
    except (InvalidTokenError, ValueError):
        return None
    user = await get_user_with_addresses(db, user_id)
    return User(**user) if user else None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: DatabaseService = Depends(get_db)
) -> User:
    """Signed-in user from the bearer token."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"}
        )
    user = await _user_from_credentials(credentials, db)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"}
        )
    if user.status != "Active":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: DatabaseService = Depends(get_db)
) -> Optional[User]:
    """Signed-in user, or None for anonymous requests."""
    user = await _user_from_credentials(credentials, db)
    if user and user.status != "Active":
        return None
    return user


async def get_admin_user(current_user: User = Depends(get_current_user)) -> User:
    """Checks that the current user is an administrator."""
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user


@router.get("/me", response_model=User)
async def get_me(current_user: User = Depends(get_current_user)):
    """Current user profile with the address book."""
    return current_user


@router.get("", response_model=List[User])
async def list_users(
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    """All users, newest first."""
    rows = await db.fetch_all("SELECT * FROM users ORDER BY joined_date DESC, id DESC")
    return [public_user(row) for row in rows]


@router.get("/{user_id}", response_model=User)
async def get_user(
    user_id: int,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    user = await get_user_with_addresses(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    user_update: UserUpdate,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    """Updates role, status or name. Unknown role/status values are ignored."""
    existing = await db.fetch_one("SELECT id FROM users WHERE id = ?", (user_id,))
    if not existing:
        raise HTTPException(status_code=404, detail="User not found")

    update_data = {}
    if user_update.role in USER_ROLES:
        update_data["role"] = user_update.role
    if user_update.status in USER_STATUSES:
        update_data["status"] = user_update.status
    if user_update.name and user_update.name.strip():
        update_data["name"] = user_update.name.strip()

    if not update_data:
        raise HTTPException(status_code=400, detail="No valid fields provided for update")

    update_data["updated_at"] = now_ts()
    await db.update("users", update_data, "id = ?", (user_id,))

    return {
        "message": "User updated successfully",
        "user": await get_user_with_addresses(db, user_id),
    }


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    admin_user: User = Depends(get_admin_user),
    db: DatabaseService = Depends(get_db)
):
    """Deletes an account. Its orders and transactions stay, without an owner."""
    if user_id == admin_user.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")

    deleted = await db.delete("users", "id = ?", (user_id,))
    if not deleted:
        raise HTTPException(status_code=404, detail="User not found")
    return {"message": "User deleted successfully"}
