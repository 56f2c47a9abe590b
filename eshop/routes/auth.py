"""
Registration and login.
"""

import sqlite3

from fastapi import APIRouter, Depends, HTTPException

from ..logger import get_logger
from ..models.user import UserCreate, UserLogin
from ..services.accounts import get_user_with_addresses, public_user
from ..services.database import DatabaseService, get_db
from ..services.security import create_access_token, hash_password, verify_password

router = APIRouter()
logger = get_logger(__name__)

DUPLICATE_EMAIL = "An account with this email already exists"


async def _email_taken(db: DatabaseService, email: str) -> bool:
    return await db.fetch_one("SELECT id FROM users WHERE email = ?", (email,)) is not None


@router.post("/register", status_code=201)
async def register(
    user_data: UserCreate,
    db: DatabaseService = Depends(get_db)
):
    """Creates a customer account."""
    email = user_data.email.lower()
    if await _email_taken(db, email):
        raise HTTPException(status_code=409, detail=DUPLICATE_EMAIL)

    try:
        user_id = await db.insert("users", {
            "name": user_data.name.strip(),
            "email": email,
            "password_hash": hash_password(user_data.password),
        })
    except sqlite3.IntegrityError:
        # registered concurrently
        raise HTTPException(status_code=409, detail=DUPLICATE_EMAIL)
    logger.info("[AUTH] Registered user %s", user_id)

    return {
        "message": "Registration successful",
        "user": await get_user_with_addresses(db, user_id),
    }


@router.post("/login")
async def login(
    credentials: UserLogin,
    db: DatabaseService = Depends(get_db)
):
    """Checks the password and issues an access token."""
    row = await db.fetch_one(
        "SELECT * FROM users WHERE email = ?", (credentials.email.lower(),)
    )
    if not row or not verify_password(credentials.password, row["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if row["status"] != "Active":
        raise HTTPException(status_code=403, detail="Account is inactive")

    return {
        "message": "Login successful",
        "user": public_user(row),
        "access_token": create_access_token(row),
        "token_type": "bearer",
    }
