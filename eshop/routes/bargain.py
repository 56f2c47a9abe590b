"""
Bargain assistant endpoint.
"""

from fastapi import APIRouter, Depends, HTTPException

from ..models.bargain import BargainRequest, BargainResult
from ..models.user import User
from ..services.bargain_service import bargain_for_cart
from ..services.database import DatabaseService, get_db
from .users import get_current_user

router = APIRouter()


@router.post("", response_model=BargainResult)
async def bargain(
    request: BargainRequest,
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    """Negotiates per-item discounts for the current cart."""
    if not request.prompt or not request.prompt.strip():
        raise HTTPException(status_code=400, detail="A bargaining prompt is required.")
    if not request.cart_items:
        raise HTTPException(status_code=400, detail="Cart items are required for bargaining.")

    return await bargain_for_cart(
        db,
        current_user.id,
        request.prompt.strip(),
        [item.model_dump() for item in request.cart_items],
    )
