"""
Contact form.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ..logger import get_logger
from ..models.contact import ContactMessageCreate
from ..models.user import User
from ..services.database import DatabaseService, get_db
from ..services.telegram_notifier import TelegramNotifier
from .users import get_current_user_optional

router = APIRouter()
logger = get_logger(__name__)


@router.post("")
async def submit_contact_message(
    contact: ContactMessageCreate,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: DatabaseService = Depends(get_db)
):
    """Stores the message and forwards it to the admin chat. Signed-in senders are linked to their account."""
    message = contact.model_dump()
    message_id = await db.insert(
        "contact_messages",
        {**message, "user_id": current_user.id if current_user else None}
    )
    logger.info("[CONTACT] Message %s received from %s", message_id, contact.email)

    await TelegramNotifier.send_contact_notification(message)
    return {"message": "Thank you for contacting us. We will get back to you soon."}
