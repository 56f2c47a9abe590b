"""
Admin notifications through a Telegram bot.
"""

from html import escape
from typing import Any, Dict, Optional

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from ..config import settings
from ..logger import get_logger

logger = get_logger(__name__)


class TelegramNotifier:
    """Sends store events to the admin chat. Every call is a no-op without BOT_TOKEN."""

    _bot: Optional[Bot] = None

    @classmethod
    def get_bot(cls) -> Optional[Bot]:
        """Returns the bot instance, or None if no token is configured."""
        if not settings.BOT_TOKEN:
            return None

        if cls._bot is None:
            cls._bot = Bot(
                token=settings.BOT_TOKEN,
                default=DefaultBotProperties(parse_mode=ParseMode.HTML)
            )
        return cls._bot

    @classmethod
    async def send_message(cls, chat_id: int, text: str) -> bool:
        """
        Sends an HTML message.

        Returns:
            bool: True if the message was delivered.
        """
        bot = cls.get_bot()
        if not bot:
            logger.info("[TELEGRAM] BOT_TOKEN not configured, message to %s skipped", chat_id)
            return False

        try:
            await bot.send_message(chat_id=chat_id, text=text)
            return True
        except Exception as e:
            logger.warning("[TELEGRAM] Failed to send message to %s: %s", chat_id, e)
            return False

    @classmethod
    async def notify_admin(cls, text: str) -> bool:
        if not settings.ADMIN_CHAT_ID:
            return False
        return await cls.send_message(settings.ADMIN_CHAT_ID, text)

    @classmethod
    async def send_new_order_notification(cls, order: Dict[str, Any]) -> bool:
        """New order summary for the admin chat."""
        address = order.get("shipping_address") or {}
        lines = [
            f"🛒 <b>New order {escape(order['order_number'])}</b>",
            "",
            f"Payment: {escape(order['payment_method'])} ({escape(order['payment_status'])})",
            f"Total: {order['total']:.2f} {escape(order.get('currency') or settings.CURRENCY)}",
            f"Ship to: {escape(address.get('name', ''))}, {escape(address.get('city', ''))}",
            "",
        ]
        for item in order.get("items") or []:
            lines.append(f"• {escape(item['product_name'])} × {item['quantity']}")
        return await cls.notify_admin("\n".join(lines))

    @classmethod
    async def send_contact_notification(cls, message: Dict[str, Any]) -> bool:
        text = (
            f"✉️ <b>Contact form: {escape(message['subject'])}</b>\n\n"
            f"From: {escape(message['name'])} &lt;{escape(message['email'])}&gt;\n\n"
            f"{escape(message['message'])}"
        )
        return await cls.notify_admin(text)
