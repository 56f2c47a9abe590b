"""
Razorpay integration: order creation and signature checks.
"""

import hashlib
import hmac
from typing import Any, Dict, Optional

import razorpay
from razorpay.errors import BadRequestError, GatewayError, ServerError

from ..config import settings
from ..logger import get_logger

logger = get_logger(__name__)


class PaymentGatewayError(Exception):
    """Raised when a gateway rejects a request or is not configured."""


def _hmac_sha256(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_payment_signature(
    order_id: str,
    payment_id: str,
    signature: str,
    secret: Optional[str] = None,
) -> bool:
    """Checks HMAC_SHA256(key_secret, "order_id|payment_id") against the client signature."""
    secret = secret if secret is not None else settings.RAZORPAY_KEY_SECRET
    if not secret or not signature:
        return False
    expected = _hmac_sha256(secret, f"{order_id}|{payment_id}".encode("utf-8"))
    return hmac.compare_digest(expected, signature)


def verify_webhook_signature(body: bytes, signature: str, secret: Optional[str] = None) -> bool:
    """Checks HMAC_SHA256(webhook_secret, raw body) against the X-Razorpay-Signature header."""
    secret = secret if secret is not None else settings.RAZORPAY_WEBHOOK_SECRET
    if not secret or not signature:
        return False
    expected = _hmac_sha256(secret, body)
    return hmac.compare_digest(expected, signature)


class RazorpayGateway:
    """Thin wrapper over the Razorpay SDK client."""

    _client: Optional[razorpay.Client] = None

    @classmethod
    def get_client(cls) -> razorpay.Client:
        if not settings.RAZORPAY_KEY_ID or not settings.RAZORPAY_KEY_SECRET:
            raise PaymentGatewayError("Razorpay credentials are not configured")
        if cls._client is None:
            cls._client = razorpay.Client(
                auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)
            )
        return cls._client

    @classmethod
    def create_order(cls, amount_paise: int, currency: str, receipt: str) -> Dict[str, Any]:
        """
        Creates a Razorpay order.

        Returns the order document (``id``, ``amount``, ``currency``,
        ``receipt``, ``status``). Raises PaymentGatewayError when Razorpay
        rejects the request.
        """
        client = cls.get_client()
        try:
            order = client.order.create(data={
                "amount": amount_paise,
                "currency": currency,
                "receipt": receipt,
            })
        except (BadRequestError, GatewayError, ServerError) as e:
            logger.warning("[RAZORPAY] Order creation failed for receipt %s: %s", receipt, e)
            raise PaymentGatewayError(str(e)) from e
        logger.info("[RAZORPAY] Order %s created for receipt %s", order.get("id"), receipt)
        return order
