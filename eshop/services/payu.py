"""
PayU hash calculation.

Request:  sha512(key|txnid|amount|productinfo|firstname|email|||||||||||salt)
Response: sha512(salt|status|||||||||||email|firstname|productinfo|amount|txnid|key)
"""

import hashlib
import hmac
from typing import Optional

from ..config import settings

# udf1..udf5 and five reserved fields, always empty
_BLANK_FIELDS = [""] * 10


class PayUConfigurationError(Exception):
    """Raised when the PayU key or salt is missing."""


def _sha512(text: str) -> str:
    return hashlib.sha512(text.encode("utf-8")).hexdigest()


def format_amount(amount) -> str:
    return f"{float(amount):.2f}"


def request_hash(
    txnid: str,
    amount: str,
    productinfo: str,
    firstname: str,
    email: str,
    key: Optional[str] = None,
    salt: Optional[str] = None,
) -> str:
    key = key if key is not None else settings.PAYU_KEY
    salt = salt if salt is not None else settings.PAYU_SALT
    if not key or not salt:
        raise PayUConfigurationError("PayU key or salt is not configured")
    text = "|".join([key, txnid, amount, productinfo, firstname, email, *_BLANK_FIELDS, salt])
    return _sha512(text)


def response_hash(
    status: str,
    txnid: str,
    amount: str,
    productinfo: str,
    firstname: str,
    email: str,
    key: Optional[str] = None,
    salt: Optional[str] = None,
) -> Optional[str]:
    key = key if key is not None else settings.PAYU_KEY
    salt = salt if salt is not None else settings.PAYU_SALT
    if not key or not salt:
        return None
    text = "|".join([salt, status, *_BLANK_FIELDS, email, firstname, productinfo, amount, txnid, key])
    return _sha512(text)


def verify_response_hash(received_hash: str, **fields) -> bool:
    """Constant-time comparison of the callback hash; false when PayU is not configured."""
    expected = response_hash(**fields)
    if not expected or not received_hash:
        return False
    return hmac.compare_digest(expected, received_hash.lower())
