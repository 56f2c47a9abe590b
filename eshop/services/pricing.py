"""
Money arithmetic for carts, checkout and ratings.

Amounts are computed as ``Decimal`` and rounded half-up to two places; the
result is handed back as ``float`` for storage and JSON.
"""

import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value) -> float:
    """Rounds to two decimal places."""
    return float(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def unit_price(price, discount: Optional[float] = None) -> float:
    """Price after a percentage discount (no discount when null or zero)."""
    base = to_decimal(price)
    if discount and to_decimal(discount) > 0:
        base = base * (Decimal("1") - to_decimal(discount) / Decimal("100"))
    return money(base)


def checkout_totals(
    lines: Iterable[Tuple[float, int]],
    tax_percentage: float = 0,
    shipping_charge: float = 0,
) -> dict:
    """
    Totals for a list of ``(unit_price, quantity)`` lines.

    tax = subtotal * tax% / 100, total = subtotal + tax + shipping.
    """
    subtotal = sum((to_decimal(price) * quantity for price, quantity in lines), Decimal("0"))
    subtotal = subtotal.quantize(CENT, rounding=ROUND_HALF_UP)
    tax = (subtotal * to_decimal(tax_percentage) / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
    shipping = to_decimal(shipping_charge).quantize(CENT, rounding=ROUND_HALF_UP)
    return {
        "subtotal": float(subtotal),
        "tax_amount": float(tax),
        "shipping_cost": float(shipping),
        "total": float(subtotal + tax + shipping),
    }


def to_paise(amount) -> int:
    """Smallest currency unit for the Razorpay API."""
    return int((to_decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def rating_average(current: float, count: int, value: int) -> Tuple[float, int]:
    """Running average after one more rating: (avg * n + r) / (n + 1)."""
    count = count or 0
    total = to_decimal(current or 0) * count + to_decimal(value)
    new_count = count + 1
    return money(total / new_count), new_count


def generate_order_number() -> str:
    return f"ORD-{uuid.uuid4().hex[:8].upper()}"
