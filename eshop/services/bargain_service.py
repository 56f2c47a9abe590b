"""
Bargain assistant: asks a Gemini model for per-item cart discounts.
"""

import json
from typing import Any, Dict, List, Optional

import google.generativeai as genai

from ..config import settings
from ..logger import get_logger
from .database import DatabaseService, from_json
from .pricing import money, to_decimal

logger = get_logger(__name__)

MAX_DISCOUNT_SHARE = 0.15

FALLBACK_MESSAGE = (
    "I'm sorry, I'm having a little trouble with my calculations right now. "
    "Let's stick with the current prices for now, but feel free to try again later!"
)
OVER_CAP_MESSAGE = (
    "I got a bit carried away with the discounts! "
    "Let's try a more reasonable offer. How does this look?"
)

_PROMPT = """You are BargainBot, a friendly and fair shopkeeper. A customer wants to negotiate the price of their shopping cart.
Analyze their request, their shopping history and their current cart and offer a reasonable, personalized discount.

RULES:
1. Start with a warm, conversational reply.
2. Briefly explain why you give the discount, referencing their loyalty or the items.
3. Decide a per-unit discount amount for each item in the cart. It can be zero.
4. Do not give a large discount to a new customer (0 or 1 successful transactions). A small token discount is fine.
5. The TOTAL discount (per-unit discount times quantity, summed over items) must NOT exceed 15% of the cart subtotal.
6. Reply with JSON only:
{{"response_message": "<text>", "discounts": [{{"product_id": <int>, "discount_amount": <number>}}]}}

CUSTOMER'S REQUEST:
"{prompt}"

CUSTOMER'S SHOPPING HISTORY:
{history}

CUSTOMER'S CURRENT CART:
{cart}
"""


async def get_user_transaction_summary(db: DatabaseService, user_id: int) -> Dict[str, Any]:
    """Successful purchase history used to reward loyal customers."""
    rows = await db.fetch_all(
        """SELECT amount, items, created_at FROM transactions
           WHERE user_id = ? AND status = 'Success'
           ORDER BY created_at DESC""",
        (user_id,)
    )
    purchased = []
    for row in rows:
        for item in from_json(row["items"], []):
            name = item.get("product_name")
            if name and name not in purchased:
                purchased.append(name)
    return {
        "successful_transactions": len(rows),
        "total_spent": money(sum(to_decimal(row["amount"]) for row in rows)),
        "last_purchase_at": rows[0]["created_at"] if rows else None,
        "purchased_products": purchased[:20],
    }


def _strip_code_fence(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        raw = raw.split("\n", 1)[1] if "\n" in raw else raw[3:]
    if raw.endswith("```"):
        raw = raw[:-3]
    return raw.strip()


async def ask_model(prompt: str) -> Optional[str]:
    """Raw model reply, or None when the model is not configured."""
    if not settings.GEMINI_API_KEY:
        logger.info("[BARGAIN] GEMINI_API_KEY not set, skipping model call")
        return None
    genai.configure(api_key=settings.GEMINI_API_KEY)
    model = genai.GenerativeModel(settings.GEMINI_MODEL)
    response = await model.generate_content_async(
        prompt,
        generation_config=genai.GenerationConfig(
            temperature=0.4,
            max_output_tokens=800,
            response_mime_type="application/json",
        ),
    )
    return response.text


def parse_offer(raw: Optional[str], cart_items: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Validates the model output. Discounts for products not in the cart are dropped."""
    if not raw:
        return None
    try:
        data = json.loads(_strip_code_fence(raw))
    except ValueError:
        logger.warning("[BARGAIN] Model returned non-JSON: %s", raw[:200])
        return None
    if not isinstance(data, dict) or not isinstance(data.get("response_message"), str):
        return None

    cart_ids = {item["product_id"] for item in cart_items}
    discounts = []
    for entry in data.get("discounts") or []:
        try:
            product_id = int(entry["product_id"])
            amount = float(entry["discount_amount"])
        except (KeyError, TypeError, ValueError):
            continue
        if product_id in cart_ids and amount > 0:
            discounts.append({"product_id": product_id, "discount_amount": money(amount)})
    return {"response_message": data["response_message"], "discounts": discounts}


def exceeds_cap(discounts: List[Dict[str, Any]], cart_items: List[Dict[str, Any]]) -> bool:
    """True when the total proposed discount is above 15% of the cart subtotal."""
    quantities = {item["product_id"]: item["quantity"] for item in cart_items}
    subtotal = sum(to_decimal(item["price"]) * item["quantity"] for item in cart_items)
    proposed = sum(
        to_decimal(d["discount_amount"]) * quantities.get(d["product_id"], 0) for d in discounts
    )
    return proposed > subtotal * to_decimal(MAX_DISCOUNT_SHARE)


async def bargain_for_cart(
    db: DatabaseService,
    user_id: int,
    prompt: str,
    cart_items: List[Dict[str, Any]],
) -> Dict[str, Any]:
    history = await get_user_transaction_summary(db, user_id)
    text = _PROMPT.format(
        prompt=prompt.replace('"', "'"),
        history=json.dumps(history, indent=2, default=str),
        cart=json.dumps(cart_items, indent=2),
    )

    try:
        raw = await ask_model(text)
    except Exception:
        logger.exception("[BARGAIN] Model call failed")
        raw = None

    offer = parse_offer(raw, cart_items)
    if offer is None:
        return {"response_message": FALLBACK_MESSAGE, "discounts": []}

    if exceeds_cap(offer["discounts"], cart_items):
        logger.warning("[BARGAIN] Proposed discount for user %s exceeds the 15%% cap, overriding", user_id)
        return {"response_message": OVER_CAP_MESSAGE, "discounts": []}

    return offer
