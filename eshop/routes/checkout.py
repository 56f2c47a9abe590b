"""
API routes for checkout: online payment initiation, cash on delivery and the
Razorpay webhook.
"""

import json

from fastapi import APIRouter, Depends, HTTPException, Request

from ..config import settings
from ..logger import get_logger
from ..models.transaction import CashOnDeliveryCheckout, CheckoutInitiate
from ..models.user import User
from ..services import payu
from ..services.accounts import add_address, list_addresses
from ..services.database import DatabaseService, get_db, to_json
from ..services.orders import (
    CheckoutError,
    build_checkout_items,
    complete_transaction,
    create_cod_order,
    set_transaction_status,
    totals_for_items,
    transaction_from_row,
)
from ..services.pricing import to_paise
from ..services.razorpay_gateway import (
    PaymentGatewayError,
    RazorpayGateway,
    verify_webhook_signature,
)
from ..services.store_settings import load_settings
from .users import get_current_user

router = APIRouter()
logger = get_logger(__name__)

PRODUCTINFO_MAX_LENGTH = 100


async def _save_address_if_new(db: DatabaseService, user_id: int, address: dict) -> None:
    fields = ("name", "street", "city", "state", "zip", "country")
    for saved in await list_addresses(db, user_id):
        if all(saved[f] == address[f] for f in fields):
            return
    await add_address(db, user_id, {**address, "is_primary": False})


@router.post("/initiate")
async def initiate_checkout(
    checkout: CheckoutInitiate,
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    """Creates a pending transaction and prepares the active payment gateway."""
    address = checkout.shipping_address.model_dump()
    if checkout.save_address:
        await _save_address_if_new(db, current_user.id, address)

    try:
        items = await build_checkout_items(db, current_user.id, checkout.bargained_amounts)
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    totals = await totals_for_items(db, items)
    store = await load_settings(db)
    gateway = store["active_payment_gateway"]

    transaction_id = await db.insert("transactions", {
        "user_id": current_user.id,
        "items": to_json(items),
        "shipping_address": to_json({**address, "email": current_user.email}),
        "subtotal": totals["subtotal"],
        "tax_amount": totals["tax_amount"],
        "shipping_cost": totals["shipping_cost"],
        "amount": totals["total"],
        "currency": settings.CURRENCY,
        "gateway": gateway,
        "status": "Pending",
    })
    logger.info(
        "[CHECKOUT] Transaction %s created for user %s (%s %.2f via %s)",
        transaction_id, current_user.id, settings.CURRENCY, totals["total"], gateway
    )

    if gateway == "payu":
        txnid = str(transaction_id)
        callback_url = f"{settings.API_URL.rstrip('/')}/api/payments/payu-callback"
        details = {
            "key": settings.PAYU_KEY,
            "txnid": txnid,
            "amount": payu.format_amount(totals["total"]),
            "productinfo": ", ".join(item["product_name"] for item in items)[:PRODUCTINFO_MAX_LENGTH],
            "firstname": (address["name"].split() or [""])[0],
            "email": current_user.email,
            "phone": address.get("phone") or "",
            "surl": callback_url,
            "furl": callback_url,
        }
        try:
            details["hash"] = payu.request_hash(
                txnid=details["txnid"],
                amount=details["amount"],
                productinfo=details["productinfo"],
                firstname=details["firstname"],
                email=details["email"],
            )
        except payu.PayUConfigurationError as e:
            await set_transaction_status(db, transaction_id, "Failed")
            raise HTTPException(status_code=500, detail=str(e))

        await db.update("transactions", {"payu_txnid": txnid}, "id = ?", (transaction_id,))
        return {
            "success": True,
            "gateway": "payu",
            "transaction_id": transaction_id,
            "payu_details": details,
            "payu_url": settings.PAYU_BASE_URL,
        }

    try:
        razorpay_order = RazorpayGateway.create_order(
            amount_paise=to_paise(totals["total"]),
            currency=settings.CURRENCY,
            receipt=str(transaction_id),
        )
    except PaymentGatewayError as e:
        await set_transaction_status(db, transaction_id, "Failed")
        raise HTTPException(status_code=400, detail=f"Could not create payment order: {e}")

    await db.update(
        "transactions", {"razorpay_order_id": razorpay_order["id"]}, "id = ?", (transaction_id,)
    )
    return {
        "success": True,
        "gateway": "razorpay",
        "transaction_id": transaction_id,
        "razorpay_order": razorpay_order,
        "razorpay_key_id": settings.RAZORPAY_KEY_ID,
    }


@router.post("/cod", status_code=201)
async def checkout_cash_on_delivery(
    checkout: CashOnDeliveryCheckout,
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    """Places a cash-on-delivery order from the cart."""
    try:
        order = await create_cod_order(
            db, current_user.id, checkout.shipping_address.model_dump(), settings.CURRENCY
        )
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {
        "success": True,
        "message": "Order placed successfully",
        "order_id": order["id"],
        "order_number": order["order_number"],
    }


@router.post("/webhook")
async def razorpay_webhook(request: Request, db: DatabaseService = Depends(get_db)):
    """Razorpay server-to-server events."""
    if not settings.RAZORPAY_WEBHOOK_SECRET:
        logger.error("[WEBHOOK] RAZORPAY_WEBHOOK_SECRET is not configured")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    signature = request.headers.get("X-Razorpay-Signature")
    if not signature:
        raise HTTPException(status_code=400, detail="Signature missing")

    body = await request.body()
    if not verify_webhook_signature(body, signature):
        logger.warning("[WEBHOOK] Invalid signature")
        raise HTTPException(status_code=400, detail="Invalid signature")

    try:
        event = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid payload")

    event_type = event.get("event")
    payload = event.get("payload") or {}
    payment = (payload.get("payment") or {}).get("entity") or {}
    razorpay_order_id = payment.get("order_id") or ((payload.get("order") or {}).get("entity") or {}).get("id")

    row = await db.fetch_one(
        "SELECT * FROM transactions WHERE razorpay_order_id = ?", (razorpay_order_id,)
    ) if razorpay_order_id else None
    if not row:
        logger.warning("[WEBHOOK] No transaction for Razorpay order %s (%s)", razorpay_order_id, event_type)
        return {"status": "acknowledged", "message": "Transaction not found"}

    transaction = transaction_from_row(row)

    if event_type in ("payment.captured", "order.paid"):
        try:
            order, created = await complete_transaction(
                db,
                transaction,
                "Razorpay",
                payment_details={
                    "razorpay_order_id": razorpay_order_id,
                    "razorpay_payment_id": payment.get("id"),
                    "method": payment.get("method"),
                },
                razorpay_payment_id=payment.get("id"),
            )
        except CheckoutError as e:
            logger.error("[WEBHOOK] Could not fulfil transaction %s: %s", transaction["id"], e.message)
            raise HTTPException(status_code=500, detail=e.message)
        logger.info(
            "[WEBHOOK] %s for transaction %s, order %s (%s)",
            event_type, transaction["id"], order["order_number"], "created" if created else "existing"
        )
    elif event_type == "payment.failed":
        if transaction["status"] != "Success":
            await set_transaction_status(
                db, transaction["id"], "Failed", razorpay_payment_id=payment.get("id")
            )
    else:
        logger.info("[WEBHOOK] Ignoring event %s", event_type)

    return {"status": "ok"}
