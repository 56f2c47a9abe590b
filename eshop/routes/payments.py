"""
API routes for payment confirmation: Razorpay verification, PayU callback and
cancellation.
"""

from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse

from ..config import settings
from ..logger import get_logger
from ..models.transaction import PaymentCancel, RazorpayVerification
from ..models.user import User
from ..services import payu
from ..services.database import DatabaseService, get_db
from ..services.error_reporting import capture_exception
from ..services.orders import (
    CheckoutError,
    complete_transaction,
    find_order_for_transaction,
    get_transaction,
    set_transaction_status,
    transaction_from_row,
)
from ..services.razorpay_gateway import verify_payment_signature
from .users import get_current_user

router = APIRouter()
logger = get_logger(__name__)


def _storefront_redirect(outcome: str, **params) -> RedirectResponse:
    url = f"{settings.SITE_URL.rstrip('/')}/payment/{outcome}"
    if params:
        url += "?" + urlencode(params)
    return RedirectResponse(url=url, status_code=303)


@router.post("/verify-payment")
async def verify_razorpay_payment(
    verification: RazorpayVerification,
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    """Checks the Razorpay checkout signature and turns the transaction into an order."""
    transaction = await get_transaction(db, verification.transaction_id)
    if transaction and transaction["user_id"] != current_user.id:
        transaction = None

    if not verify_payment_signature(
        verification.razorpay_order_id,
        verification.razorpay_payment_id,
        verification.razorpay_signature,
    ):
        logger.warning("[PAYMENTS] Invalid signature for transaction %s", verification.transaction_id)
        if transaction and transaction["status"] == "Pending":
            await set_transaction_status(
                db, transaction["id"], "Failed",
                razorpay_payment_id=verification.razorpay_payment_id,
            )
        raise HTTPException(status_code=400, detail="Invalid payment signature")

    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    if transaction["razorpay_order_id"] != verification.razorpay_order_id:
        raise HTTPException(status_code=400, detail="Razorpay order id does not match the transaction")

    if transaction["status"] == "Success":
        order = await find_order_for_transaction(db, transaction["id"])
        if order:
            return {
                "success": True,
                "message": "Payment already verified",
                "order_id": order["id"],
                "order_number": order["order_number"],
            }

    try:
        order, _ = await complete_transaction(
            db,
            transaction,
            "Razorpay",
            payment_details={
                "razorpay_order_id": verification.razorpay_order_id,
                "razorpay_payment_id": verification.razorpay_payment_id,
            },
            razorpay_payment_id=verification.razorpay_payment_id,
            razorpay_signature=verification.razorpay_signature,
        )
    except CheckoutError as e:
        logger.error("[PAYMENTS] Paid transaction %s could not be fulfilled: %s", transaction["id"], e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {
        "success": True,
        "message": "Payment verified and order placed",
        "order_id": order["id"],
        "order_number": order["order_number"],
    }


async def _process_payu_callback(form, db: DatabaseService) -> RedirectResponse:
    txnid = form.get("txnid")
    status = form.get("status")
    received_hash = form.get("hash")

    if not txnid or not status or not received_hash:
        return _storefront_redirect("failure", error="invalid_response")

    row = await db.fetch_one("SELECT * FROM transactions WHERE payu_txnid = ?", (txnid,))
    if not row:
        logger.warning("[PAYU] Callback for unknown txnid %s", txnid)
        return _storefront_redirect("failure", error="transaction_not_found")
    transaction = transaction_from_row(row)

    hash_ok = payu.verify_response_hash(
        received_hash,
        status=status,
        txnid=txnid,
        amount=form.get("amount", ""),
        productinfo=form.get("productinfo", ""),
        firstname=form.get("firstname", ""),
        email=form.get("email", ""),
    )
    mihpayid = form.get("mihpayid")

    if not hash_ok:
        logger.warning("[PAYU] Hash mismatch for transaction %s", transaction["id"])
        if transaction["status"] != "Success":
            await set_transaction_status(db, transaction["id"], "Failed", payu_mihpayid=mihpayid)
        return _storefront_redirect("failure", error="hash_mismatch")

    if status == "success":
        try:
            order, _ = await complete_transaction(
                db,
                transaction,
                "PayU",
                payment_details={
                    "payu_txnid": txnid,
                    "payu_mihpayid": mihpayid,
                    "mode": form.get("mode"),
                },
                payu_mihpayid=mihpayid,
            )
        except CheckoutError as e:
            logger.error("[PAYU] Transaction %s could not be fulfilled: %s", transaction["id"], e.message)
            return _storefront_redirect("failure", error="server_error")
        return _storefront_redirect("success", order_id=order["id"])

    if transaction["status"] != "Success":
        await set_transaction_status(db, transaction["id"], "Failed", payu_mihpayid=mihpayid)
    return _storefront_redirect("failure", transaction_id=transaction["id"])


@router.post("/payu-callback")
async def payu_callback(request: Request, db: DatabaseService = Depends(get_db)):
    """PayU posts the payment result here; the customer is always redirected to the storefront."""
    form = await request.form()
    try:
        return await _process_payu_callback(form, db)
    except Exception as e:
        logger.exception("[PAYU] Callback for txnid %s failed", form.get("txnid"))
        capture_exception(e)
        return _storefront_redirect("failure", error="server_error")


@router.post("/cancel-payment")
async def cancel_payment(
    cancel: PaymentCancel,
    current_user: User = Depends(get_current_user),
    db: DatabaseService = Depends(get_db)
):
    """The customer closed the payment dialog; a pending transaction is cancelled."""
    transaction = await get_transaction(db, cancel.transaction_id)
    if not transaction or transaction["user_id"] != current_user.id:
        return {"success": True, "message": "Acknowledged"}

    if transaction["status"] != "Pending":
        return {"success": True, "message": f"Transaction already {transaction['status'].lower()}"}

    await set_transaction_status(db, transaction["id"], "Cancelled")
    return {"success": True, "message": "Payment cancelled"}
