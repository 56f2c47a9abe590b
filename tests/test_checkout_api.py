import hashlib
import hmac
import json

import pytest

from conftest import RAZORPAY_SECRET, RAZORPAY_WEBHOOK_SECRET, PAYU_KEY, PAYU_SALT, add_to_cart, login, register
from eshop.routes import payments
from eshop.services import payu


def razorpay_signature(order_id, payment_id):
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(RAZORPAY_SECRET.encode(), message, hashlib.sha256).hexdigest()


def webhook_headers(body: bytes):
    signature = hmac.new(RAZORPAY_WEBHOOK_SECRET.encode(), body, hashlib.sha256).hexdigest()
    return {"X-Razorpay-Signature": signature, "Content-Type": "application/json"}


@pytest.fixture()
def store_charges(client, admin_headers):
    response = client.post(
        "/api/admin/settings",
        json={"tax_percentage": 10, "shipping_charge": 50},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text


@pytest.fixture()
def payu_gateway(client, admin_headers):
    response = client.post(
        "/api/admin/settings", json={"active_payment_gateway": "payu"}, headers=admin_headers
    )
    assert response.status_code == 200, response.text


@pytest.fixture()
def phone(make_product):
    return make_product(stock=5)


def initiate(client, headers, shipping_address, **extra):
    response = client.post(
        "/api/checkout/initiate",
        json={"shipping_address": shipping_address, **extra},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


def product_stock(client, product_id):
    return client.get(f"/api/products/{product_id}").json()["stock"]


def transaction_status(client, admin_headers):
    transactions = client.get("/api/admin/transactions", headers=admin_headers).json()["transactions"]
    return transactions[0]["status"]


class TestCashOnDelivery:
    def test_places_order(self, client, user_headers, phone, shipping_address, store_charges):
        add_to_cart(client, user_headers, phone["id"], quantity=2)

        response = client.post(
            "/api/checkout/cod", json={"shipping_address": shipping_address}, headers=user_headers
        )
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["success"] is True
        assert body["order_number"].startswith("ORD-")

        order = client.get(f"/api/orders/{body['order_id']}", headers=user_headers).json()["order"]
        assert order["payment_method"] == "COD"
        assert order["payment_status"] == "Pending"
        assert order["status"] == "Processing"
        assert order["tax_amount"] == 200
        assert order["shipping_cost"] == 50
        assert order["total"] == 2250
        assert order["items"][0]["product"]["title"] == "Smartphone X"

        assert product_stock(client, phone["id"]) == 3
        assert client.get("/api/cart", headers=user_headers).json()["cart"]["items"] == []

    def test_empty_cart(self, client, user_headers, shipping_address):
        response = client.post(
            "/api/checkout/cod", json={"shipping_address": shipping_address}, headers=user_headers
        )
        assert response.status_code == 400

    def test_stock_changed_after_adding(self, client, user_headers, admin_headers, phone, shipping_address):
        add_to_cart(client, user_headers, phone["id"], quantity=4)
        client.put(f"/api/products/{phone['id']}", json={"stock": 2}, headers=admin_headers)

        response = client.post(
            "/api/checkout/cod", json={"shipping_address": shipping_address}, headers=user_headers
        )
        assert response.status_code == 400
        assert "Insufficient stock" in response.json()["detail"]
        assert product_stock(client, phone["id"]) == 2
        assert len(client.get("/api/cart", headers=user_headers).json()["cart"]["items"]) == 1

    def test_color_stock_is_decremented(self, client, user_headers, make_product, shipping_address):
        product = make_product(colors=[
            {"name": "Black", "image_urls": ["/media/black.png"], "stock": 2},
            {"name": "White", "image_urls": ["/media/white.png"], "stock": 5},
        ])
        add_to_cart(client, user_headers, product["id"], quantity=2, color="White")

        response = client.post(
            "/api/checkout/cod", json={"shipping_address": shipping_address}, headers=user_headers
        )
        assert response.status_code == 201

        updated = client.get(f"/api/products/{product['id']}").json()
        assert [c["stock"] for c in updated["colors"]] == [2, 3]
        assert updated["stock"] == 5


class TestRazorpayCheckout:
    def verification(self, initiated, payment_id="pay_1"):
        order_id = initiated["razorpay_order"]["id"]
        return {
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": razorpay_signature(order_id, payment_id),
            "transaction_id": initiated["transaction_id"],
        }

    def test_initiate_creates_pending_transaction(
        self, client, user_headers, phone, shipping_address, store_charges, razorpay_orders
    ):
        add_to_cart(client, user_headers, phone["id"], quantity=2)
        body = initiate(client, user_headers, shipping_address, save_address=True)

        assert body["gateway"] == "razorpay"
        assert body["razorpay_order"]["id"] == "order_test_1"
        assert body["razorpay_key_id"] == "rzp_test_key"
        assert razorpay_orders[0]["amount"] == 225000
        assert razorpay_orders[0]["currency"] == "INR"
        assert razorpay_orders[0]["receipt"] == str(body["transaction_id"])

        # nothing is ordered until the payment is confirmed
        assert product_stock(client, phone["id"]) == 5
        assert client.get("/api/orders", headers=user_headers).json()["orders"] == []

        addresses = client.get("/api/account/addresses", headers=user_headers).json()["addresses"]
        assert [a["street"] for a in addresses] == ["1 MG Road"]

    def test_saved_address_is_not_duplicated(self, client, user_headers, phone, shipping_address):
        add_to_cart(client, user_headers, phone["id"])
        initiate(client, user_headers, shipping_address, save_address=True)
        initiate(client, user_headers, shipping_address, save_address=True)

        addresses = client.get("/api/account/addresses", headers=user_headers).json()["addresses"]
        assert len(addresses) == 1

    def test_bargained_amounts_reduce_price(self, client, user_headers, phone, shipping_address, razorpay_orders):
        add_to_cart(client, user_headers, phone["id"], quantity=2)
        initiate(client, user_headers, shipping_address, bargained_amounts={str(phone["id"]): 100})

        assert razorpay_orders[0]["amount"] == 180000

    def test_negative_bargained_price(self, client, user_headers, phone, shipping_address):
        add_to_cart(client, user_headers, phone["id"])
        response = client.post(
            "/api/checkout/initiate",
            json={"shipping_address": shipping_address, "bargained_amounts": {str(phone["id"]): 5000}},
            headers=user_headers,
        )
        assert response.status_code == 400

    def test_bargained_amount_cannot_be_negative(self, client, user_headers, phone, shipping_address):
        add_to_cart(client, user_headers, phone["id"])
        response = client.post(
            "/api/checkout/initiate",
            json={"shipping_address": shipping_address, "bargained_amounts": {str(phone["id"]): -50}},
            headers=user_headers,
        )
        assert response.status_code == 422

    def test_verify_payment_creates_order(self, client, user_headers, phone, shipping_address):
        add_to_cart(client, user_headers, phone["id"], quantity=2)
        body = initiate(client, user_headers, shipping_address)
        order_id = body["razorpay_order"]["id"]
        payload = {
            "razorpay_order_id": order_id,
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": razorpay_signature(order_id, "pay_1"),
            "transaction_id": body["transaction_id"],
        }

        response = client.post("/api/payments/verify-payment", json=payload, headers=user_headers)
        assert response.status_code == 200, response.text
        placed = response.json()

        order = client.get(f"/api/orders/{placed['order_id']}", headers=user_headers).json()["order"]
        assert order["payment_method"] == "Razorpay"
        assert order["payment_status"] == "Paid"
        assert order["transaction_id"] == body["transaction_id"]
        assert order["payment_details"]["razorpay_payment_id"] == "pay_1"
        assert product_stock(client, phone["id"]) == 3

        # a repeated verification returns the same order
        response = client.post("/api/payments/verify-payment", json=payload, headers=user_headers)
        assert response.json()["order_id"] == placed["order_id"]
        assert len(client.get("/api/orders", headers=user_headers).json()["orders"]) == 1
        assert product_stock(client, phone["id"]) == 3

    def test_repeated_verification_returns_existing_order(self, client, user_headers, phone, shipping_address):
        add_to_cart(client, user_headers, phone["id"])
        payload = self.verification(initiate(client, user_headers, shipping_address))
        first = client.post("/api/payments/verify-payment", json=payload, headers=user_headers).json()

        response = client.post("/api/payments/verify-payment", json=payload, headers=user_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Payment already verified"
        assert response.json()["order_id"] == first["order_id"]

    def test_admin_order_details_show_transaction(
        self, client, user_headers, admin_headers, phone, shipping_address
    ):
        add_to_cart(client, user_headers, phone["id"])
        payload = self.verification(initiate(client, user_headers, shipping_address))
        placed = client.post("/api/payments/verify-payment", json=payload, headers=user_headers).json()

        response = client.get(f"/api/admin/orders/{placed['order_id']}", headers=admin_headers)
        assert response.status_code == 200
        transaction = response.json()["order"]["transaction"]
        assert transaction["id"] == payload["transaction_id"]
        assert transaction["status"] == "Success"
        assert transaction["razorpay_payment_id"] == "pay_1"
        assert transaction["items"][0]["product_id"] == phone["id"]
        assert "razorpay_signature" not in transaction

    def test_verify_unknown_transaction(self, client, user_headers):
        payload = {
            "razorpay_order_id": "order_x",
            "razorpay_payment_id": "pay_x",
            "razorpay_signature": razorpay_signature("order_x", "pay_x"),
            "transaction_id": 999,
        }
        response = client.post("/api/payments/verify-payment", json=payload, headers=user_headers)
        assert response.status_code == 404

    def test_unfulfillable_payment_is_rolled_back(
        self, client, user_headers, admin_headers, phone, shipping_address
    ):
        add_to_cart(client, user_headers, phone["id"], quantity=2)
        payload = self.verification(initiate(client, user_headers, shipping_address))
        client.put(f"/api/products/{phone['id']}", json={"stock": 1}, headers=admin_headers)

        response = client.post("/api/payments/verify-payment", json=payload, headers=user_headers)
        assert response.status_code == 400
        assert "Insufficient stock" in response.json()["detail"]

        assert transaction_status(client, admin_headers) == "Pending"
        assert client.get("/api/orders", headers=user_headers).json()["orders"] == []
        assert product_stock(client, phone["id"]) == 1
        assert len(client.get("/api/cart", headers=user_headers).json()["cart"]["items"]) == 1

    def test_invalid_signature_fails_transaction(self, client, user_headers, admin_headers, phone, shipping_address):
        add_to_cart(client, user_headers, phone["id"])
        body = initiate(client, user_headers, shipping_address)

        response = client.post(
            "/api/payments/verify-payment",
            json={
                "razorpay_order_id": body["razorpay_order"]["id"],
                "razorpay_payment_id": "pay_1",
                "razorpay_signature": "forged",
                "transaction_id": body["transaction_id"],
            },
            headers=user_headers,
        )
        assert response.status_code == 400

        transactions = client.get("/api/admin/transactions", headers=admin_headers).json()["transactions"]
        assert transactions[0]["status"] == "Failed"
        assert client.get("/api/orders", headers=user_headers).json()["orders"] == []

    def test_order_id_must_match_transaction(self, client, user_headers, phone, shipping_address):
        add_to_cart(client, user_headers, phone["id"])
        body = initiate(client, user_headers, shipping_address)

        response = client.post(
            "/api/payments/verify-payment",
            json={
                "razorpay_order_id": "order_other",
                "razorpay_payment_id": "pay_1",
                "razorpay_signature": razorpay_signature("order_other", "pay_1"),
                "transaction_id": body["transaction_id"],
            },
            headers=user_headers,
        )
        assert response.status_code == 400

    def test_cancel_payment(self, client, user_headers, admin_headers, phone, shipping_address):
        add_to_cart(client, user_headers, phone["id"])
        body = initiate(client, user_headers, shipping_address)

        response = client.post(
            "/api/payments/cancel-payment",
            json={"transaction_id": body["transaction_id"]},
            headers=user_headers,
        )
        assert response.json()["message"] == "Payment cancelled"

        transactions = client.get("/api/admin/transactions", headers=admin_headers).json()["transactions"]
        assert transactions[0]["status"] == "Cancelled"

        # cancelling someone else's transaction is acknowledged without effect
        register(client, "other@example.com")
        other_headers = login(client, "other@example.com")
        response = client.post(
            "/api/payments/cancel-payment",
            json={"transaction_id": body["transaction_id"]},
            headers=other_headers,
        )
        assert response.json() == {"success": True, "message": "Acknowledged"}


class TestRazorpayWebhook:
    def captured_event(self, order_id, payment_id="pay_hook"):
        return json.dumps({
            "event": "payment.captured",
            "payload": {
                "payment": {"entity": {"id": payment_id, "order_id": order_id, "method": "upi"}}
            },
        }).encode()

    def test_captured_payment_creates_order_once(self, client, user_headers, phone, shipping_address):
        add_to_cart(client, user_headers, phone["id"])
        body = initiate(client, user_headers, shipping_address)
        event = self.captured_event(body["razorpay_order"]["id"])

        for _ in range(2):
            response = client.post("/api/checkout/webhook", content=event, headers=webhook_headers(event))
            assert response.status_code == 200
            assert response.json() == {"status": "ok"}

        orders = client.get("/api/orders", headers=user_headers).json()["orders"]
        assert len(orders) == 1
        assert orders[0]["payment_details"]["method"] == "upi"
        assert product_stock(client, phone["id"]) == 4

    def test_unfulfillable_captured_payment(self, client, user_headers, admin_headers, phone, shipping_address):
        add_to_cart(client, user_headers, phone["id"], quantity=3)
        body = initiate(client, user_headers, shipping_address)
        client.put(f"/api/products/{phone['id']}", json={"stock": 2}, headers=admin_headers)
        event = self.captured_event(body["razorpay_order"]["id"])

        response = client.post("/api/checkout/webhook", content=event, headers=webhook_headers(event))
        assert response.status_code == 500

        assert transaction_status(client, admin_headers) == "Pending"
        assert client.get("/api/orders", headers=user_headers).json()["orders"] == []
        assert product_stock(client, phone["id"]) == 2

    def test_invalid_signature(self, client):
        event = self.captured_event("order_x")
        response = client.post(
            "/api/checkout/webhook", content=event, headers={"X-Razorpay-Signature": "bad"}
        )
        assert response.status_code == 400

    def test_missing_signature(self, client):
        response = client.post("/api/checkout/webhook", content=b"{}")
        assert response.status_code == 400

    def test_unknown_order_is_acknowledged(self, client):
        event = self.captured_event("order_unknown")
        response = client.post("/api/checkout/webhook", content=event, headers=webhook_headers(event))
        assert response.json()["status"] == "acknowledged"

    def test_failed_payment(self, client, user_headers, admin_headers, phone, shipping_address):
        add_to_cart(client, user_headers, phone["id"])
        body = initiate(client, user_headers, shipping_address)
        event = json.dumps({
            "event": "payment.failed",
            "payload": {"payment": {"entity": {"id": "pay_x", "order_id": body["razorpay_order"]["id"]}}},
        }).encode()

        response = client.post("/api/checkout/webhook", content=event, headers=webhook_headers(event))
        assert response.status_code == 200

        transaction = client.get("/api/admin/transactions", headers=admin_headers).json()["transactions"][0]
        assert transaction["status"] == "Failed"
        assert transaction["razorpay_payment_id"] == "pay_x"

    def test_secret_not_configured(self, client, app_settings, monkeypatch):
        monkeypatch.setattr(app_settings, "RAZORPAY_WEBHOOK_SECRET", "")
        response = client.post("/api/checkout/webhook", content=b"{}", headers={"X-Razorpay-Signature": "x"})
        assert response.status_code == 500


class TestPayU:
    def callback_form(self, details, status="success"):
        form = {
            "txnid": details["txnid"],
            "status": status,
            "amount": details["amount"],
            "productinfo": details["productinfo"],
            "firstname": details["firstname"],
            "email": details["email"],
            "mihpayid": "mih_42",
            "mode": "UPI",
        }
        form["hash"] = payu.response_hash(
            status=status,
            txnid=form["txnid"],
            amount=form["amount"],
            productinfo=form["productinfo"],
            firstname=form["firstname"],
            email=form["email"],
            key=PAYU_KEY,
            salt=PAYU_SALT,
        )
        return form

    def test_initiate_returns_signed_form(self, client, user_headers, phone, shipping_address, payu_gateway):
        add_to_cart(client, user_headers, phone["id"])
        body = initiate(client, user_headers, shipping_address)

        assert body["gateway"] == "payu"
        details = body["payu_details"]
        assert details["txnid"] == str(body["transaction_id"])
        assert details["amount"] == "1000.00"
        assert details["firstname"] == "Jane"
        assert details["email"] == "jane@example.com"
        assert details["surl"] == "http://api.shop.test/api/payments/payu-callback"
        assert details["hash"] == payu.request_hash(
            txnid=details["txnid"],
            amount="1000.00",
            productinfo="Smartphone X",
            firstname="Jane",
            email="jane@example.com",
            key=PAYU_KEY,
            salt=PAYU_SALT,
        )

    def test_successful_callback(self, client, user_headers, phone, shipping_address, payu_gateway):
        add_to_cart(client, user_headers, phone["id"])
        details = initiate(client, user_headers, shipping_address)["payu_details"]

        response = client.post(
            "/api/payments/payu-callback", data=self.callback_form(details), follow_redirects=False
        )
        assert response.status_code == 303

        order = client.get("/api/orders", headers=user_headers).json()["orders"][0]
        assert response.headers["location"] == f"http://shop.test/payment/success?order_id={order['id']}"
        assert order["payment_method"] == "PayU"
        assert order["payment_status"] == "Paid"
        assert order["payment_details"]["payu_mihpayid"] == "mih_42"

    def test_repeated_success_callback_reuses_order(self, client, user_headers, phone, shipping_address, payu_gateway):
        add_to_cart(client, user_headers, phone["id"])
        form = self.callback_form(initiate(client, user_headers, shipping_address)["payu_details"])

        first = client.post("/api/payments/payu-callback", data=form, follow_redirects=False)
        second = client.post("/api/payments/payu-callback", data=form, follow_redirects=False)

        assert second.headers["location"] == first.headers["location"]
        assert len(client.get("/api/orders", headers=user_headers).json()["orders"]) == 1
        assert product_stock(client, phone["id"]) == 4

    def test_unfulfillable_payment_is_rolled_back(
        self, client, user_headers, admin_headers, phone, shipping_address, payu_gateway
    ):
        add_to_cart(client, user_headers, phone["id"], quantity=2)
        form = self.callback_form(initiate(client, user_headers, shipping_address)["payu_details"])
        client.put(f"/api/products/{phone['id']}", json={"stock": 1}, headers=admin_headers)

        response = client.post("/api/payments/payu-callback", data=form, follow_redirects=False)
        assert response.headers["location"] == "http://shop.test/payment/failure?error=server_error"
        assert transaction_status(client, admin_headers) == "Pending"
        assert client.get("/api/orders", headers=user_headers).json()["orders"] == []

    def test_unexpected_error_still_redirects(
        self, client, user_headers, phone, shipping_address, payu_gateway, monkeypatch
    ):
        add_to_cart(client, user_headers, phone["id"])
        form = self.callback_form(initiate(client, user_headers, shipping_address)["payu_details"])

        async def broken_complete_transaction(*args, **kwargs):
            raise RuntimeError("database is locked")

        monkeypatch.setattr(payments, "complete_transaction", broken_complete_transaction)
        response = client.post("/api/payments/payu-callback", data=form, follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "http://shop.test/payment/failure?error=server_error"

    def test_hash_mismatch(self, client, user_headers, phone, shipping_address, payu_gateway):
        add_to_cart(client, user_headers, phone["id"])
        details = initiate(client, user_headers, shipping_address)["payu_details"]
        form = self.callback_form(details)
        form["amount"] = "1.00"

        response = client.post("/api/payments/payu-callback", data=form, follow_redirects=False)
        assert response.headers["location"] == "http://shop.test/payment/failure?error=hash_mismatch"
        assert client.get("/api/orders", headers=user_headers).json()["orders"] == []

    def test_failed_payment(self, client, user_headers, admin_headers, phone, shipping_address, payu_gateway):
        add_to_cart(client, user_headers, phone["id"])
        body = initiate(client, user_headers, shipping_address)

        response = client.post(
            "/api/payments/payu-callback",
            data=self.callback_form(body["payu_details"], status="failure"),
            follow_redirects=False,
        )
        assert response.headers["location"] == (
            f"http://shop.test/payment/failure?transaction_id={body['transaction_id']}"
        )
        transaction = client.get("/api/admin/transactions", headers=admin_headers).json()["transactions"][0]
        assert transaction["status"] == "Failed"

    def test_unknown_transaction(self, client):
        response = client.post(
            "/api/payments/payu-callback",
            data={"txnid": "999", "status": "success", "hash": "abc"},
            follow_redirects=False,
        )
        assert response.headers["location"] == "http://shop.test/payment/failure?error=transaction_not_found"

    def test_incomplete_callback(self, client):
        response = client.post("/api/payments/payu-callback", data={"txnid": "1"}, follow_redirects=False)
        assert response.headers["location"] == "http://shop.test/payment/failure?error=invalid_response"
