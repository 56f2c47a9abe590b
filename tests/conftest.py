import asyncio

import pytest
from fastapi.testclient import TestClient

from eshop.config import settings
from eshop.services.razorpay_gateway import RazorpayGateway
from scripts.create_admin import create_admin

RAZORPAY_KEY_ID = "rzp_test_key"
RAZORPAY_SECRET = "rzp_test_secret"
RAZORPAY_WEBHOOK_SECRET = "rzp_webhook_secret"
PAYU_KEY = "payu_key"
PAYU_SALT = "payu_salt"


@pytest.fixture()
def app_settings(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_PATH", tmp_path / "eshop-test.db")
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)
    monkeypatch.setattr(settings, "BOT_TOKEN", "")
    monkeypatch.setattr(settings, "SENTRY_DSN", "")
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
    monkeypatch.setattr(settings, "SITE_URL", "http://shop.test")
    monkeypatch.setattr(settings, "API_URL", "http://api.shop.test")
    monkeypatch.setattr(settings, "RAZORPAY_KEY_ID", RAZORPAY_KEY_ID)
    monkeypatch.setattr(settings, "RAZORPAY_KEY_SECRET", RAZORPAY_SECRET)
    monkeypatch.setattr(settings, "RAZORPAY_WEBHOOK_SECRET", RAZORPAY_WEBHOOK_SECRET)
    monkeypatch.setattr(settings, "PAYU_KEY", PAYU_KEY)
    monkeypatch.setattr(settings, "PAYU_SALT", PAYU_SALT)
    return settings


@pytest.fixture()
def razorpay_orders(monkeypatch):
    """Replaces the Razorpay API call; returns the list of created orders."""
    created = []

    def fake_create_order(amount_paise, currency, receipt):
        order = {
            "id": f"order_test_{len(created) + 1}",
            "amount": amount_paise,
            "currency": currency,
            "receipt": receipt,
            "status": "created",
        }
        created.append(order)
        return order

    monkeypatch.setattr(RazorpayGateway, "create_order", fake_create_order)
    return created


@pytest.fixture()
def client(app_settings, razorpay_orders):
    from eshop.main import app

    with TestClient(app) as test_client:
        yield test_client


def register(client, email, password="secret123", name="Jane Doe"):
    response = client.post(
        "/api/auth/register", json={"name": name, "email": email, "password": password}
    )
    assert response.status_code == 201, response.text
    return response.json()["user"]


def login(client, email, password="secret123"):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture()
def user_headers(client):
    register(client, "jane@example.com")
    return login(client, "jane@example.com")


@pytest.fixture()
def admin_headers(client):
    asyncio.run(create_admin("admin@example.com", "admin-secret"))
    return login(client, "admin@example.com", "admin-secret")


@pytest.fixture()
def category(client, admin_headers):
    response = client.post(
        "/api/categories",
        json={"name": "Electronics", "subcategories": ["Phones", " Laptops ", "Phones", ""]},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["category"]


@pytest.fixture()
def make_product(client, admin_headers, category):
    def _make(**overrides):
        payload = {
            "title": "Smartphone X",
            "description": "A fast phone",
            "price": 1000.0,
            "category_id": category["id"],
            "stock": 10,
            "thumbnail_url": "/media/products/phone.png",
        }
        payload.update(overrides)
        response = client.post("/api/products", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()["product"]

    return _make


@pytest.fixture()
def shipping_address():
    return {
        "name": "Jane Doe",
        "street": "1 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "zip": "560001",
        "country": "India",
        "phone": "9999999999",
    }


def add_to_cart(client, headers, product_id, quantity=1, color=None):
    payload = {"product_id": product_id, "quantity": quantity}
    if color:
        payload["selected_color_name"] = color
    response = client.post("/api/cart", json=payload, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["cart"]
