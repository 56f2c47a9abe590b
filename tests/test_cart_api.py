from conftest import add_to_cart

COLORS = [
    {"name": "Black", "hex_code": "#000000", "image_urls": ["/media/products/black.png"], "stock": 2},
    {"name": "White", "hex_code": "#ffffff", "image_urls": ["/media/products/white.png"], "stock": 5},
]


class TestAddToCart:
    def test_snapshots_discounted_price(self, client, user_headers, make_product):
        product = make_product(price=1000, discount=10)
        cart = add_to_cart(client, user_headers, product["id"], quantity=2)

        assert len(cart["items"]) == 1
        line = cart["items"][0]
        assert line["name"] == "Smartphone X"
        assert line["price"] == 900
        assert line["quantity"] == 2
        assert line["image"] == "/media/products/phone.png"
        assert cart["subtotal"] == 1800

    def test_same_product_sets_quantity(self, client, user_headers, make_product):
        product = make_product()
        add_to_cart(client, user_headers, product["id"], quantity=2)
        cart = add_to_cart(client, user_headers, product["id"], quantity=5)

        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 5

    def test_colors_are_separate_lines(self, client, user_headers, make_product):
        product = make_product(colors=COLORS)
        add_to_cart(client, user_headers, product["id"], color="Black")
        cart = add_to_cart(client, user_headers, product["id"], color="White")

        assert [line["selected_color"]["name"] for line in cart["items"]] == ["Black", "White"]
        assert cart["items"][1]["image"] == "/media/products/white.png"

    def test_color_stock_is_checked(self, client, user_headers, make_product):
        product = make_product(colors=COLORS)
        response = client.post(
            "/api/cart",
            json={"product_id": product["id"], "quantity": 3, "selected_color_name": "Black"},
            headers=user_headers,
        )
        assert response.status_code == 400
        assert "Only 2 available" in response.json()["detail"]

    def test_unknown_color(self, client, user_headers, make_product):
        product = make_product(colors=COLORS)
        response = client.post(
            "/api/cart",
            json={"product_id": product["id"], "selected_color_name": "Purple"},
            headers=user_headers,
        )
        assert response.status_code == 400

    def test_minimum_order_quantity(self, client, user_headers, make_product):
        product = make_product(min_order_quantity=3)
        response = client.post(
            "/api/cart", json={"product_id": product["id"], "quantity": 2}, headers=user_headers
        )
        assert response.status_code == 400
        assert "Minimum order quantity" in response.json()["detail"]

    def test_unknown_product(self, client, user_headers):
        response = client.post("/api/cart", json={"product_id": 999}, headers=user_headers)
        assert response.status_code == 404

    def test_requires_sign_in(self, client):
        assert client.get("/api/cart").status_code == 401


class TestUpdateCart:
    def test_update_quantity(self, client, user_headers, make_product):
        product = make_product(stock=4)
        cart = add_to_cart(client, user_headers, product["id"])
        item_id = cart["items"][0]["id"]

        response = client.put(f"/api/cart/{item_id}", json={"new_quantity": 4}, headers=user_headers)
        assert response.status_code == 200
        assert response.json()["cart"]["items"][0]["quantity"] == 4

        response = client.put(f"/api/cart/{item_id}", json={"new_quantity": 5}, headers=user_headers)
        assert response.status_code == 400

        response = client.put(f"/api/cart/{item_id}", json={"new_quantity": 0}, headers=user_headers)
        assert response.status_code == 422

    def test_deleted_product_line_is_removed(self, client, user_headers, admin_headers, make_product):
        product = make_product()
        cart = add_to_cart(client, user_headers, product["id"])
        client.delete(f"/api/products/{product['id']}", headers=admin_headers)

        response = client.put(
            f"/api/cart/{cart['items'][0]['id']}", json={"new_quantity": 2}, headers=user_headers
        )
        assert response.status_code == 404
        assert client.get("/api/cart", headers=user_headers).json()["cart"]["items"] == []

    def test_removed_color_line_is_removed(self, client, user_headers, admin_headers, make_product):
        product = make_product(colors=COLORS)
        cart = add_to_cart(client, user_headers, product["id"], color="Black")
        client.put(f"/api/products/{product['id']}", json={"colors": COLORS[1:]}, headers=admin_headers)

        response = client.put(
            f"/api/cart/{cart['items'][0]['id']}", json={"new_quantity": 1}, headers=user_headers
        )
        assert response.status_code == 400
        assert client.get("/api/cart", headers=user_headers).json()["cart"]["items"] == []

    def test_cannot_touch_another_users_line(self, client, user_headers, make_product):
        from conftest import login, register

        product = make_product()
        cart = add_to_cart(client, user_headers, product["id"])
        register(client, "other@example.com")
        other_headers = login(client, "other@example.com")

        item_id = cart["items"][0]["id"]
        assert client.put(f"/api/cart/{item_id}", json={"new_quantity": 2}, headers=other_headers).status_code == 404
        assert client.delete(f"/api/cart/{item_id}", headers=other_headers).status_code == 404


class TestRemoveFromCart:
    def test_remove_line(self, client, user_headers, make_product):
        first = make_product(title="Phone")
        second = make_product(title="Case", price=50)
        add_to_cart(client, user_headers, first["id"])
        cart = add_to_cart(client, user_headers, second["id"])

        response = client.delete(f"/api/cart/{cart['items'][0]['id']}", headers=user_headers)
        assert response.status_code == 200
        assert [line["name"] for line in response.json()["cart"]["items"]] == ["Case"]

    def test_clear(self, client, user_headers, make_product):
        product = make_product()
        add_to_cart(client, user_headers, product["id"])

        response = client.delete("/api/cart", headers=user_headers)
        assert response.status_code == 200
        cart = response.json()["cart"]
        assert cart["items"] == []
        assert cart["subtotal"] == 0
