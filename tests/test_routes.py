"""
Integration tests for the Flask routes.

Uses the Flask test client against an app built with TestingConfig
(seeded menu, 10 of each item, demo credentials).
"""

import pytest

from app import create_app


@pytest.fixture
def app():
    return create_app("config.TestingConfig")


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, username, password):
    return client.post("/login", json={"username": username, "password": password})


@pytest.fixture
def cashier(client):
    assert login(client, "user", "user123").status_code == 200
    return client


@pytest.fixture
def admin(app):
    admin_client = app.test_client()
    assert login(admin_client, "admin", "admin123").status_code == 200
    return admin_client


class TestAuth:

    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "ok"
        assert data["checks"]["items"] == 17

    def test_requires_login(self, client):
        response = client.get("/menu")
        assert response.status_code == 401
        assert response.get_json()["error"] == "unauthenticated"

    def test_bad_credentials(self, client):
        response = login(client, "admin", "wrong")
        assert response.status_code == 401
        assert response.get_json()["error"] == "invalid_credentials"

    def test_cashier_login(self, cashier):
        data = cashier.get("/whoami").get_json()
        assert data["role"] == "cashier"
        assert "refund" not in data["capabilities"]
        assert "sell" in data["capabilities"]

    def test_logout(self, cashier):
        cashier.post("/cart/items", json={"item_id": "1"})
        assert cashier.post("/logout").status_code == 200
        assert cashier.get("/cart").status_code == 401


class TestSelling:

    def test_menu(self, cashier):
        data = cashier.get("/menu?category=pastries").get_json()
        assert len(data["categories"]) == 4
        assert [item["name"] for item in data["items"]] == [
            "Croissant", "Muffin", "Danish", "Bagel",
        ]

    def test_cart_and_checkout(self, cashier, app):
        cashier.post("/cart/items", json={"item_id": "1", "quantity": 3})
        response = cashier.post("/cart/items", json={"item_id": "12", "quantity": 2})
        assert response.get_json()["total"] == 13.0

        response = cashier.post("/checkout", json={"payment_method": "card"})
        assert response.status_code == 201
        order = response.get_json()["order"]
        assert order["total"] == 13.0
        assert order["payment_method"] == "card"
        assert app.config["POS"].inventory.stock_of("1") == 7
        assert cashier.get("/cart").get_json()["lines"] == []

    def test_remove_from_cart(self, cashier):
        cashier.post("/cart/items", json={"item_id": "1", "quantity": 3})
        data = cashier.delete("/cart/items/1?quantity=2").get_json()
        assert data["lines"][0]["quantity"] == 1

    def test_insufficient_stock(self, cashier):
        response = cashier.post("/cart/items", json={"item_id": "1", "quantity": 11})
        assert response.status_code == 409
        body = response.get_json()
        assert body["error"] == "insufficient_stock"
        assert body["details"]["available"] == 10

    def test_unknown_item(self, cashier):
        response = cashier.post("/cart/items", json={"item_id": "nope"})
        assert response.status_code == 404

    def test_empty_checkout(self, cashier):
        response = cashier.post("/checkout", json={})
        assert response.status_code == 400
        assert response.get_json()["error"] == "validation_error"

    def test_tables(self, cashier, admin):
        cashier.put("/cart/table", json={"table_number": 2})
        cashier.post("/cart/items", json={"item_id": "1"})
        assert cashier.get("/tables").get_json()["occupied"] == [2]

        admin.post("/cart/items", json={"item_id": "2"})
        response = admin.put("/cart/table", json={"table_number": 2})
        assert response.status_code == 409


class TestOrders:

    def _sell(self, client):
        client.post("/cart/items", json={"item_id": "1", "quantity": 2})
        return client.post("/checkout", json={}).get_json()["order"]

    def test_list_and_get(self, cashier):
        order = self._sell(cashier)
        data = cashier.get("/orders").get_json()
        assert data["count"] == 1
        assert cashier.get(f"/orders/{order['id']}").get_json()["order"]["id"] == order["id"]

    def test_bad_date(self, cashier):
        response = cashier.get("/orders?start=yesterday")
        assert response.status_code == 400

    def test_cashier_cannot_refund(self, cashier):
        order = self._sell(cashier)
        response = cashier.post(f"/orders/{order['id']}/refund")
        assert response.status_code == 403
        assert response.get_json()["error"] == "permission_denied"

    def test_admin_refund_once(self, cashier, admin):
        order = self._sell(cashier)
        first = admin.post(f"/orders/{order['id']}/refund")
        assert first.status_code == 200
        assert first.get_json()["order"]["status"] == "refunded"

        second = admin.post(f"/orders/{order['id']}/refund")
        assert second.status_code == 409
        assert second.get_json()["error"] == "invalid_state"

        refunded = admin.get("/orders?status=refunded").get_json()
        assert refunded["count"] == 1

    def test_unknown_order(self, admin):
        assert admin.get("/orders/ORD-missing").status_code == 404


class TestAdmin:

    def test_cashier_forbidden(self, cashier):
        assert cashier.get("/admin/items").status_code == 403
        assert cashier.get("/reports/overview").status_code == 403

    def test_inventory_listing(self, admin):
        items = admin.get("/admin/items?category=coffee").get_json()["items"]
        cappuccino = next(item for item in items if item["name"] == "Cappuccino")
        assert cappuccino["margin"] == 0.75

    def test_add_update_remove_item(self, admin):
        response = admin.post("/admin/items", json={
            "name": "<b>Flat White</b>",
            "selling_price": 4.25,
            "cost_price": 1.10,
            "category_id": "coffee",
            "stock": 6,
        })
        assert response.status_code == 201
        item = response.get_json()["item"]
        assert item["name"] == "Flat White"

        response = admin.patch(f"/admin/items/{item['id']}", json={"selling_price": 4.5})
        assert response.get_json()["item"]["selling_price"] == 4.5

        assert admin.patch(f"/admin/items/{item['id']}", json={"stock": 1}).status_code == 400
        assert admin.delete(f"/admin/items/{item['id']}").status_code == 200

    @pytest.mark.parametrize("payload", [
        {"item_id": "x"},
        {"self": 1},
        {"name": "Ristretto", "price": 9},
    ])
    def test_update_rejects_unknown_fields(self, admin, app, payload):
        response = admin.patch("/admin/items/1", json=payload)
        assert response.status_code == 400
        assert response.get_json()["error"] == "validation_error"
        assert app.config["POS"].inventory.get_item("1").name == "Espresso"

    def test_invalid_item(self, admin):
        response = admin.post("/admin/items", json={
            "name": "Free Coffee", "selling_price": 0, "category_id": "coffee",
        })
        assert response.status_code == 400

    def test_stock_adjust_clamps(self, admin):
        data = admin.post("/admin/items/1/stock", json={"delta": -25}).get_json()
        assert data == {"item_id": "1", "stock": 0, "requested": -15, "clamped": True}

        data = admin.post("/admin/items/1/stock", json={"delta": 4}).get_json()
        assert data == {"item_id": "1", "stock": 4, "requested": 4, "clamped": False}

        data = admin.post("/admin/items/1/stock", json={"stock": 7}).get_json()
        assert data["stock"] == 7

    def test_categories(self, admin):
        response = admin.post("/admin/categories", json={"name": "Tea"})
        assert response.status_code == 201
        assert admin.delete("/admin/categories/tea").status_code == 200
        assert admin.delete("/admin/categories/coffee").status_code == 409


class TestReports:

    def test_reports(self, cashier, admin):
        cashier.post("/cart/items", json={"item_id": "1", "quantity": 3})
        cashier.post("/cart/items", json={"item_id": "12", "quantity": 2})
        cashier.post("/checkout", json={})

        daily = admin.get("/reports/daily").get_json()["rows"]
        assert len(daily) == 7
        assert daily[-1]["sales"] == 13.0

        assert len(admin.get("/reports/monthly?months=3").get_json()["rows"]) == 3

        categories = admin.get("/reports/categories").get_json()["rows"]
        assert categories == [
            {"category": "coffee", "name": "Coffee", "quantity": 3, "revenue": 7.5},
            {"category": "pastries", "name": "Pastries", "quantity": 2, "revenue": 5.5},
        ]

        overview = admin.get("/reports/overview").get_json()
        assert overview["total_orders"] == 1
        assert overview["average_order_value"] == 13.0

        assert admin.get("/reports/day").get_json()["total_sales"] == 13.0

    def test_bad_window(self, admin):
        assert admin.get("/reports/daily?days=abc").status_code == 400
        assert admin.get("/reports/daily?days=0").status_code == 400
