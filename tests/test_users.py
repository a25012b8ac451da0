"""Accounts, profile, dashboard and order history."""

from decimal import Decimal

import pytest

from storefront.models import Order, OrderItem


def _order(db, user, items, status="confirmed", payment_status="completed"):
    """Insert an order directly; items are (product, quantity) pairs."""
    total = sum((product.price * qty for product, qty in items), Decimal("0"))
    order = Order(
        user_id=user.id,
        total_amount=total,
        status=status,
        payment_status=payment_status,
        payment_method="cod",
        shipping_address="12 MG Road",
        shipping_city="Mumbai",
        shipping_state="Maharashtra",
        shipping_pincode="400001",
        phone="9876543210",
    )
    db.add(order)
    db.flush()
    for product, qty in items:
        db.add(OrderItem(order_id=order.id, product_id=product.id, quantity=qty, price=product.price))
    db.commit()
    db.refresh(order)
    return order


class TestAccounts:
    def test_register_and_login(self, client):
        response = client.post(
            "/users/register",
            data={"email": "Meera@Example.com", "password": "green-tea-42", "full_name": "Meera Iyer"},
        )
        assert response.status_code == 201
        assert response.json()["email"] == "meera@example.com"

        login = client.post("/users/login", data={"email": "meera@example.com", "password": "green-tea-42"})
        assert login.status_code == 200
        assert login.json()["token_type"] == "bearer"

    def test_duplicate_email(self, client, shopper):
        response = client.post(
            "/users/register",
            data={"email": "ASHA@example.com", "password": "another-pass"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "This email is already registered"

    def test_short_password_rejected(self, client):
        response = client.post("/users/register", data={"email": "x@example.com", "password": "short"})
        assert response.status_code == 422

    def test_wrong_password(self, client, shopper):
        response = client.post("/users/login", data={"email": shopper.email, "password": "not-it"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Incorrect email or password"

    def test_invalid_token(self, client):
        response = client.get("/users/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestProfile:
    def test_me(self, client, auth_headers):
        response = client.get("/users/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["full_name"] == "Asha Rao"

    def test_partial_update(self, client, auth_headers):
        response = client.patch(
            "/users/me",
            data={"city": "Pune", "pincode": "411001"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["city"] == "Pune"
        assert data["pincode"] == "411001"
        assert data["full_name"] == "Asha Rao"

    def test_dashboard_counts_every_order(self, client, auth_headers, db_session, shopper, catalog):
        for _ in range(6):
            _order(db_session, shopper, [(catalog["apple"], 1)])
        _order(db_session, shopper, [(catalog["honey"], 2)], status="delivered")

        response = client.get("/users/me/dashboard", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert len(data["recent_orders"]) == 5
        assert data["total_orders"] == 7
        assert Decimal(data["total_spent"]) == Decimal("2080")
        assert data["completed_orders"] == 1
        assert data["profile"]["email"] == shopper.email


class TestOrderHistory:
    @pytest.fixture
    def orders(self, db_session, shopper, catalog):
        return [
            _order(db_session, shopper, [(catalog["honey"], 1)]),
            _order(db_session, shopper, [(catalog["rice"], 2), (catalog["apple"], 1)], status="shipped"),
        ]

    def test_newest_first(self, client, auth_headers, orders):
        data = client.get("/orders/me", headers=auth_headers).json()
        assert data["total"] == 2
        assert [o["id"] for o in data["orders"]] == [orders[1].id, orders[0].id]

    def test_search_by_product_name(self, client, auth_headers, orders):
        data = client.get("/orders/me", params={"search": "basmati"}, headers=auth_headers).json()
        assert [o["id"] for o in data["orders"]] == [orders[1].id]
        assert {i["product_name"] for i in data["orders"][0]["items"]} == {"Brown Basmati Rice", "Himalayan Apples"}

    def test_status_filter(self, client, auth_headers, orders):
        data = client.get("/orders/me", params={"status": "shipped"}, headers=auth_headers).json()
        assert [o["status"] for o in data["orders"]] == ["shipped"]
        assert data["total"] == 1

    def test_total_follows_search(self, client, auth_headers, orders):
        data = client.get("/orders/me", params={"search": "honey"}, headers=auth_headers).json()
        assert [o["id"] for o in data["orders"]] == [orders[0].id]
        assert data["total"] == 1

    def test_total_counts_beyond_page(self, client, auth_headers, orders):
        data = client.get("/orders/me", params={"limit": 1}, headers=auth_headers).json()
        assert len(data["orders"]) == 1
        assert data["total"] == 2

    def test_order_detail_is_owner_only(self, client, auth_headers, db_session, catalog, orders):
        from storefront.models import Profile

        other = Profile(email="ravi@example.com", hashed_password="x")
        db_session.add(other)
        db_session.commit()
        foreign = _order(db_session, other, [(catalog["apple"], 1)])

        assert client.get(f"/orders/{orders[0].id}", headers=auth_headers).status_code == 200
        assert client.get(f"/orders/{foreign.id}", headers=auth_headers).status_code == 404

    def test_admin_updates_status(self, client, admin_headers, auth_headers, orders):
        response = client.patch(
            f"/orders/{orders[0].id}/status",
            json={"status": "delivered"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "delivered"

    def test_status_update_needs_a_field(self, client, admin_headers, orders):
        response = client.patch(f"/orders/{orders[0].id}/status", json={}, headers=admin_headers)
        assert response.status_code == 400

    def test_shopper_cannot_update_status(self, client, auth_headers, orders):
        response = client.patch(
            f"/orders/{orders[0].id}/status",
            json={"status": "delivered"},
            headers=auth_headers,
        )
        assert response.status_code == 403
