"""Catalog browsing and admin product management."""

from decimal import Decimal


class TestCatalogListing:
    def test_only_active_products_sorted_by_name(self, client, catalog):
        response = client.get("/products/")
        assert response.status_code == 200
        names = [p["name"] for p in response.json()]
        assert names == ["Baby Spinach", "Brown Basmati Rice", "Himalayan Apples", "Raw Forest Honey"]

    def test_search_matches_name_and_description(self, client, catalog):
        by_name = client.get("/products/", params={"search": "honey"}).json()
        assert [p["name"] for p in by_name] == ["Raw Forest Honey"]

        by_description = client.get("/products/", params={"search": "whole grain"}).json()
        assert [p["name"] for p in by_description] == ["Brown Basmati Rice"]

    def test_category_and_price_filters(self, client, catalog):
        response = client.get(
            "/products/",
            params={"category_id": catalog["apple"].category_id, "min_price": 100},
        )
        assert [p["name"] for p in response.json()] == ["Himalayan Apples"]

        cheap = client.get("/products/", params={"max_price": 200}).json()
        assert {p["name"] for p in cheap} == {"Baby Spinach", "Himalayan Apples"}

    def test_price_sorts(self, client, catalog):
        low = [Decimal(p["price"]) for p in client.get("/products/", params={"sort": "price-low"}).json()]
        high = [Decimal(p["price"]) for p in client.get("/products/", params={"sort": "price-high"}).json()]

        assert low == sorted(low)
        assert high == sorted(high, reverse=True)

    def test_rating_sort(self, client, catalog):
        response = client.get("/products/", params={"sort": "rating"})
        assert response.json()[0]["name"] == "Raw Forest Honey"

    def test_unknown_sort(self, client, catalog):
        response = client.get("/products/", params={"sort": "popularity"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Unknown sort order"

    def test_featured(self, client, catalog):
        response = client.get("/products/featured")
        assert {p["name"] for p in response.json()} == {"Raw Forest Honey", "Himalayan Apples"}

    def test_categories(self, client, catalog):
        response = client.get("/products/categories")
        assert [c["name"] for c in response.json()] == ["Fruits & Vegetables", "Grains & Pulses"]


class TestProductDetail:
    def test_detail_with_category_and_related(self, client, catalog):
        response = client.get(f"/products/{catalog['apple'].id}")
        assert response.status_code == 200
        data = response.json()
        assert data["product"]["name"] == "Himalayan Apples"
        assert data["category"]["name"] == "Fruits & Vegetables"
        # the retired mango shares the category but is hidden
        assert [p["name"] for p in data["related"]] == ["Baby Spinach"]

    def test_inactive_product_is_not_found(self, client, catalog):
        assert client.get(f"/products/{catalog['retired'].id}").status_code == 404

    def test_unknown_product(self, client, catalog):
        assert client.get("/products/9999").status_code == 404


class TestProductAdmin:
    def test_admin_creates_product(self, client, admin_headers, catalog):
        response = client.post(
            "/products/",
            data={
                "name": "  Cold Pressed Coconut Oil ",
                "description": "Virgin coconut oil",
                "price": "450.00",
                "stock_quantity": 20,
                "category_id": catalog["rice"].category_id,
                "weight": "500ml",
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Cold Pressed Coconut Oil"
        assert Decimal(data["price"]) == Decimal("450")
        assert data["is_active"] is True

    def test_create_with_unknown_category(self, client, admin_headers, catalog):
        response = client.post(
            "/products/",
            data={"name": "Jaggery", "price": "120", "stock_quantity": 5, "category_id": 77},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Category with id 77 not found"

    def test_admin_updates_price_and_stock(self, client, admin_headers, catalog):
        response = client.patch(
            f"/products/{catalog['rice'].id}",
            data={"price": "320.00", "stock_quantity": 12},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["price"]) == Decimal("320")
        assert data["stock_quantity"] == 12
        assert data["name"] == "Brown Basmati Rice"

    def test_admin_can_reactivate_hidden_product(self, client, admin_headers, catalog):
        response = client.patch(
            f"/products/{catalog['retired'].id}",
            data={"is_active": "true", "stock_quantity": 8},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert client.get(f"/products/{catalog['retired'].id}").status_code == 200

    def test_update_unknown_product(self, client, admin_headers, catalog):
        response = client.patch("/products/9999", data={"price": "10"}, headers=admin_headers)
        assert response.status_code == 404

    def test_shopper_cannot_manage_products(self, client, auth_headers, catalog):
        response = client.post(
            "/products/",
            data={"name": "Jaggery", "price": "120", "stock_quantity": 5},
            headers=auth_headers,
        )
        assert response.status_code == 403

    def test_anonymous_cannot_manage_products(self, client, catalog):
        response = client.patch(f"/products/{catalog['rice'].id}", data={"price": "1"})
        assert response.status_code == 401
