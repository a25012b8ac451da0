"""Wishlist API."""


def test_wishlist_flow(client, auth_headers, catalog):
    added = client.post("/wishlist/", json={"product_id": catalog["honey"].id}, headers=auth_headers)
    assert added.status_code == 201
    item = added.json()
    assert item["product"]["name"] == "Raw Forest Honey"

    listing = client.get("/wishlist/", headers=auth_headers)
    assert [w["product_id"] for w in listing.json()] == [catalog["honey"].id]

    removed = client.delete(f"/wishlist/{item['id']}", headers=auth_headers)
    assert removed.status_code == 204
    assert client.get("/wishlist/", headers=auth_headers).json() == []


def test_duplicate_add_conflicts(client, auth_headers, catalog):
    client.post("/wishlist/", json={"product_id": catalog["apple"].id}, headers=auth_headers)
    response = client.post("/wishlist/", json={"product_id": catalog["apple"].id}, headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["detail"] == "Product already in wishlist"


def test_unknown_or_hidden_product(client, auth_headers, catalog):
    assert client.post("/wishlist/", json={"product_id": 9999}, headers=auth_headers).status_code == 404
    response = client.post("/wishlist/", json={"product_id": catalog["retired"].id}, headers=auth_headers)
    assert response.status_code == 404


def test_remove_missing_item(client, auth_headers):
    assert client.delete("/wishlist/123", headers=auth_headers).status_code == 404


def test_requires_login(client, catalog):
    assert client.get("/wishlist/").status_code == 401
