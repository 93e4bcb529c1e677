from decimal import Decimal


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == "ok"
    assert "timestamp" in body


# auth

def test_register_and_login(client):
    response = client.post("/api/auth/register", json={
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@example.com",
        "password": "secret123",
        "confirm_password": "secret123",
    })
    assert response.status_code == 201
    assert response.json()["role"] == "user"

    response = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "secret123"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == "ada@example.com"


def test_register_duplicate_email(client, user):
    response = client.post("/api/auth/register", json={
        "first_name": "Ada",
        "last_name": "Again",
        "email": user.email,
        "password": "x",
        "confirm_password": "x",
    })
    assert response.status_code == 400


def test_register_password_mismatch(client):
    response = client.post("/api/auth/register", json={
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@example.com",
        "password": "one",
        "confirm_password": "two",
    })
    assert response.status_code == 422


def test_login_wrong_password(client, user):
    response = client.post("/api/auth/login", json={"email": user.email, "password": "nope"})
    assert response.status_code == 401


def test_bad_token_rejected(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


# products

def test_product_listing_hides_inactive(client, products):
    body = client.get("/api/products").json()

    names = {p["name"] for p in body["results"]}
    assert names == {"Linen Shirt", "Canvas Tote"}
    assert body["total_items"] == 2


def test_product_search(client, products):
    body = client.get("/api/products", params={"search": "tote"}).json()
    assert [p["name"] for p in body["results"]] == ["Canvas Tote"]


def test_inactive_product_not_found(client, products):
    assert client.get(f"/api/products/{products[2].id}").status_code == 404


def test_admin_manages_products(client, admin_headers, user_headers):
    payload = {"name": "Wool Scarf", "price": "24.00", "stock": 3}

    assert client.post("/api/products", json=payload, headers=user_headers).status_code == 403

    created = client.post("/api/products", json=payload, headers=admin_headers)
    assert created.status_code == 201
    product_id = created.json()["id"]

    updated = client.put(f"/api/products/{product_id}", json={"stock": 7}, headers=admin_headers)
    assert updated.json()["stock"] == 7


# server cart

def test_cart_merges_and_summarises(client, user_headers, products):
    shirt = products[0]

    client.post("/api/cart/items", json={"product_id": shirt.id, "quantity": 1, "size": "M"}, headers=user_headers)
    client.post("/api/cart/items", json={"product_id": shirt.id, "quantity": 1, "size": "M"}, headers=user_headers)
    client.post("/api/cart/items", json={"product_id": shirt.id, "quantity": 1, "size": "L"}, headers=user_headers)

    body = client.get("/api/cart", headers=user_headers).json()

    assert [(i["size"], i["quantity"]) for i in body["items"]] == [("M", 2), ("L", 1)]
    assert Decimal(str(body["summary"]["subtotal"])) == Decimal("150.00")
    assert Decimal(str(body["summary"]["shipping"])) == Decimal("0")
    assert Decimal(str(body["summary"]["total"])) == Decimal("167.25")


def test_cart_update_and_remove(client, user_headers, products):
    tote = products[1]
    item = client.post("/api/cart/items", json={"product_id": tote.id}, headers=user_headers).json()["item"]

    response = client.put(f"/api/cart/items/{item['id']}", json={"quantity": 3}, headers=user_headers)
    assert response.json()["item"]["quantity"] == 3

    response = client.put(f"/api/cart/items/{item['id']}", json={"quantity": 0}, headers=user_headers)
    assert response.json()["message"] == "Item removed"

    assert client.get("/api/cart", headers=user_headers).json()["items"] == []


def test_cart_rejects_unknown_product(client, user_headers):
    response = client.post("/api/cart/items", json={"product_id": 404}, headers=user_headers)
    assert response.status_code == 404


def test_cart_items_are_private(client, user_headers, headers_for, other_user, products):
    item = client.post("/api/cart/items", json={"product_id": products[0].id}, headers=user_headers).json()["item"]

    response = client.delete(f"/api/cart/items/{item['id']}", headers=headers_for(other_user))
    assert response.status_code == 404


def test_clear_cart(client, user_headers, products):
    client.post("/api/cart/items", json={"product_id": products[0].id}, headers=user_headers)

    assert client.delete("/api/cart", headers=user_headers).json() == {"message": "Cart cleared"}
    body = client.get("/api/cart", headers=user_headers).json()
    assert body["items"] == []
    assert Decimal(str(body["summary"]["total"])) == Decimal("0")
