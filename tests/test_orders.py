from decimal import Decimal

from sqlmodel import select

from storefront.models.address import Address
from storefront.models.cart import CartItem
from storefront.models.order import Order
from storefront.models.payment import Payment

def _shipping():
    return {
        "kind": "inline",
        "fullName": "Ada Lovelace",
        "address1": "12 Analytical Row",
        "city": "Boston",
        "state": "MA",
        "postalCode": "02110",
    }


def _customer():
    return {"email": "ada@example.com", "firstName": "Ada", "lastName": "Lovelace"}


def _guest_payload(product, quantity=2, **overrides):
    payload = {
        "flow": "guest",
        "customer": _customer(),
        "shippingAddress": _shipping(),
        "cartItems": [{"productId": product.id, "price": "50.00", "quantity": quantity}],
        "paymentIntentId": "pi_123",
        "paymentMethodId": "pm_card_visa",
    }
    payload.update(overrides)
    return payload


def _user_payload(product, shipping=None, quantity=1):
    return {
        "flow": "user",
        "shipping": shipping or _shipping(),
        "items": [{"productId": product.id, "price": str(product.price), "quantity": quantity}],
        "paymentMethodId": "pm_card_visa",
    }


# payment intents

def test_create_intent_uses_catalogue_prices(client, gateway, products):
    shirt = products[0]
    response = client.post("/api/payment/create-intent", json={
        "items": [{"productId": shirt.id, "price": "1.00", "quantity": 2}],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["paymentIntentId"] == "pi_test_1"
    assert body["clientSecret"] == "pi_test_1_secret"
    assert Decimal(body["amount"]) == Decimal("111.50")
    assert gateway.intents[0]["amount"] == 11150


def test_create_intent_rejects_inactive_product(client, products):
    retired = products[2]
    response = client.post("/api/payment/create-intent", json={
        "items": [{"productId": retired.id, "price": "15.00", "quantity": 1}],
    })
    assert response.status_code == 400


# guest orders

def test_guest_order_is_charged_and_persisted(client, gateway, session, products):
    shirt = products[0]
    response = client.post("/api/payment/create-order", json=_guest_payload(shirt))

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True

    order = session.get(Order, body["orderId"])
    assert order.flow == "guest"
    assert order.user_id is None
    assert order.total == Decimal("111.50")
    assert order.status == "paid"
    assert order.payment_status == "paid"
    assert order.shipping_city == "Boston"

    assert gateway.charges == [{
        "amount": 11150,
        "payment_intent_id": "pi_123",
        "payment_method_id": "pm_card_visa",
    }]

    payment = session.exec(select(Payment).where(Payment.order_id == order.id)).one()
    assert payment.status == "completed"
    assert payment.payment_intent_id == "pi_123"

    session.refresh(shirt)
    assert shirt.stock == 8


def test_guest_order_client_total_is_not_trusted(client, gateway, session, products):
    payload = _guest_payload(products[0], orderTotal={
        "subtotal": "1.00", "tax": "0.00", "shipping": "0.00", "total": "1.00",
    })
    response = client.post("/api/payment/create-order", json=payload)

    assert response.status_code == 200
    assert gateway.charges[0]["amount"] == 11150


def test_guest_order_requires_intent(client, products):
    payload = _guest_payload(products[0])
    del payload["paymentIntentId"]

    assert client.post("/api/payment/create-order", json=payload).status_code == 422


def test_guest_order_with_bad_email(client, products):
    payload = _guest_payload(products[0], customer={**_customer(), "email": "not-an-email"})
    assert client.post("/api/payment/create-order", json=payload).status_code == 422


def test_declined_card_leaves_nothing_behind(client, gateway, session, products):
    gateway.decline = True
    shirt = products[0]

    response = client.post("/api/payment/create-order", json=_guest_payload(shirt))

    assert response.status_code == 402
    assert response.json()["detail"] == "Your card was declined."
    assert session.exec(select(Order)).all() == []
    session.refresh(shirt)
    assert shirt.stock == 10


def test_insufficient_stock(client, gateway, products):
    tote = products[1]
    payload = _guest_payload(tote, quantity=6)

    response = client.post("/api/payment/create-order", json=payload)

    assert response.status_code == 400
    assert "Not enough stock" in response.json()["detail"]
    assert gateway.charges == []


def test_unconfirmed_charge_stays_pending(client, gateway, session, products):
    gateway.charge_status = "processing"

    body = client.post("/api/payment/create-order", json=_guest_payload(products[0])).json()

    order = session.get(Order, body["orderId"])
    assert order.status == "pending"
    assert order.payment_status == "awaiting"


# user orders

def test_user_order_with_saved_address(client, gateway, session, user, user_headers, products):
    address = Address(
        user_id=user.id, full_name="Ada Lovelace", address1="1 Saved Lane",
        city="Austin", state="TX", postal_code="73301", is_default=True,
    )
    session.add(address)
    session.add(CartItem(user_id=user.id, product_id=products[1].id, quantity=1))
    session.commit()
    session.refresh(address)

    response = client.post(
        "/api/orders/create-order",
        json=_user_payload(products[1], shipping={"kind": "saved", "addressId": address.id}),
        headers=user_headers,
    )

    assert response.status_code == 201, response.text
    order = session.get(Order, response.json()["orderId"])
    assert order.user_id == user.id
    assert order.customer_email == "ada@example.com"
    assert order.shipping_address1 == "1 Saved Lane"
    # 10.00 + 1.15 tax + 10.00 shipping
    assert order.total == Decimal("21.15")
    assert gateway.charges[0]["payment_intent_id"] is None
    assert gateway.charges[0]["payment_method_id"] == "pm_card_visa"

    # server cart emptied
    assert session.exec(select(CartItem).where(CartItem.user_id == user.id)).all() == []


def test_saved_address_of_another_user(client, session, other_user, user_headers, products):
    foreign = Address(
        user_id=other_user.id, full_name="Grace Hopper", address1="9 Navy Yard",
        city="Arlington", state="VA", postal_code="22202",
    )
    session.add(foreign)
    session.commit()
    session.refresh(foreign)

    response = client.post(
        "/api/orders/create-order",
        json=_user_payload(products[0], shipping={"kind": "saved", "addressId": foreign.id}),
        headers=user_headers,
    )
    assert response.status_code == 404


def test_saved_address_requires_sign_in(client, products):
    payload = _user_payload(products[0], shipping={"kind": "saved", "addressId": 1})
    payload["customer"] = _customer()

    response = client.post("/api/orders/create-order", json=payload)
    assert response.status_code == 400


def test_anonymous_user_flow_with_inline_address(client, session, products):
    payload = _user_payload(products[0])
    payload["customer"] = _customer()

    response = client.post("/api/orders/create-order", json=payload)

    assert response.status_code == 201
    order = session.get(Order, response.json()["orderId"])
    assert order.user_id is None
    assert order.flow == "user"


def test_shipping_kind_is_required(client, user_headers, products):
    shipping = _shipping()
    del shipping["kind"]

    response = client.post(
        "/api/orders/create-order", json=_user_payload(products[0], shipping=shipping), headers=user_headers,
    )
    assert response.status_code == 422


def test_empty_items_rejected(client, user_headers, products):
    payload = _user_payload(products[0])
    payload["items"] = []

    assert client.post("/api/orders/create-order", json=payload, headers=user_headers).status_code == 422


# lookups

def _place_user_order(client, headers, product):
    response = client.post("/api/orders/create-order", json=_user_payload(product), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["orderId"]


def test_order_lookups(client, user_headers, headers_for, other_user, products):
    order_id = _place_user_order(client, user_headers, products[0])

    detail = client.get(f"/api/orders/{order_id}", headers=user_headers)
    assert detail.status_code == 200
    body = detail.json()
    assert body["items"][0]["productName"] == "Linen Shirt"
    assert body["shippingAddress"]["city"] == "Boston"

    listing = client.get("/api/orders", headers=user_headers).json()
    assert listing["total_items"] == 1
    assert listing["results"][0]["id"] == order_id

    public = client.get(f"/api/orders/public/{order_id}")
    assert public.status_code == 200
    assert "items" not in public.json()

    assert client.get(f"/api/orders/{order_id}", headers=headers_for(other_user)).status_code == 403
    assert client.get(f"/api/payment/order/{order_id}").status_code == 403
    assert client.get(f"/api/payment/order/{order_id}", headers=user_headers).status_code == 200


def test_guest_order_readable_without_auth(client, products):
    order_id = client.post("/api/payment/create-order", json=_guest_payload(products[0])).json()["orderId"]

    response = client.get(f"/api/payment/order/{order_id}")
    assert response.status_code == 200
    assert response.json()["customerEmail"] == "ada@example.com"


def test_unknown_order(client):
    assert client.get("/api/orders/public/999").status_code == 404


# admin status changes

def test_admin_status_transitions(client, session, user_headers, admin_headers, products):
    shirt = products[0]
    order_id = _place_user_order(client, user_headers, shirt)

    response = client.patch(f"/api/orders/{order_id}/status", json={"status": "processing"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "processing"

    response = client.patch(f"/api/orders/{order_id}/status", json={"status": "delivered"}, headers=admin_headers)
    assert response.status_code == 400

    response = client.patch(f"/api/orders/{order_id}/status", json={"status": "cancelled"}, headers=admin_headers)
    assert response.status_code == 200

    session.refresh(shirt)
    assert shirt.stock == 10


def test_status_change_requires_admin(client, user_headers, products):
    order_id = _place_user_order(client, user_headers, products[0])

    response = client.patch(f"/api/orders/{order_id}/status", json={"status": "shipped"}, headers=user_headers)
    assert response.status_code == 403


def test_unknown_status(client, user_headers, admin_headers, products):
    order_id = _place_user_order(client, user_headers, products[0])

    response = client.patch(f"/api/orders/{order_id}/status", json={"status": "lost"}, headers=admin_headers)
    assert response.status_code == 400
