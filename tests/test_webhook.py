from sqlmodel import select

from storefront.models.order import Order
from storefront.models.payment import Payment


def _pending_guest_order(client, gateway, product):
    gateway.charge_status = "processing"
    response = client.post("/api/payment/create-order", json={
        "flow": "guest",
        "customer": {"email": "ada@example.com", "firstName": "Ada", "lastName": "Lovelace"},
        "shippingAddress": {
            "kind": "inline", "address1": "12 Analytical Row",
            "city": "Boston", "state": "MA", "postalCode": "02110",
        },
        "cartItems": [{"productId": product.id, "price": "50.00", "quantity": 1}],
        "paymentIntentId": "pi_hook",
    })
    assert response.status_code == 200, response.text
    return response.json()["orderId"]


def _event(gateway, name, event_type, intent_id="pi_hook"):
    gateway.events[name] = {"type": event_type, "data": {"object": {"id": intent_id}}}


def test_succeeded_event_marks_order_paid(client, gateway, session, products):
    order_id = _pending_guest_order(client, gateway, products[0])
    _event(gateway, "ok", "payment_intent.succeeded")

    response = client.post("/api/payment/webhook", content=b"ok", headers={"stripe-signature": "valid"})

    assert response.json() == {"received": True}
    order = session.get(Order, order_id)
    assert order.payment_status == "paid"
    assert order.status == "processing"
    payment = session.exec(select(Payment).where(Payment.order_id == order_id)).one()
    assert payment.status == "completed"


def test_failed_event_cancels_and_restocks(client, gateway, session, products):
    shirt = products[0]
    order_id = _pending_guest_order(client, gateway, shirt)
    _event(gateway, "bad", "payment_intent.payment_failed")

    client.post("/api/payment/webhook", content=b"bad", headers={"stripe-signature": "valid"})

    order = session.get(Order, order_id)
    assert order.payment_status == "failed"
    assert order.status == "cancelled"
    session.refresh(shirt)
    assert shirt.stock == 10


def test_unknown_intent_and_other_events_are_acknowledged(client, gateway):
    _event(gateway, "stray", "payment_intent.succeeded", intent_id="pi_unknown")
    _event(gateway, "other", "charge.refunded")

    for name in ("stray", "other"):
        response = client.post("/api/payment/webhook", content=name.encode(), headers={"stripe-signature": "valid"})
        assert response.status_code == 200


def test_bad_signature(client, gateway):
    response = client.post("/api/payment/webhook", content=b"{}", headers={"stripe-signature": "forged"})
    assert response.status_code == 400
