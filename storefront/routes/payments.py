import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlmodel import Session

from storefront.database import get_session
from storefront.models.order import Order
from storefront.models.user import User
from storefront.schemas.checkout_schemas import (
    GuestOrderRequest,
    OrderCreatedResponse,
    OrderDetailOut,
    PaymentIntentRequest,
    PaymentIntentResponse,
)
from storefront.services.email_service import send_order_confirmation
from storefront.services.order_service import apply_payment_event, create_order, order_detail, quote
from storefront.services.payment_service import StripeGateway, get_payment_gateway
from storefront.services.pricing import to_minor_units
from storefront.utils.token import get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create-intent", response_model=PaymentIntentResponse)
def create_payment_intent(
    payload: PaymentIntentRequest,
    session: Session = Depends(get_session),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    _, totals = quote(session, payload.items, payload.flow)

    intent_id, client_secret = gateway.create_intent(
        to_minor_units(totals.total),
        metadata={"flow": payload.flow},
    )

    return PaymentIntentResponse(
        client_secret=client_secret,
        payment_intent_id=intent_id,
        amount=totals.total,
    )


@router.post("/create-order", response_model=OrderCreatedResponse)
def create_guest_order(
    payload: GuestOrderRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    order, items = create_order(
        session,
        flow="guest",
        customer=payload.customer,
        shipping=payload.shipping_address,
        lines=payload.cart_items,
        gateway=gateway,
        client_totals=payload.order_total,
        payment_intent_id=payload.payment_intent_id,
        payment_method_id=payload.payment_method_id,
    )

    background_tasks.add_task(send_order_confirmation, order, items)

    return OrderCreatedResponse(order_id=order.id)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    session: Session = Depends(get_session),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    payload = await request.body()
    event = gateway.parse_webhook(payload, request.headers.get("stripe-signature"))

    event_type = event["type"]
    intent = event["data"]["object"]

    if event_type == "payment_intent.succeeded":
        apply_payment_event(session, intent["id"], succeeded=True)
    elif event_type == "payment_intent.payment_failed":
        apply_payment_event(session, intent["id"], succeeded=False)
    else:
        logger.info(f"Unhandled event type {event_type}")

    return {"received": True}


@router.get("/order/{order_id}", response_model=OrderDetailOut)
def get_payment_order(
    order_id: int,
    session: Session = Depends(get_session),
    user: Optional[User] = Depends(get_optional_user),
):
    order = session.get(Order, order_id)

    if not order:
        raise HTTPException(404, "Order not found")

    if order.user_id and (not user or order.user_id != user.id):
        raise HTTPException(403, "Unauthorized access to this order")

    return order_detail(order)
