import logging
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlmodel import Session, select

from storefront.config import settings
from storefront.constants.order_status import can_transition
from storefront.models.base import utcnow
from storefront.models.order import Order, OrderStatus, PaymentStatus
from storefront.models.order_item import OrderItem
from storefront.models.payment import Payment
from storefront.models.user import User
from storefront.schemas.checkout_schemas import (
    CustomerInfo,
    InlineAddress,
    OrderDetailOut,
    OrderItemOut,
    OrderLine,
    OrderSummaryOut,
    OrderTotalIn,
)
from storefront.services.inventory_service import (
    PricedItem,
    reduce_inventory,
    resolve_lines,
    restock_order_items,
)
from storefront.services.payment_service import StripeGateway
from storefront.services.pricing import (
    OrderTotals,
    PricingRules,
    calculate_order_totals,
    line_total,
    to_minor_units,
)

logger = logging.getLogger(__name__)


def pricing_rules_for(flow: str) -> PricingRules:
    rate = settings.user_tax_rate if flow == "user" else settings.guest_tax_rate
    return PricingRules(
        tax_rate=rate,
        free_shipping_threshold=settings.free_shipping_threshold,
        flat_shipping_fee=settings.flat_shipping_fee,
    )


def quote(session: Session, lines: List[OrderLine], flow: str) -> Tuple[List[PricedItem], OrderTotals]:
    items = resolve_lines(session, lines)
    return items, calculate_order_totals(items, pricing_rules_for(flow))


def _check_client_totals(client_totals: Optional[OrderTotalIn], totals: OrderTotals):
    if client_totals is None:
        return
    if client_totals.total != totals.total:
        # the server figure is charged either way
        logger.warning(
            f"Client total {client_totals.total} differs from computed total {totals.total}"
        )


def create_order(
    session: Session,
    *,
    flow: str,
    customer: CustomerInfo,
    shipping: InlineAddress,
    lines: List[OrderLine],
    gateway: StripeGateway,
    user: Optional[User] = None,
    client_totals: Optional[OrderTotalIn] = None,
    payment_intent_id: Optional[str] = None,
    payment_method_id: Optional[str] = None,
) -> Tuple[Order, List[PricedItem]]:
    """
    Price, charge and persist an order in one transaction.

    Nothing is committed unless the payment provider accepted the charge.
    """
    if not payment_intent_id and not payment_method_id:
        raise HTTPException(400, "Payment information is missing")

    items, totals = quote(session, lines, flow)
    _check_client_totals(client_totals, totals)

    order = Order(
        user_id=user.id if user else None,
        flow=flow,
        customer_email=customer.email,
        customer_first_name=customer.first_name,
        customer_last_name=customer.last_name,
        customer_phone=customer.phone,
        shipping_full_name=shipping.full_name or f"{customer.first_name} {customer.last_name}",
        shipping_address1=shipping.address1,
        shipping_address2=shipping.address2,
        shipping_city=shipping.city,
        shipping_state=shipping.state,
        shipping_postal_code=shipping.postal_code,
        shipping_country=shipping.country or "US",
        subtotal=totals.subtotal,
        tax=totals.tax,
        shipping=totals.shipping,
        total=totals.total,
    )

    try:
        session.add(order)
        session.flush()

        for item in items:
            session.add(OrderItem(
                order_id=order.id,
                product_id=item.product_id,
                product_name=item.product_name,
                price=item.price,
                quantity=item.quantity,
                size=item.size,
            ))

        reduce_inventory(session, items)

        charge = gateway.charge(
            to_minor_units(totals.total),
            payment_intent_id=payment_intent_id,
            payment_method_id=payment_method_id,
            metadata={"order_id": order.id, "email": customer.email},
        )
    except HTTPException:
        session.rollback()
        raise

    session.add(Payment(
        order_id=order.id,
        user_id=order.user_id,
        payment_intent_id=charge.payment_intent_id,
        payment_method_id=charge.payment_method_id,
        amount=totals.total,
        currency=gateway.currency,
        status="completed" if charge.succeeded else "pending",
    ))

    if charge.succeeded:
        order.status = OrderStatus.paid.value
        order.payment_status = PaymentStatus.paid.value

    session.add(order)
    session.commit()
    session.refresh(order)

    logger.info(
        f"Order {order.id} created ({flow}) total={order.total} payment={charge.status}"
    )
    return order, items


def apply_payment_event(session: Session, payment_intent_id: str, succeeded: bool) -> Optional[Order]:
    """Reflect a provider webhook on the order that owns the intent."""
    payment = session.exec(
        select(Payment).where(Payment.payment_intent_id == payment_intent_id)
    ).first()

    if not payment:
        logger.info(f"No order for payment intent {payment_intent_id}")
        return None

    order = session.get(Order, payment.order_id)

    if succeeded:
        payment.status = "completed"
        order.payment_status = PaymentStatus.paid.value
        if can_transition(order.status, OrderStatus.processing.value):
            order.status = OrderStatus.processing.value
    else:
        payment.status = "failed"
        order.payment_status = PaymentStatus.failed.value
        if can_transition(order.status, OrderStatus.cancelled.value):
            order.status = OrderStatus.cancelled.value
            restock_order_items(session, order.id)

    order.updated_at = utcnow()
    session.add(payment)
    session.add(order)
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.id} updated from webhook: {order.status}/{order.payment_status}")
    return order


def update_order_status(session: Session, order: Order, new_status: str) -> Order:
    if new_status not in OrderStatus.__members__:
        raise HTTPException(400, f"Unknown status '{new_status}'")

    if not can_transition(order.status, new_status):
        raise HTTPException(400, f"Cannot change status from {order.status} to {new_status}")

    if new_status == OrderStatus.cancelled.value:
        restock_order_items(session, order.id)

    order.status = new_status
    order.updated_at = utcnow()
    session.add(order)
    session.commit()
    session.refresh(order)

    return order


def order_summary(order: Order) -> OrderSummaryOut:
    return OrderSummaryOut(
        id=order.id,
        created_at=order.created_at,
        status=order.status,
        payment_status=order.payment_status,
        subtotal=order.subtotal,
        tax=order.tax,
        shipping=order.shipping,
        total=order.total,
    )


def order_detail(order: Order) -> OrderDetailOut:
    return OrderDetailOut(
        **order_summary(order).model_dump(),
        flow=order.flow,
        customer_email=order.customer_email,
        customer_first_name=order.customer_first_name,
        customer_last_name=order.customer_last_name,
        shipping_address=InlineAddress(
            kind="inline",
            full_name=order.shipping_full_name,
            address1=order.shipping_address1,
            address2=order.shipping_address2,
            city=order.shipping_city,
            state=order.shipping_state,
            postal_code=order.shipping_postal_code,
            country=order.shipping_country,
        ),
        items=[
            OrderItemOut(
                product_id=i.product_id,
                product_name=i.product_name,
                price=i.price,
                quantity=i.quantity,
                size=i.size,
                line_total=line_total(i.price, i.quantity),
            )
            for i in order.items
        ],
    )
