import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.order import Order
from storefront.models.user import User
from storefront.routes.cart import clear_cart
from storefront.schemas.checkout_schemas import (
    CustomerInfo,
    InlineAddress,
    OrderCreatedResponse,
    OrderDetailOut,
    OrderStatusUpdate,
    OrderSummaryOut,
    UserOrderRequest,
)
from storefront.services.address_service import get_owned_address
from storefront.services.email_service import send_order_confirmation
from storefront.services.order_service import (
    create_order,
    order_detail,
    order_summary,
    update_order_status,
)
from storefront.services.payment_service import StripeGateway, get_payment_gateway
from storefront.utils.pagination import paginate
from storefront.utils.token import get_current_user, get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _resolve_shipping(session: Session, shipping, user: Optional[User]) -> InlineAddress:
    if isinstance(shipping, InlineAddress):
        return shipping

    if not user:
        raise HTTPException(400, "Saved addresses require sign-in")

    address = get_owned_address(session, user.id, shipping.address_id)
    return InlineAddress(
        kind="inline",
        full_name=address.full_name,
        address1=address.address1,
        address2=address.address2,
        city=address.city,
        state=address.state,
        postal_code=address.postal_code,
        country=address.country,
        phone_number=address.phone_number,
    )


def _resolve_customer(customer: Optional[CustomerInfo], user: Optional[User]) -> CustomerInfo:
    if user:
        return CustomerInfo(
            email=user.email,
            first_name=user.first_name or (customer.first_name if customer else "Customer"),
            last_name=user.last_name or (customer.last_name if customer else "Customer"),
            phone=customer.phone if customer else None,
        )

    if not customer:
        raise HTTPException(400, "Customer information is required")

    return customer


@router.post("/create-order", response_model=OrderCreatedResponse, status_code=201)
def create_user_order(
    payload: UserOrderRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    gateway: StripeGateway = Depends(get_payment_gateway),
    user: Optional[User] = Depends(get_optional_user),
):
    shipping = _resolve_shipping(session, payload.shipping, user)
    customer = _resolve_customer(payload.customer, user)

    order, items = create_order(
        session,
        flow="user",
        customer=customer,
        shipping=shipping,
        lines=payload.items,
        gateway=gateway,
        user=user,
        client_totals=payload.order_total,
        payment_method_id=payload.payment_method_id,
    )

    if user:
        clear_cart(session, user.id)
        session.refresh(order)

    background_tasks.add_task(send_order_confirmation, order, items)

    return OrderCreatedResponse(order_id=order.id)


@router.get("/public/{order_id}", response_model=OrderSummaryOut)
def get_public_order(order_id: int, session: Session = Depends(get_session)):
    order = session.get(Order, order_id)

    if not order:
        raise HTTPException(404, "Order not found")

    return order_summary(order)


@router.get("")
def list_my_orders(
    page: int = 1,
    limit: int = 10,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = (
        select(Order)
        .where(Order.user_id == current_user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )

    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=lambda o: order_summary(o).model_dump(mode="json", by_alias=True),
    )


@router.get("/{order_id}", response_model=OrderDetailOut)
def get_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = session.get(Order, order_id)

    if not order:
        raise HTTPException(404, "Order not found")

    if order.user_id != current_user.id and current_user.role != "admin":
        raise HTTPException(403, "Not authorized")

    return order_detail(order)


@router.patch("/{order_id}/status", response_model=OrderSummaryOut)
def change_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    order = session.get(Order, order_id)

    if not order:
        raise HTTPException(404, "Order not found")

    order = update_order_status(session, order, payload.status)
    logger.info(f"Admin {admin.id} moved order {order.id} to {order.status}")

    return order_summary(order)
