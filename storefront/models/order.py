from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

from storefront.models.base import utcnow
from storefront.models.order_item import OrderItem


class OrderStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    failed = "failed"
    cancelled = "cancelled"


class PaymentStatus(str, Enum):
    awaiting = "awaiting"
    paid = "paid"
    failed = "failed"


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    flow: str = Field(default="guest")  # guest | user

    customer_email: str
    customer_first_name: str = ""
    customer_last_name: str = ""
    customer_phone: Optional[str] = None

    # shipping snapshot, saved addresses may change after the order
    shipping_full_name: str = ""
    shipping_address1: str
    shipping_address2: Optional[str] = None
    shipping_city: str
    shipping_state: str
    shipping_postal_code: str
    shipping_country: str = "US"

    subtotal: Decimal = Field(max_digits=10, decimal_places=2)
    tax: Decimal = Field(max_digits=10, decimal_places=2)
    shipping: Decimal = Field(max_digits=10, decimal_places=2)
    total: Decimal = Field(max_digits=10, decimal_places=2)

    status: str = Field(default=OrderStatus.pending.value)
    payment_status: str = Field(default=PaymentStatus.awaiting.value)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    items: List["OrderItem"] = Relationship(back_populates="order")
