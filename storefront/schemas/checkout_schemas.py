# storefront/schemas/checkout_schemas.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel
from typing import Annotated, List, Literal, Optional, Union
from decimal import Decimal
from datetime import datetime


class CamelModel(BaseModel):
    """Wire models use camelCase keys; python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderLine(CamelModel):
    product_id: int
    name: Optional[str] = None
    price: Decimal = Field(ge=0, decimal_places=2)
    quantity: int = Field(ge=1)
    size: Optional[str] = None


class CustomerInfo(CamelModel):
    email: EmailStr
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone: Optional[str] = None


class InlineAddress(CamelModel):
    kind: Literal["inline"]
    full_name: Optional[str] = None
    address1: str = Field(min_length=1)
    address2: Optional[str] = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = "US"
    phone_number: Optional[str] = None


class SavedAddressRef(CamelModel):
    kind: Literal["saved"]
    address_id: int


ShippingChoice = Annotated[Union[SavedAddressRef, InlineAddress], Field(discriminator="kind")]


class OrderTotalIn(CamelModel):
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


class GuestOrderRequest(CamelModel):
    flow: Literal["guest"]
    customer: CustomerInfo
    shipping_address: InlineAddress
    cart_items: List[OrderLine] = Field(min_length=1)
    order_total: Optional[OrderTotalIn] = None
    payment_intent_id: str = Field(min_length=1)
    payment_method_id: Optional[str] = None


class UserOrderRequest(CamelModel):
    flow: Literal["user"]
    customer: Optional[CustomerInfo] = None
    shipping: ShippingChoice
    items: List[OrderLine] = Field(min_length=1)
    order_total: Optional[OrderTotalIn] = None
    payment_method_id: str = Field(min_length=1)


class PaymentIntentRequest(CamelModel):
    items: List[OrderLine] = Field(min_length=1)
    flow: Literal["guest", "user"] = "guest"


class PaymentIntentResponse(CamelModel):
    client_secret: str
    payment_intent_id: str
    amount: Decimal


class OrderCreatedResponse(CamelModel):
    success: bool = True
    order_id: int


class OrderTotalsOut(CamelModel):
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


class OrderItemOut(CamelModel):
    product_id: int
    product_name: str
    price: Decimal
    quantity: int
    size: Optional[str] = None
    line_total: Decimal


class OrderSummaryOut(OrderTotalsOut):
    id: int
    created_at: datetime
    status: str
    payment_status: str


class OrderDetailOut(OrderSummaryOut):
    flow: str
    customer_email: str
    customer_first_name: str
    customer_last_name: str
    shipping_address: InlineAddress
    items: List[OrderItemOut]


class OrderStatusUpdate(BaseModel):
    status: str
