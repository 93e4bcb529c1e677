from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

from storefront.models.base import utcnow


class Payment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    order_id: int = Field(foreign_key="order.id", index=True)
    user_id: Optional[int] = Field(default=None, index=True)

    provider: str = Field(default="stripe")
    payment_intent_id: Optional[str] = Field(default=None, index=True)
    payment_method_id: Optional[str] = None

    amount: Decimal = Field(max_digits=10, decimal_places=2)
    currency: str = Field(default="usd")
    status: str  # pending | completed | failed
    created_at: datetime = Field(default_factory=utcnow)
