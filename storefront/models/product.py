from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

from storefront.models.base import utcnow


class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    description: str = ""
    price: Decimal = Field(max_digits=10, decimal_places=2)
    stock: int = 0
    image_url: Optional[str] = None
    is_active: bool = True

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def in_stock(self) -> bool:
        return self.stock > 0
