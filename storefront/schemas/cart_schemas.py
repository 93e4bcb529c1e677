from sqlmodel import SQLModel, Field
from typing import Optional


class CartAddRequest(SQLModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)
    size: Optional[str] = None


class CartUpdateRequest(SQLModel):
    quantity: int
