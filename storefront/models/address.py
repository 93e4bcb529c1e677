from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from storefront.models.base import utcnow


class Address(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    full_name: str
    address1: str
    address2: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str = Field(default="US")
    phone_number: Optional[str] = None
    is_default: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
