from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


class AddressCreate(BaseModel):
    full_name: str = Field(min_length=1)
    address1: str = Field(min_length=1)
    address2: Optional[str] = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = "US"
    phone_number: Optional[str] = None
    is_default: bool = False

    @field_validator("full_name", "address1", "city", "state", "postal_code", "country")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()


class AddressUpdate(BaseModel):
    full_name: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    phone_number: Optional[str] = None
    is_default: Optional[bool] = None


class AddressRead(BaseModel):
    id: int
    full_name: str
    address1: str
    address2: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str
    phone_number: Optional[str] = None
    is_default: bool
    created_at: datetime

    model_config = {"from_attributes": True}
