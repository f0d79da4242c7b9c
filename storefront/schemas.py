from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PaymentRecord(BaseModel):
    """Snapshot of a payment document as delivered by the sync layer.

    Only ``metadata["userId"]`` identifies the buyer. Nested objects are kept
    raw; the mappers decide what a usable line item or address looks like.
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    status: str = ""
    amount_total: Optional[int] = None
    currency: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    line_items: Any = None
    shipping: Any = None
    billing_details: Any = None
    payment_method_details: Any = None
    customer_details: Any = None
    receipt_email: Optional[str] = None

    @field_validator("status", "currency", mode="before")
    @classmethod
    def null_to_blank(cls, v):
        return "" if v is None else v

    @field_validator("metadata", mode="before")
    @classmethod
    def null_to_empty(cls, v):
        return {} if v is None else v


class PaymentChange(BaseModel):
    before: Optional[PaymentRecord] = None
    after: PaymentRecord


class OrderItem(BaseModel):
    id: str = ""
    name: str
    price: Decimal
    quantity: int = 1
    description: str = ""
    image: str = ""


class Address(BaseModel):
    name: str = ""
    line1: str = ""
    line2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    items: List[OrderItem]
    total: Decimal
    currency: str
    status: str
    payment_id: str
    shipping_address: Optional[Address] = None
    billing_address: Optional[Address] = None
    phone: str = ""
    email: str = ""
    payment_method: str = ""
    created_at: datetime
    updated_at: datetime


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str = ""
    price: Decimal
    image: str = ""
    features: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    stock: Optional[int] = None


class CartItem(BaseModel):
    """A cart line. Name and price are re-read from the catalog at checkout."""

    id: str
    name: str = ""
    price: Optional[Decimal] = None
    quantity: int = Field(default=1, ge=1)
    description: str = ""
    image: str = ""


class CheckoutRequest(BaseModel):
    items: List[CartItem]
    email: Optional[str] = None


class PortalRequest(BaseModel):
    email: Optional[str] = None
