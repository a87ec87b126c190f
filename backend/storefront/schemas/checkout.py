from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class CartLine(BaseModel):
    """Client-supplied; nothing here is trusted beyond the variant id it names."""

    variant_id: str
    quantity: int
    customization_text: Optional[str] = None


class PricedLine(BaseModel):
    variant_id: str
    quantity: int
    unit_price_cents: int
    line_total_cents: int
    customization_text: Optional[str] = None


class PricedOrder(BaseModel):
    subtotal_cents: int
    tax_cents: int
    total_cents: int
    lines: list[PricedLine]


class QuoteRequest(BaseModel):
    items: list[CartLine]


class CheckoutRequest(BaseModel):
    customer_email: EmailStr
    customer_name: str = Field(min_length=1, max_length=255)
    customer_phone: Optional[str] = Field(default=None, max_length=50)
    items: list[CartLine]


class CheckoutResponse(BaseModel):
    checkout_id: str
    client_secret: str
    publishable_key: Optional[str] = None
    subtotal_cents: int
    tax_cents: int
    total_cents: int
