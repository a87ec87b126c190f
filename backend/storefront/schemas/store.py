from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class StoreCreate(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    slug: str = Field(min_length=2, max_length=100, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    contact_email: EmailStr
    logo_url: Optional[str] = None
    shipping_policy: Optional[str] = None
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=1)


class StoreUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    contact_email: Optional[EmailStr] = None
    logo_url: Optional[str] = None
    shipping_policy: Optional[str] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=1)
    stripe_secret_key: Optional[str] = None
    stripe_publishable_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None


class StoreDuplicate(BaseModel):
    """New name for the copy; the slug is derived from it unless given."""

    name: str = Field(min_length=2, max_length=255)
    slug: Optional[str] = Field(default=None, min_length=2, max_length=100, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class StoreResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    slug: str
    name: str
    contact_email: str
    logo_url: Optional[str] = None
    shipping_policy: Optional[str] = None
    tax_rate: Decimal
    stripe_connected: bool
    created_at: Optional[datetime] = None


class StorefrontStore(BaseModel):
    """Public view of a store - no contact or payment details."""

    model_config = ConfigDict(from_attributes=True)
    slug: str
    name: str
    logo_url: Optional[str] = None
    shipping_policy: Optional[str] = None
