from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from storefront.models.order import OrderStatus


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    variant_id: str
    sku: Optional[str] = None
    option_combo: dict[str, str] = {}
    customization_value: Optional[str] = None
    quantity: int
    unit_price_cents: int
    total_price_cents: int


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    order_number: str
    campaign_id: str
    customer_email: str
    customer_name: str
    customer_phone: Optional[str] = None
    subtotal_cents: int
    tax_cents: int
    total_cents: int
    status: OrderStatus
    notes: Optional[str] = None
    items: list[OrderItemResponse] = []
    created_at: Optional[datetime] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderNotesUpdate(BaseModel):
    notes: Optional[str] = None


class CampaignSummaryResponse(BaseModel):
    campaign_id: str
    order_count: int
    revenue_cents: int
    units_sold: int
    average_order_cents: int
    units_by_sku: dict[str, int]
