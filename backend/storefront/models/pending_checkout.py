from sqlalchemy import Column, String, DateTime, ForeignKey, Enum, Integer
from sqlalchemy.sql import func
import enum

from storefront.core.database import Base, JSONType


class CheckoutStatus(str, enum.Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    price_mismatch = "price_mismatch"


class PendingCheckout(Base):
    """Cart and totals as priced when the payment intent was created; checked again at confirmation."""

    __tablename__ = "pending_checkouts"

    id = Column(String(36), primary_key=True, index=True)
    campaign_id = Column(String(36), ForeignKey("campaigns.id"), nullable=False, index=True)
    payment_intent_id = Column(String(255), nullable=True, unique=True, index=True)
    customer_email = Column(String(255), nullable=False)
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    cart_lines = Column(JSONType, nullable=False)  # [{variant_id, quantity, customization_text}]
    priced_lines = Column(JSONType, nullable=False)  # PricedLine dumps
    subtotal_cents = Column(Integer, nullable=False)
    tax_cents = Column(Integer, nullable=False)
    total_cents = Column(Integer, nullable=False)
    status = Column(
        Enum(CheckoutStatus),
        default=CheckoutStatus.pending,
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
