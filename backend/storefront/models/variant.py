from sqlalchemy import Column, String, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.core.database import Base, JSONType


class Variant(Base):
    """One purchasable option combination. Price is fixed at generation time."""

    __tablename__ = "variants"

    id = Column(String(36), primary_key=True, index=True)
    campaign_product_id = Column(
        String(36), ForeignKey("campaign_products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sku = Column(String(100), nullable=False, unique=True, index=True)
    option_combo = Column(JSONType, nullable=False, default=dict)  # {"Size": "L", "Color": "Blue"}
    price_cents = Column(Integer, nullable=False)
    image_url = Column(String(512), nullable=True)
    position = Column(Integer, default=0, nullable=False)  # generation order
    total_ordered = Column(Integer, default=0, nullable=False)
    # Set when a regeneration replaced this variant but orders still reference it
    retired_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    product = relationship("CampaignProduct")
