from sqlalchemy import Column, String, DateTime, ForeignKey, Enum, Integer, Boolean, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from storefront.core.database import Base, JSONType


class ProductStatus(str, enum.Enum):
    draft = "draft"
    active = "active"
    hidden = "hidden"


class CampaignProduct(Base):
    """Product sold in a campaign. Variants are generated from variant_groups + base_price_cents."""

    __tablename__ = "campaign_products"

    id = Column(String(36), primary_key=True, index=True)
    campaign_id = Column(String(36), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    base_price_cents = Column(Integer, nullable=False)
    category = Column(String(100), nullable=True)
    images = Column(JSONType, nullable=False, default=list)
    variant_groups = Column(JSONType, nullable=False, default=list)  # [{name, options: [{value, price_adjustment_cents}]}]
    customization_config = Column(JSONType, nullable=False, default=dict)
    status = Column(
        Enum(ProductStatus),
        default=ProductStatus.active,
        nullable=False,
        index=True,
    )
    # Bumped on every variant regeneration; compare-and-set guard against concurrent edits
    variant_version = Column(Integer, default=0, nullable=False)
    # Set when a combination priced below zero was clamped to 0
    needs_price_review = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    campaign = relationship("Campaign", back_populates="products")
    # Current variant set only; retired rows stay in the table for the orders that reference them
    variants = relationship(
        "Variant",
        primaryjoin="and_(CampaignProduct.id == Variant.campaign_product_id, Variant.retired_at.is_(None))",
        order_by="Variant.position",
        viewonly=True,
    )
