from sqlalchemy import Column, String, DateTime, ForeignKey, Enum, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from storefront.core.database import Base


class CampaignStatus(str, enum.Enum):
    draft = "draft"
    active = "active"
    closed = "closed"
    archived = "archived"


class Campaign(Base):
    __tablename__ = "campaigns"
    __table_args__ = (UniqueConstraint("store_id", "slug", name="uq_campaigns_store_slug"),)

    id = Column(String(36), primary_key=True, index=True)
    store_id = Column(String(36), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(100), nullable=False, index=True)
    opens_at = Column(DateTime(timezone=True), nullable=False)
    closes_at = Column(DateTime(timezone=True), nullable=False)
    ships_at = Column(DateTime(timezone=True), nullable=True)
    ship_to_name = Column(String(200), nullable=False)
    ship_to_address = Column(String(1000), nullable=False)
    ship_to_phone = Column(String(50), nullable=True)
    custom_message = Column(Text, nullable=True)
    status = Column(
        Enum(CampaignStatus),
        default=CampaignStatus.draft,
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # relationships
    store = relationship("Store", back_populates="campaigns")
    products = relationship(
        "CampaignProduct",
        back_populates="campaign",
        order_by="CampaignProduct.created_at",
        cascade="all, delete-orphan",
    )
    orders = relationship("Order", back_populates="campaign")
