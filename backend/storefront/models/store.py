from sqlalchemy import Column, String, DateTime, Numeric, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.core.database import Base


class Store(Base):
    __tablename__ = "stores"

    id = Column(String(36), primary_key=True, index=True)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    contact_email = Column(String(255), nullable=False)
    logo_url = Column(String(512), nullable=True)
    shipping_policy = Column(Text, nullable=True)
    tax_rate = Column(Numeric(6, 4), nullable=False, default=0)  # 0.0825 = 8.25%
    stripe_secret_key = Column(String(255), nullable=True)
    stripe_publishable_key = Column(String(255), nullable=True)
    stripe_webhook_secret = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    campaigns = relationship("Campaign", back_populates="store", cascade="all, delete-orphan")

    @property
    def stripe_connected(self) -> bool:
        return bool(self.stripe_secret_key and self.stripe_publishable_key)
