from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from storefront.models.campaign import CampaignStatus
from storefront.schemas.catalog import ProductResponse


class CampaignCreate(BaseModel):
    name: str = Field(min_length=3, max_length=200)
    slug: str = Field(min_length=2, max_length=100, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    opens_at: datetime
    closes_at: datetime
    ships_at: Optional[datetime] = None
    ship_to_name: str = Field(min_length=1, max_length=200)
    ship_to_address: str = Field(min_length=1, max_length=1000)
    ship_to_phone: Optional[str] = Field(default=None, max_length=50)
    custom_message: Optional[str] = Field(default=None, max_length=5000)
    status: CampaignStatus = CampaignStatus.draft

    @model_validator(mode="after")
    def dates_in_order(self) -> "CampaignCreate":
        if self.opens_at >= self.closes_at:
            raise ValueError("Campaign must open before it closes")
        if self.ships_at is not None and self.closes_at >= self.ships_at:
            raise ValueError("Campaign must close before it ships")
        return self


class CampaignUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=200)
    opens_at: Optional[datetime] = None
    closes_at: Optional[datetime] = None
    ships_at: Optional[datetime] = None
    ship_to_name: Optional[str] = Field(default=None, max_length=200)
    ship_to_address: Optional[str] = Field(default=None, max_length=1000)
    ship_to_phone: Optional[str] = Field(default=None, max_length=50)
    custom_message: Optional[str] = Field(default=None, max_length=5000)
    status: Optional[CampaignStatus] = None


class CampaignResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    store_id: str
    name: str
    slug: str
    opens_at: datetime
    closes_at: datetime
    ships_at: Optional[datetime] = None
    ship_to_name: str
    ship_to_address: str
    ship_to_phone: Optional[str] = None
    custom_message: Optional[str] = None
    status: CampaignStatus


class CampaignDetailResponse(CampaignResponse):
    products: list[ProductResponse] = []
