import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from storefront.models.campaign_product import ProductStatus


class VariantOption(BaseModel):
    value: str
    price_adjustment_cents: int = 0

    @field_validator("value")
    @classmethod
    def value_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Option value is required")
        return v


class OptionGroup(BaseModel):
    """Axis of variation, e.g. Size with S/M/L."""

    name: str
    options: list[VariantOption]

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Group name is required (e.g., Size, Color)")
        return v

    @model_validator(mode="after")
    def options_valid(self) -> "OptionGroup":
        if not self.options:
            raise ValueError(f"Group '{self.name}' needs at least one option")
        values = [o.value for o in self.options]
        if len(set(values)) != len(values):
            raise ValueError(f"Group '{self.name}' has duplicate option values")
        return self


def _check_unique_group_names(groups: list[OptionGroup]) -> list[OptionGroup]:
    names = [g.name for g in groups]
    if len(set(names)) != len(names):
        raise ValueError("Variant group names must be unique within a product")
    return groups


class CustomizationMode(str, enum.Enum):
    none = "none"
    optional = "optional"
    required = "required"


class CustomizationConfig(BaseModel):
    enabled: bool = False
    mode: CustomizationMode = CustomizationMode.none
    label: str = ""
    placeholder: Optional[str] = None
    max_length: Optional[int] = Field(default=None, gt=0)
    surcharge_cents: int = Field(default=0, ge=0)

    @property
    def effective_mode(self) -> CustomizationMode:
        # Disabled config behaves as "none" whatever mode says
        return self.mode if self.enabled else CustomizationMode.none


class ProductCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    base_price_cents: int = Field(gt=0)
    category: Optional[str] = Field(default=None, max_length=100)
    images: list[str] = []
    variant_groups: list[OptionGroup] = []
    customization_config: CustomizationConfig = CustomizationConfig()
    status: ProductStatus = ProductStatus.active

    @field_validator("variant_groups")
    @classmethod
    def group_names_unique(cls, v: list[OptionGroup]) -> list[OptionGroup]:
        return _check_unique_group_names(v)


class ProductUpdate(BaseModel):
    """Non-pricing fields only. Pricing changes go through the variant matrix endpoint."""

    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    category: Optional[str] = Field(default=None, max_length=100)
    images: Optional[list[str]] = None
    customization_config: Optional[CustomizationConfig] = None
    status: Optional[ProductStatus] = None


class VariantMatrixUpdate(BaseModel):
    base_price_cents: int = Field(gt=0)
    variant_groups: list[OptionGroup] = []
    expected_version: int

    @field_validator("variant_groups")
    @classmethod
    def group_names_unique(cls, v: list[OptionGroup]) -> list[OptionGroup]:
        return _check_unique_group_names(v)


class VariantUpdate(BaseModel):
    image_url: Optional[str] = None


class VariantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    campaign_product_id: str
    sku: str
    option_combo: dict[str, str]
    price_cents: int
    image_url: Optional[str] = None
    total_ordered: int = 0


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    campaign_id: str
    title: str
    description: Optional[str] = None
    base_price_cents: int
    category: Optional[str] = None
    images: list[str] = []
    variant_groups: list[OptionGroup] = []
    customization_config: CustomizationConfig
    status: ProductStatus
    variant_version: int
    needs_price_review: bool = False
    variants: list[VariantResponse] = []
    created_at: Optional[datetime] = None
