"""Domain errors raised by services; routers translate them to HTTP responses."""
from typing import Optional

from fastapi import HTTPException


class StorefrontError(Exception):
    code = "storefront_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


# --- Variant matrix ---


class InvalidOptionGroups(StorefrontError):
    code = "invalid_option_groups"


class TooManyVariants(StorefrontError):
    code = "too_many_variants"

    def __init__(self, count: int, limit: int):
        super().__init__(f"{count} variant combinations exceeds the limit of {limit}")
        self.count = count
        self.limit = limit


class SkuGenerationError(StorefrontError):
    code = "sku_generation_failed"


class VariantVersionConflict(StorefrontError):
    code = "variant_version_conflict"

    def __init__(self, product_id: str, expected_version: int):
        super().__init__(
            f"Variants for product {product_id} changed since version {expected_version}; reload and retry"
        )
        self.product_id = product_id
        self.expected_version = expected_version


# --- Pricing (all raised before any payment or persistence side effect) ---


class PricingError(StorefrontError):
    code = "pricing_error"

    def __init__(self, message: str, variant_id: Optional[str] = None):
        super().__init__(message)
        self.variant_id = variant_id

    def to_detail(self) -> dict:
        detail = super().to_detail()
        if self.variant_id:
            detail["variant_id"] = self.variant_id
        return detail


class EmptyCart(PricingError):
    code = "empty_cart"


class UnknownVariant(PricingError):
    code = "unknown_variant"


class InvalidQuantity(PricingError):
    code = "invalid_quantity"


class CustomizationRequired(PricingError):
    code = "customization_required"


class CustomizationTooLong(PricingError):
    code = "customization_too_long"


class InvalidTaxRate(PricingError):
    code = "invalid_tax_rate"


# --- Checkout / payments ---


class CampaignClosed(StorefrontError):
    code = "campaign_closed"


class PaymentsNotConfigured(StorefrontError):
    code = "payments_not_configured"


class WebhookSignatureError(StorefrontError):
    code = "invalid_signature"


class PriceMismatch(StorefrontError):
    code = "price_mismatch"


def http_error(exc: StorefrontError) -> HTTPException:
    """HTTPException for a domain error; detail is {"code", "message", ...}."""
    if isinstance(exc, (TooManyVariants, InvalidOptionGroups)):
        code = 422
    elif isinstance(exc, (VariantVersionConflict, CampaignClosed)):
        code = 409
    elif isinstance(exc, SkuGenerationError):
        code = 503
    else:
        code = 400
    return HTTPException(status_code=code, detail=exc.to_detail())
