"""
Variant matrix generation.
Expands a product's option groups (Size x Color x ...) into every purchasable
combination, each with a derived price and a SKU.
"""
import logging
import math
import secrets
import string
from typing import Callable, Optional, Sequence

from pydantic import BaseModel

from storefront.core.config import settings
from storefront.core.errors import InvalidOptionGroups, SkuGenerationError, TooManyVariants
from storefront.schemas.catalog import OptionGroup

logger = logging.getLogger(__name__)

SKU_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
SKU_SUFFIX_LENGTH = 4
SKU_MAX_ATTEMPTS = 20
# Prefix for products without option groups (single default variant)
DEFAULT_SKU_PREFIX = "STD"


class GeneratedVariant(BaseModel):
    sku: str
    option_combo: dict[str, str]
    price_cents: int


class VariantMatrix(BaseModel):
    variants: list[GeneratedVariant]
    # Combos whose raw price was negative and was clamped to 0
    clamped: list[dict[str, str]] = []

    @property
    def needs_price_review(self) -> bool:
        return bool(self.clamped)


def count_combinations(option_groups: Sequence[OptionGroup]) -> int:
    return math.prod(len(g.options) for g in option_groups)


def sku_prefix(option_combo: dict[str, str]) -> str:
    """First 3 chars of each chosen value, upper-cased, in group order: {"Size": "Large", "Color": "Blue"} -> LAR-BLU."""
    parts = [v[:3].upper() for v in option_combo.values()]
    return "-".join(parts) if parts else DEFAULT_SKU_PREFIX


def _random_suffix() -> str:
    return "".join(secrets.choice(SKU_SUFFIX_ALPHABET) for _ in range(SKU_SUFFIX_LENGTH))


def _make_sku(prefix: str, used: set[str], sku_taken: Optional[Callable[[str], bool]]) -> str:
    for _ in range(SKU_MAX_ATTEMPTS):
        sku = f"{prefix}-{_random_suffix()}"
        if sku in used:
            continue
        if sku_taken is not None and sku_taken(sku):
            continue
        return sku
    raise SkuGenerationError(f"Could not find a free SKU for prefix {prefix} after {SKU_MAX_ATTEMPTS} attempts")


def _validate_groups(option_groups: Sequence[OptionGroup]) -> None:
    # OptionGroup already validates itself; this covers callers that built groups with model_construct
    names = [g.name for g in option_groups]
    if len(set(names)) != len(names):
        raise InvalidOptionGroups("Variant group names must be unique within a product")
    for g in option_groups:
        if not g.options:
            raise InvalidOptionGroups(f"Group '{g.name}' needs at least one option")


def generate_variants(
    option_groups: Sequence[OptionGroup],
    base_price_cents: int,
    max_variants: Optional[int] = None,
    sku_taken: Optional[Callable[[str], bool]] = None,
) -> VariantMatrix:
    """
    Build the full Cartesian product of option_groups, in declared group order.

    price = base_price_cents + sum of the chosen options' price_adjustment_cents,
    clamped at 0. A product with no groups gets one variant at base price.

    sku_taken: optional check against already persisted SKUs; a suffix is
    regenerated while it returns True.

    Raises TooManyVariants before generating anything if the combination count
    exceeds max_variants (default settings.MAX_VARIANTS_PER_PRODUCT).
    """
    limit = settings.MAX_VARIANTS_PER_PRODUCT if max_variants is None else max_variants
    _validate_groups(option_groups)
    count = count_combinations(option_groups)
    if count > limit:
        raise TooManyVariants(count, limit)

    # Fold over groups: each partial is (combo so far, running price)
    partials: list[tuple[dict[str, str], int]] = [({}, base_price_cents)]
    for group in option_groups:
        partials = [
            ({**combo, group.name: option.value}, price + option.price_adjustment_cents)
            for combo, price in partials
            for option in group.options
        ]

    used: set[str] = set()
    variants: list[GeneratedVariant] = []
    clamped: list[dict[str, str]] = []
    for combo, price in partials:
        if price < 0:
            clamped.append(combo)
            price = 0
        sku = _make_sku(sku_prefix(combo), used, sku_taken)
        used.add(sku)
        variants.append(GeneratedVariant(sku=sku, option_combo=combo, price_cents=price))

    if clamped:
        logger.warning(
            "NegativePriceClamped: %d of %d combinations priced below zero were set to 0",
            len(clamped),
            len(variants),
        )
    return VariantMatrix(variants=variants, clamped=clamped)
