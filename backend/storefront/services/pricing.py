"""
Order pricing: authoritative subtotal/tax/total from stored variant prices.
Client prices are never read; the cart only names variants, quantities and
customization text.
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Protocol, Sequence, Union

from pydantic import BaseModel

from storefront.core.errors import (
    CustomizationRequired,
    CustomizationTooLong,
    EmptyCart,
    InvalidQuantity,
    InvalidTaxRate,
    UnknownVariant,
)
from storefront.schemas.catalog import CustomizationConfig, CustomizationMode
from storefront.schemas.checkout import CartLine, PricedLine, PricedOrder


class PricingVariant(BaseModel):
    id: str
    product_id: str
    price_cents: int
    customization: CustomizationConfig


class VariantSource(Protocol):
    def get_variant(self, variant_id: str) -> Optional[PricingVariant]:
        ...


def to_rate(tax_rate: Union[Decimal, float, int, str]) -> Decimal:
    """Normalise a tax rate to Decimal; floats go through str so 0.0825 stays 0.0825."""
    if isinstance(tax_rate, bool):
        raise InvalidTaxRate(f"Tax rate must be a number, got {tax_rate!r}")
    try:
        rate = tax_rate if isinstance(tax_rate, Decimal) else Decimal(str(tax_rate))
    except ArithmeticError:
        raise InvalidTaxRate(f"Tax rate must be a number, got {tax_rate!r}")
    if not rate.is_finite() or rate < 0 or rate > 1:
        raise InvalidTaxRate(f"Tax rate must be between 0 and 1, got {tax_rate}")
    return rate


def compute_tax(subtotal_cents: int, tax_rate: Union[Decimal, float, int, str]) -> int:
    """round(subtotal * rate), half up. 333 * 0.0825 = 27.4725 -> 27."""
    amount = Decimal(subtotal_cents) * to_rate(tax_rate)
    return int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _customization_text(line: CartLine, config: CustomizationConfig) -> Optional[str]:
    """Validated customization text for the line, or None if it carries none."""
    mode = config.effective_mode
    text = (line.customization_text or "").strip()
    if mode == CustomizationMode.none:
        # Not a customizable product: ignore whatever the client sent
        return None
    if not text:
        if mode == CustomizationMode.required:
            label = config.label or "Customization"
            raise CustomizationRequired(f"{label} is required for this product", variant_id=line.variant_id)
        return None
    if config.max_length is not None and len(text) > config.max_length:
        raise CustomizationTooLong(
            f"Customization is {len(text)} characters; the limit is {config.max_length}",
            variant_id=line.variant_id,
        )
    return text


def price_cart(
    cart_lines: Sequence[CartLine],
    tax_rate: Union[Decimal, float, int, str],
    variants: VariantSource,
) -> PricedOrder:
    """
    Price a cart from server-side variant data.

    Raises a PricingError subclass (UnknownVariant, InvalidQuantity,
    CustomizationRequired, CustomizationTooLong, InvalidTaxRate, EmptyCart)
    on the first invalid line; nothing is partially priced.
    """
    rate = to_rate(tax_rate)
    if not cart_lines:
        raise EmptyCart("Cart is empty")

    lines: list[PricedLine] = []
    subtotal = 0
    for line in cart_lines:
        variant = variants.get_variant(line.variant_id)
        if variant is None:
            raise UnknownVariant("Item is no longer available; refresh your cart", variant_id=line.variant_id)

        qty = line.quantity
        if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
            raise InvalidQuantity(f"Quantity must be a whole number of at least 1, got {qty!r}", variant_id=line.variant_id)

        text = _customization_text(line, variant.customization)
        unit_price = variant.price_cents
        if text:
            unit_price += variant.customization.surcharge_cents

        line_total = unit_price * qty
        subtotal += line_total
        lines.append(
            PricedLine(
                variant_id=variant.id,
                quantity=qty,
                unit_price_cents=unit_price,
                line_total_cents=line_total,
                customization_text=text,
            )
        )

    tax = compute_tax(subtotal, rate)
    return PricedOrder(subtotal_cents=subtotal, tax_cents=tax, total_cents=subtotal + tax, lines=lines)
