"""Datastore side of the variant/pricing core: lookups, bulk variant replace, order counters."""
import logging
import uuid
from typing import Optional, Sequence

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from storefront.core.errors import VariantVersionConflict
from storefront.models.campaign_product import CampaignProduct
from storefront.models.order_item import OrderItem
from storefront.models.variant import Variant
from storefront.schemas.catalog import CustomizationConfig, OptionGroup
from storefront.services.pricing import PricingVariant
from storefront.services.variant_matrix import VariantMatrix, generate_variants

logger = logging.getLogger(__name__)


class SqlVariantSource:
    """VariantSource backed by the variants table. Scoped to one campaign when campaign_id is given."""

    def __init__(self, db: Session, campaign_id: Optional[str] = None):
        self.db = db
        self.campaign_id = campaign_id

    def get_variant(self, variant_id: str) -> Optional[PricingVariant]:
        q = self.db.query(Variant, CampaignProduct).join(
            CampaignProduct, Variant.campaign_product_id == CampaignProduct.id
        ).filter(Variant.id == variant_id, Variant.retired_at.is_(None))
        if self.campaign_id:
            q = q.filter(CampaignProduct.campaign_id == self.campaign_id)
        row = q.first()
        if not row:
            return None
        variant, product = row
        return PricingVariant(
            id=variant.id,
            product_id=product.id,
            price_cents=variant.price_cents,
            customization=customization_for(product),
        )


def customization_for(product: CampaignProduct) -> CustomizationConfig:
    return CustomizationConfig.model_validate(product.customization_config or {})


def get_customization_by_variant(db: Session, variant_id: str) -> Optional[CustomizationConfig]:
    product = (
        db.query(CampaignProduct)
        .join(Variant, Variant.campaign_product_id == CampaignProduct.id)
        .filter(Variant.id == variant_id)
        .first()
    )
    return customization_for(product) if product else None


def _sku_taken(db: Session):
    def check(sku: str) -> bool:
        return db.query(Variant.id).filter(Variant.sku == sku).first() is not None

    return check


def _dump_groups(groups: Sequence[OptionGroup]) -> list[dict]:
    return [g.model_dump() for g in groups]


def _add_variants(db: Session, product_id: str, matrix: VariantMatrix) -> None:
    db.add_all(
        [
            Variant(
                id=str(uuid.uuid4()),
                campaign_product_id=product_id,
                sku=gv.sku,
                option_combo=gv.option_combo,
                price_cents=gv.price_cents,
                position=i,
            )
            for i, gv in enumerate(matrix.variants)
        ]
    )


def create_initial_variants(
    db: Session, product: CampaignProduct, groups: Sequence[OptionGroup]
) -> VariantMatrix:
    """Generate the first variant set for a new (flushed, uncommitted) product."""
    matrix = generate_variants(groups, product.base_price_cents, sku_taken=_sku_taken(db))
    product.variant_groups = _dump_groups(groups)
    product.needs_price_review = matrix.needs_price_review
    product.variant_version = 1
    _add_variants(db, product.id, matrix)
    if matrix.needs_price_review:
        logger.warning("Product %s flagged for price review: %d combos clamped to 0", product.id, len(matrix.clamped))
    return matrix


def _retire_current_variants(db: Session, product_id: str) -> None:
    """
    Take the current set out of sale. Variants that order lines reference are
    kept with retired_at set; the rest are deleted.
    """
    current = Variant.campaign_product_id == product_id, Variant.retired_at.is_(None)
    ordered_ids = [
        row[0]
        for row in db.query(OrderItem.variant_id)
        .join(Variant, OrderItem.variant_id == Variant.id)
        .filter(*current)
        .distinct()
    ]
    if ordered_ids:
        db.execute(
            update(Variant)
            .where(*current, Variant.id.in_(ordered_ids))
            .values(retired_at=func.now())
            .execution_options(synchronize_session=False)
        )
    db.query(Variant).filter(*current).delete(synchronize_session=False)
    db.flush()


def replace_variants(
    db: Session,
    product: CampaignProduct,
    groups: Sequence[OptionGroup],
    base_price_cents: int,
    expected_version: int,
) -> VariantMatrix:
    """
    Regenerate a product's variants as one bulk replace.

    The version bump is a conditional UPDATE, so two admins editing the same
    product cannot both win: the loser gets VariantVersionConflict and its
    transaction is rolled back with the old variant set intact. The caller commits.
    """
    matrix = generate_variants(groups, base_price_cents, sku_taken=_sku_taken(db))

    result = db.execute(
        update(CampaignProduct)
        .where(CampaignProduct.id == product.id, CampaignProduct.variant_version == expected_version)
        .values(
            variant_version=CampaignProduct.variant_version + 1,
            variant_groups=_dump_groups(groups),
            base_price_cents=base_price_cents,
            needs_price_review=matrix.needs_price_review,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise VariantVersionConflict(product.id, expected_version)

    _retire_current_variants(db, product.id)
    _add_variants(db, product.id, matrix)
    db.flush()
    db.expire(product)
    logger.info(
        "Regenerated %d variants for product %s (version %d -> %d)",
        len(matrix.variants),
        product.id,
        expected_version,
        expected_version + 1,
    )
    if matrix.needs_price_review:
        logger.warning("Product %s flagged for price review: %d combos clamped to 0", product.id, len(matrix.clamped))
    return matrix


def increment_total_ordered(db: Session, variant_id: str, quantity: int) -> None:
    """Atomic per-row increment; a negative quantity reverses a previous order."""
    db.execute(
        update(Variant)
        .where(Variant.id == variant_id)
        .values(total_ordered=Variant.total_ordered + quantity)
        .execution_options(synchronize_session=False)
    )
