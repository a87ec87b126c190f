import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from conftest import variant_for
from storefront.core.errors import TooManyVariants, VariantVersionConflict
from storefront.models.campaign import Campaign, CampaignStatus
from storefront.models.campaign_product import CampaignProduct
from storefront.models.order_item import OrderItem
from storefront.models.variant import Variant
from storefront.schemas.catalog import OptionGroup
from storefront.schemas.checkout import CartLine, CheckoutRequest
from storefront.services.catalog import (
    SqlVariantSource,
    get_customization_by_variant,
    increment_total_ordered,
    replace_variants,
)
from storefront.services.checkout import confirm_payment, start_checkout

COLOR_ONLY = [OptionGroup.model_validate({"name": "Color", "options": [{"value": "Green"}, {"value": "Gold", "price_adjustment_cents": 300}]})]


def test_create_initial_variants_sets_version_and_positions(campaign, make_product):
    product = make_product(campaign)

    assert product.variant_version == 1
    assert [v.position for v in product.variants] == list(range(6))
    assert product.variant_groups[0]["name"] == "Size"


def test_replace_variants_swaps_the_set(db, campaign, make_product):
    product = make_product(campaign)
    old_ids = {v.id for v in product.variants}

    replace_variants(db, product, COLOR_ONLY, 1500, expected_version=1)
    db.commit()
    db.refresh(product)

    assert product.variant_version == 2
    assert product.base_price_cents == 1500
    assert {v.option_combo["Color"]: v.price_cents for v in product.variants} == {"Green": 1500, "Gold": 1800}
    assert old_ids.isdisjoint({v.id for v in product.variants})
    assert db.query(Variant).filter(Variant.id.in_(old_ids)).count() == 0


def test_replace_keeps_ordered_variants_as_retired(db, gateway, store, campaign, make_product):
    product = make_product(campaign)
    ordered = variant_for(product, Size="M", Color="Red")
    ordered_id = ordered.id
    unordered_ids = {v.id for v in product.variants} - {ordered_id}
    request = CheckoutRequest(
        customer_email="ana.silva@riversidefc.org",
        customer_name="Ana Silva",
        items=[CartLine(variant_id=ordered_id, quantity=1)],
    )
    _, intent, _ = asyncio.run(start_checkout(db, gateway, campaign, store, request))
    confirm_payment(db, store.id, intent.id, None)

    replace_variants(db, product, COLOR_ONLY, 1500, expected_version=1)
    db.commit()
    db.refresh(product)

    retired = db.query(Variant).filter(Variant.id == ordered_id).one()
    assert retired.retired_at is not None
    assert retired.total_ordered == 1
    assert db.query(Variant).filter(Variant.id.in_(unordered_ids)).count() == 0
    assert ordered_id not in {v.id for v in product.variants}
    assert len(product.variants) == 2
    assert SqlVariantSource(db, campaign.id).get_variant(ordered_id) is None
    assert db.query(OrderItem).one().variant.sku == retired.sku


def test_stale_version_leaves_old_set(db, campaign, make_product):
    product = make_product(campaign)
    product_id = product.id
    old_skus = sorted(v.sku for v in product.variants)

    with pytest.raises(VariantVersionConflict) as exc:
        replace_variants(db, product, COLOR_ONLY, 1500, expected_version=0)
    assert exc.value.expected_version == 0

    fresh = db.query(CampaignProduct).filter(CampaignProduct.id == product_id).one()
    assert fresh.variant_version == 1
    assert fresh.base_price_cents == 1000
    assert sorted(v.sku for v in fresh.variants) == old_skus


def test_second_writer_with_same_version_loses(db, campaign, make_product):
    product = make_product(campaign)

    replace_variants(db, product, COLOR_ONLY, 1500, expected_version=1)
    db.commit()

    with pytest.raises(VariantVersionConflict):
        replace_variants(db, product, COLOR_ONLY, 2500, expected_version=1)
    db.refresh(product)
    assert product.base_price_cents == 1500


def test_too_many_variants_changes_nothing(db, campaign, make_product):
    product = make_product(campaign)
    huge = [
        OptionGroup.model_validate({"name": n, "options": [{"value": str(i)} for i in range(10)]})
        for n in ("A", "B", "C")
    ]

    with pytest.raises(TooManyVariants):
        replace_variants(db, product, huge, 1000, expected_version=1)
    db.rollback()
    db.refresh(product)
    assert product.variant_version == 1
    assert len(product.variants) == 6


def test_increment_total_ordered_is_cumulative(db, campaign, make_product):
    product = make_product(campaign)
    v = product.variants[0]

    increment_total_ordered(db, v.id, 2)
    increment_total_ordered(db, v.id, 3)
    db.commit()
    db.refresh(v)
    assert v.total_ordered == 5

    increment_total_ordered(db, v.id, -2)
    db.commit()
    db.refresh(v)
    assert v.total_ordered == 3


def test_variant_source_is_scoped_to_campaign(db, store, campaign, make_product):
    now = datetime.now(timezone.utc)
    other = Campaign(
        id=str(uuid.uuid4()),
        store_id=store.id,
        name="Away Kit",
        slug="away-kit",
        opens_at=now - timedelta(days=1),
        closes_at=now + timedelta(days=3),
        ship_to_name="Clubhouse",
        ship_to_address="1 Pitch Lane",
        status=CampaignStatus.active,
    )
    db.add(other)
    db.commit()
    foreign = make_product(other, groups=[])
    own = make_product(campaign)

    source = SqlVariantSource(db, campaign.id)
    assert source.get_variant(own.variants[0].id).price_cents == own.variants[0].price_cents
    assert source.get_variant(foreign.variants[0].id) is None
    assert SqlVariantSource(db).get_variant(foreign.variants[0].id) is not None


def test_customization_lookup_by_variant(db, campaign, make_product):
    product = make_product(
        campaign, customization={"enabled": True, "mode": "required", "label": "Number", "max_length": 2}
    )

    config = get_customization_by_variant(db, product.variants[0].id)

    assert config.label == "Number"
    assert config.max_length == 2
    assert get_customization_by_variant(db, "missing") is None
