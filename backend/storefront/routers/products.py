from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.core.deps import get_db
from storefront.core.errors import StorefrontError, http_error
from storefront.models.campaign_product import CampaignProduct
from storefront.models.variant import Variant
from storefront.schemas.catalog import (
    ProductResponse,
    ProductUpdate,
    VariantMatrixUpdate,
    VariantResponse,
    VariantUpdate,
)
from storefront.services.catalog import replace_variants

router = APIRouter()


def _get_product(db: Session, product_id: str) -> CampaignProduct:
    product = db.query(CampaignProduct).filter(CampaignProduct.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(product_id: str, db: Session = Depends(get_db)):
    return _get_product(db, product_id)


@router.patch("/products/{product_id}", response_model=ProductResponse)
def update_product(product_id: str, body: ProductUpdate, db: Session = Depends(get_db)):
    """Update descriptive fields. Base price and option groups are changed via PUT .../variant-matrix."""
    product = _get_product(db, product_id)
    data = body.model_dump(exclude_unset=True, mode="json")
    for field, value in data.items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    return product


@router.put("/products/{product_id}/variant-matrix", response_model=ProductResponse)
def regenerate_variant_matrix(product_id: str, body: VariantMatrixUpdate, db: Session = Depends(get_db)):
    """
    Replace option groups / base price and regenerate every variant.
    expected_version must match the product's current variant_version (409 otherwise).
    """
    product = _get_product(db, product_id)
    try:
        replace_variants(db, product, body.variant_groups, body.base_price_cents, body.expected_version)
    except StorefrontError as e:
        db.rollback()
        raise http_error(e)
    db.commit()
    db.refresh(product)
    return product


@router.get("/products/{product_id}/variants", response_model=list[VariantResponse])
def list_variants(product_id: str, db: Session = Depends(get_db)):
    product = _get_product(db, product_id)
    return product.variants


@router.patch("/variants/{variant_id}", response_model=VariantResponse)
def update_variant(variant_id: str, body: VariantUpdate, db: Session = Depends(get_db)):
    """Only the image can change; price and options are fixed at generation."""
    variant = db.query(Variant).filter(Variant.id == variant_id).first()
    if not variant:
        raise HTTPException(status_code=404, detail="Variant not found")
    variant.image_url = body.image_url
    db.commit()
    db.refresh(variant)
    return variant
