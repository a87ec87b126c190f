import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from storefront.core.deps import get_db
from storefront.core.errors import StorefrontError, http_error
from storefront.models.campaign import Campaign
from storefront.models.campaign_product import CampaignProduct
from storefront.models.order import Order
from storefront.schemas.campaign import CampaignDetailResponse, CampaignResponse, CampaignUpdate
from storefront.schemas.catalog import ProductCreate, ProductResponse
from storefront.schemas.order import CampaignSummaryResponse
from storefront.services.analytics import COUNTED_STATUSES, campaign_summary
from storefront.services.catalog import create_initial_variants
from storefront.services.checkout import as_utc
from storefront.services.packing_list import build_packing_list_pdf

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_campaign(db: Session, campaign_id: str) -> Campaign:
    campaign = db.query(Campaign).filter(Campaign.id == campaign_id).first()
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign


@router.get("/{campaign_id}", response_model=CampaignDetailResponse)
def get_campaign(campaign_id: str, db: Session = Depends(get_db)):
    """Campaign with all its products and variants (admin view)."""
    return _get_campaign(db, campaign_id)


@router.patch("/{campaign_id}", response_model=CampaignResponse)
def update_campaign(campaign_id: str, body: CampaignUpdate, db: Session = Depends(get_db)):
    campaign = _get_campaign(db, campaign_id)
    data = body.model_dump(exclude_unset=True)

    opens_at = data.get("opens_at") or campaign.opens_at
    closes_at = data.get("closes_at") or campaign.closes_at
    ships_at = data["ships_at"] if "ships_at" in data else campaign.ships_at
    if as_utc(opens_at) >= as_utc(closes_at):
        raise HTTPException(status_code=400, detail="Campaign must open before it closes")
    if ships_at is not None and as_utc(closes_at) >= as_utc(ships_at):
        raise HTTPException(status_code=400, detail="Campaign must close before it ships")

    for field, value in data.items():
        setattr(campaign, field, value)
    db.commit()
    db.refresh(campaign)
    return campaign


# --- Products ---


@router.post("/{campaign_id}/products", response_model=ProductResponse)
def create_product(campaign_id: str, body: ProductCreate, db: Session = Depends(get_db)):
    """Create a product and generate its full variant matrix in the same transaction."""
    campaign = _get_campaign(db, campaign_id)
    product = CampaignProduct(
        id=str(uuid.uuid4()),
        campaign_id=campaign.id,
        title=body.title,
        description=body.description,
        base_price_cents=body.base_price_cents,
        category=body.category,
        images=body.images,
        variant_groups=[],
        customization_config=body.customization_config.model_dump(mode="json"),
        status=body.status,
    )
    db.add(product)
    db.flush()
    try:
        create_initial_variants(db, product, body.variant_groups)
    except StorefrontError as e:
        db.rollback()
        raise http_error(e)
    db.commit()
    db.refresh(product)
    return product


@router.get("/{campaign_id}/products", response_model=list[ProductResponse])
def list_products(campaign_id: str, db: Session = Depends(get_db)):
    campaign = _get_campaign(db, campaign_id)
    return campaign.products


# --- Fulfillment / analytics ---


def _counted_orders(db: Session, campaign_id: str) -> list[Order]:
    return (
        db.query(Order)
        .filter(Order.campaign_id == campaign_id, Order.status.in_(list(COUNTED_STATUSES)))
        .order_by(Order.created_at, Order.order_number)
        .all()
    )


@router.get("/{campaign_id}/analytics", response_model=CampaignSummaryResponse)
def get_campaign_analytics(campaign_id: str, db: Session = Depends(get_db)):
    campaign = _get_campaign(db, campaign_id)
    return campaign_summary(campaign.id, _counted_orders(db, campaign.id))


@router.get("/{campaign_id}/packing-list.pdf")
def get_packing_list(campaign_id: str, db: Session = Depends(get_db)):
    """Packing list for all paid and shipped orders."""
    campaign = _get_campaign(db, campaign_id)
    pdf = build_packing_list_pdf(campaign, _counted_orders(db, campaign.id))
    logger.info("Packing list generated for campaign %s (%d bytes)", campaign.id, len(pdf))
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="packing-list-{campaign.slug}.pdf"'},
    )
