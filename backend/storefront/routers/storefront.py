import logging
from typing import Callable

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.core.deps import get_db, get_gateway_factory
from storefront.core.errors import StorefrontError, http_error
from storefront.models.campaign import Campaign, CampaignStatus
from storefront.models.campaign_product import ProductStatus
from storefront.models.store import Store
from storefront.schemas.campaign import CampaignDetailResponse, CampaignResponse
from storefront.schemas.catalog import ProductResponse
from storefront.schemas.checkout import CheckoutRequest, CheckoutResponse, PricedOrder, QuoteRequest
from storefront.schemas.store import StorefrontStore
from storefront.services.checkout import quote, start_checkout
from storefront.services.payments import PaymentGateway

logger = logging.getLogger(__name__)

router = APIRouter()

# Campaigns shoppers can see; closed ones stay visible read-only
PUBLIC_CAMPAIGN_STATUSES = (CampaignStatus.active, CampaignStatus.closed)


def _get_store(db: Session, store_slug: str) -> Store:
    store = db.query(Store).filter(Store.slug == store_slug).first()
    if not store:
        raise HTTPException(status_code=404, detail="Store not found")
    return store


def _get_public_campaign(db: Session, store: Store, campaign_slug: str) -> Campaign:
    campaign = (
        db.query(Campaign)
        .filter(
            Campaign.store_id == store.id,
            Campaign.slug == campaign_slug,
            Campaign.status.in_(PUBLIC_CAMPAIGN_STATUSES),
        )
        .first()
    )
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign


@router.get("/{store_slug}")
def get_storefront(store_slug: str, db: Session = Depends(get_db)):
    """Public: store info and its visible campaigns."""
    store = _get_store(db, store_slug)
    campaigns = (
        db.query(Campaign)
        .filter(Campaign.store_id == store.id, Campaign.status.in_(PUBLIC_CAMPAIGN_STATUSES))
        .order_by(Campaign.closes_at)
        .all()
    )
    return {
        "store": StorefrontStore.model_validate(store),
        "campaigns": [CampaignResponse.model_validate(c) for c in campaigns],
    }


@router.get("/{store_slug}/{campaign_slug}", response_model=CampaignDetailResponse)
def get_storefront_campaign(store_slug: str, campaign_slug: str, db: Session = Depends(get_db)):
    """Public: campaign with its active products and their variants."""
    store = _get_store(db, store_slug)
    campaign = _get_public_campaign(db, store, campaign_slug)
    detail = CampaignDetailResponse.model_validate(campaign)
    detail.products = [
        ProductResponse.model_validate(p) for p in campaign.products if p.status == ProductStatus.active
    ]
    return detail


@router.post("/{store_slug}/{campaign_slug}/quote", response_model=PricedOrder)
def quote_cart(store_slug: str, campaign_slug: str, body: QuoteRequest, db: Session = Depends(get_db)):
    """Public: price the cart with server-side prices and the store's tax rate."""
    store = _get_store(db, store_slug)
    campaign = _get_public_campaign(db, store, campaign_slug)
    try:
        return quote(db, campaign, store, body.items)
    except StorefrontError as e:
        raise http_error(e)


@router.post("/{store_slug}/{campaign_slug}/checkout", response_model=CheckoutResponse)
async def checkout(
    store_slug: str,
    campaign_slug: str,
    body: CheckoutRequest,
    db: Session = Depends(get_db),
    gateway_factory: Callable[[Store], PaymentGateway] = Depends(get_gateway_factory),
):
    """
    Public: start checkout. Re-prices the cart server-side, creates the payment
    intent for that total and returns the client secret for the payment form.
    """
    store = _get_store(db, store_slug)
    campaign = _get_public_campaign(db, store, campaign_slug)
    try:
        gateway = gateway_factory(store)
        pending, intent, priced = await start_checkout(db, gateway, campaign, store, body)
    except StorefrontError as e:
        raise http_error(e)
    except httpx.HTTPError as e:
        logger.error("Payment intent creation failed for store %s: %s", store.id, e)
        raise HTTPException(status_code=502, detail="Payment processor unavailable")

    return CheckoutResponse(
        checkout_id=pending.id,
        client_secret=intent.client_secret,
        publishable_key=store.stripe_publishable_key,
        subtotal_cents=priced.subtotal_cents,
        tax_cents=priced.tax_cents,
        total_cents=priced.total_cents,
    )
