import logging
import re
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.core.deps import get_db
from storefront.models.campaign import Campaign
from storefront.models.store import Store
from storefront.schemas.campaign import CampaignCreate, CampaignResponse
from storefront.schemas.store import StoreCreate, StoreDuplicate, StoreResponse, StoreUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_store(db: Session, store_id: str) -> Store:
    store = db.query(Store).filter(Store.id == store_id).first()
    if not store:
        raise HTTPException(status_code=404, detail="Store not found")
    return store


@router.post("", response_model=StoreResponse)
def create_store(body: StoreCreate, db: Session = Depends(get_db)):
    """Create a store. Stripe keys are added later via PATCH."""
    if db.query(Store).filter(Store.slug == body.slug).first():
        raise HTTPException(status_code=400, detail="Store slug already in use")
    store = Store(
        id=str(uuid.uuid4()),
        slug=body.slug,
        name=body.name,
        contact_email=body.contact_email,
        logo_url=body.logo_url,
        shipping_policy=body.shipping_policy,
        tax_rate=body.tax_rate,
    )
    db.add(store)
    db.commit()
    db.refresh(store)
    return store


@router.get("", response_model=list[StoreResponse])
def list_stores(db: Session = Depends(get_db)):
    return db.query(Store).order_by(Store.name).all()


@router.get("/{store_id}", response_model=StoreResponse)
def get_store(store_id: str, db: Session = Depends(get_db)):
    return _get_store(db, store_id)


@router.patch("/{store_id}", response_model=StoreResponse)
def update_store(store_id: str, body: StoreUpdate, db: Session = Depends(get_db)):
    """Update store details, tax rate and Stripe credentials. Fields left out are unchanged."""
    store = _get_store(db, store_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(store, field, value)
    db.commit()
    db.refresh(store)
    return store


def _slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug[:90].rstrip("-") or "store"


def _free_slug(db: Session, base: str) -> str:
    slug, n = base, 1
    while db.query(Store.id).filter(Store.slug == slug).first():
        n += 1
        slug = f"{base}-{n}"
    return slug


@router.post("/{store_id}/duplicate", response_model=StoreResponse)
def duplicate_store(store_id: str, body: StoreDuplicate, db: Session = Depends(get_db)):
    """
    Copy a store's settings under a new name. Campaigns are not copied, and
    neither are the Stripe credentials: each store gets its own webhook endpoint
    and secret, so the copy has to be connected separately.
    """
    source = _get_store(db, store_id)
    name = body.name.strip()
    if len(name) < 2:
        raise HTTPException(status_code=400, detail="Store name is required")
    if body.slug:
        if db.query(Store.id).filter(Store.slug == body.slug).first():
            raise HTTPException(status_code=400, detail="Store slug already in use")
        slug = body.slug
    else:
        slug = _free_slug(db, _slugify(name))
    copy = Store(
        id=str(uuid.uuid4()),
        slug=slug,
        name=name,
        contact_email=source.contact_email,
        logo_url=source.logo_url,
        shipping_policy=source.shipping_policy,
        tax_rate=source.tax_rate,
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)
    logger.info("Store %s duplicated as %s (%s)", source.id, copy.id, copy.slug)
    return copy


# --- Campaigns ---


@router.post("/{store_id}/campaigns", response_model=CampaignResponse)
def create_campaign(store_id: str, body: CampaignCreate, db: Session = Depends(get_db)):
    store = _get_store(db, store_id)
    if db.query(Campaign).filter(Campaign.store_id == store.id, Campaign.slug == body.slug).first():
        raise HTTPException(status_code=400, detail="Campaign slug already in use for this store")
    campaign = Campaign(id=str(uuid.uuid4()), store_id=store.id, **body.model_dump())
    db.add(campaign)
    db.commit()
    db.refresh(campaign)
    return campaign


@router.get("/{store_id}/campaigns", response_model=list[CampaignResponse])
def list_campaigns(store_id: str, db: Session = Depends(get_db)):
    store = _get_store(db, store_id)
    return db.query(Campaign).filter(Campaign.store_id == store.id).order_by(Campaign.opens_at.desc()).all()
