import os

# Must be set before storefront.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DISABLE_EMAIL"] = "true"

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.core.deps import get_db, get_gateway_factory, get_notifier
from storefront.main import app
from storefront.models import Base
from storefront.models.campaign import Campaign, CampaignStatus
from storefront.models.campaign_product import CampaignProduct
from storefront.models.store import Store
from storefront.schemas.catalog import CustomizationConfig, OptionGroup
from storefront.services.catalog import create_initial_variants
from storefront.services.email import EmailNotifier, render_template
from storefront.services.payments import PaymentIntentHandle

WEBHOOK_SECRET = "whsec_test_secret"
OTHER_WEBHOOK_SECRET = "whsec_other_secret"

SIZE_COLOR_GROUPS = [
    {
        "name": "Size",
        "options": [
            {"value": "S", "price_adjustment_cents": 0},
            {"value": "M", "price_adjustment_cents": 0},
            {"value": "L", "price_adjustment_cents": 200},
        ],
    },
    {
        "name": "Color",
        "options": [
            {"value": "Red", "price_adjustment_cents": 0},
            {"value": "Blue", "price_adjustment_cents": 100},
        ],
    },
]


class FakeGateway:
    """Stands in for PaymentGateway; records every intent it is asked to create."""

    def __init__(self):
        self.calls = []

    async def create_payment_intent(self, amount_cents, metadata, currency=None, idempotency_key=None):
        self.calls.append({"amount": amount_cents, "metadata": metadata, "idempotency_key": idempotency_key})
        n = len(self.calls)
        return PaymentIntentHandle(id=f"pi_test_{n}", client_secret=f"pi_test_{n}_secret", amount=amount_cents)


class RecordingNotifier(EmailNotifier):
    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    def send(self, to_email, template_id, data):
        render_template(template_id, data)
        if self.fail:
            raise RuntimeError("SMTP exploded")
        self.sent.append((to_email, template_id, data))
        return True


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(db, gateway, notifier):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_gateway_factory] = lambda: (lambda store: gateway)
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def store(db):
    store = Store(
        id=str(uuid.uuid4()),
        slug="riverside-fc",
        name="Riverside FC",
        contact_email="kit@riversidefc.org",
        tax_rate=Decimal("0.08"),
        stripe_secret_key="sk_test_123",
        stripe_publishable_key="pk_test_123",
        stripe_webhook_secret=WEBHOOK_SECRET,
    )
    db.add(store)
    db.commit()
    return store


@pytest.fixture
def other_store(db):
    """A second store with its own Stripe account and webhook secret."""
    other = Store(
        id=str(uuid.uuid4()),
        slug="harbour-rowing",
        name="Harbour Rowing Club",
        contact_email="shop@harbourrowing.org",
        tax_rate=Decimal("0.05"),
        stripe_secret_key="sk_test_456",
        stripe_publishable_key="pk_test_456",
        stripe_webhook_secret=OTHER_WEBHOOK_SECRET,
    )
    db.add(other)
    db.commit()
    return other


@pytest.fixture
def campaign(db, store):
    now = datetime.now(timezone.utc)
    campaign = Campaign(
        id=str(uuid.uuid4()),
        store_id=store.id,
        name="Spring Kit 2026",
        slug="spring-kit",
        opens_at=now - timedelta(days=1),
        closes_at=now + timedelta(days=7),
        ship_to_name="Riverside FC Clubhouse",
        ship_to_address="1 Pitch Lane\nRiverside",
        status=CampaignStatus.active,
    )
    db.add(campaign)
    db.commit()
    return campaign


@pytest.fixture
def make_product(db):
    def _make(
        campaign: Campaign,
        groups: Optional[list] = None,
        base_price_cents: int = 1000,
        customization: Optional[dict] = None,
        title: str = "Training Tee",
    ) -> CampaignProduct:
        product = CampaignProduct(
            id=str(uuid.uuid4()),
            campaign_id=campaign.id,
            title=title,
            base_price_cents=base_price_cents,
            images=[],
            variant_groups=[],
            customization_config=CustomizationConfig.model_validate(customization or {}).model_dump(mode="json"),
        )
        db.add(product)
        db.flush()
        option_groups = [OptionGroup.model_validate(g) for g in (groups if groups is not None else SIZE_COLOR_GROUPS)]
        create_initial_variants(db, product, option_groups)
        db.commit()
        db.refresh(product)
        return product

    return _make


def variant_for(product: CampaignProduct, **combo):
    for v in product.variants:
        if v.option_combo == combo:
            return v
    raise AssertionError(f"No variant {combo} on {product.title}")
