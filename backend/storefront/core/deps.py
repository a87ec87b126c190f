from typing import Callable, Generator

from sqlalchemy.orm import Session

from storefront.core.database import SessionLocal
from storefront.models.store import Store
from storefront.services.email import EmailNotifier
from storefront.services.payments import PaymentGateway


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_notifier() -> EmailNotifier:
    return EmailNotifier()


def get_gateway_factory() -> Callable[[Store], PaymentGateway]:
    """Each store charges through its own Stripe account."""
    return lambda store: PaymentGateway(store.stripe_secret_key)
