"""
Checkout orchestration around the pricing engine.

The cart is priced twice through the same code path: when the payment intent
is created (to know what to charge) and when the processor confirms payment
(to build the order). The first pricing is snapshotted in PendingCheckout; the
second must reproduce it exactly or the checkout fails closed.
"""
import logging
import secrets
import string
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.core.errors import CampaignClosed, PaymentsNotConfigured, PriceMismatch, PricingError
from storefront.models.campaign import Campaign, CampaignStatus
from storefront.models.order import Order, OrderStatus
from storefront.models.order_item import OrderItem
from storefront.models.pending_checkout import CheckoutStatus, PendingCheckout
from storefront.models.store import Store
from storefront.models.variant import Variant
from storefront.schemas.checkout import CartLine, CheckoutRequest, PricedOrder
from storefront.services.catalog import SqlVariantSource, increment_total_ordered
from storefront.services.email import EmailNotifier
from storefront.services.payments import PaymentGateway, PaymentIntentHandle
from storefront.services.pricing import price_cart

logger = logging.getLogger(__name__)

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


def as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were stored as UTC
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def ensure_campaign_open(campaign: Campaign, now: Optional[datetime] = None) -> None:
    now = now or datetime.now(timezone.utc)
    if campaign.status != CampaignStatus.active:
        raise CampaignClosed("This campaign is not accepting orders")
    if now < as_utc(campaign.opens_at):
        raise CampaignClosed("This campaign has not opened yet")
    if now > as_utc(campaign.closes_at):
        raise CampaignClosed("This campaign has closed")


def quote(db: Session, campaign: Campaign, store: Store, items: Sequence[CartLine]) -> PricedOrder:
    """Price preview for the storefront cart; same engine, no side effects."""
    return price_cart(items, store.tax_rate, SqlVariantSource(db, campaign.id))


async def start_checkout(
    db: Session,
    gateway: PaymentGateway,
    campaign: Campaign,
    store: Store,
    request: CheckoutRequest,
    now: Optional[datetime] = None,
) -> tuple[PendingCheckout, PaymentIntentHandle, PricedOrder]:
    """
    Price the cart, create the payment intent for the computed total and
    snapshot the pricing. Pricing errors surface before the processor is called.
    """
    ensure_campaign_open(campaign, now)
    if not store.stripe_connected:
        raise PaymentsNotConfigured("This store has not connected their Stripe account")

    priced = price_cart(request.items, store.tax_rate, SqlVariantSource(db, campaign.id))

    checkout_id = str(uuid.uuid4())
    intent = await gateway.create_payment_intent(
        priced.total_cents,
        metadata={"checkout_id": checkout_id, "store_id": store.id, "campaign_id": campaign.id},
        idempotency_key=checkout_id,
    )

    checkout = PendingCheckout(
        id=checkout_id,
        campaign_id=campaign.id,
        payment_intent_id=intent.id,
        customer_email=request.customer_email,
        customer_name=request.customer_name,
        customer_phone=request.customer_phone,
        cart_lines=[line.model_dump() for line in request.items],
        priced_lines=[line.model_dump() for line in priced.lines],
        subtotal_cents=priced.subtotal_cents,
        tax_cents=priced.tax_cents,
        total_cents=priced.total_cents,
        status=CheckoutStatus.pending,
    )
    db.add(checkout)
    db.commit()
    db.refresh(checkout)
    logger.info("Checkout %s started: intent %s, total %d", checkout.id, intent.id, priced.total_cents)
    return checkout, intent, priced


def _snapshot(checkout: PendingCheckout) -> PricedOrder:
    return PricedOrder(
        subtotal_cents=checkout.subtotal_cents,
        tax_cents=checkout.tax_cents,
        total_cents=checkout.total_cents,
        lines=checkout.priced_lines,
    )


def _generate_order_number() -> str:
    return "SQ-" + "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(8))


def _fail_closed(db: Session, checkout: PendingCheckout, reason: str) -> PriceMismatch:
    checkout.status = CheckoutStatus.price_mismatch
    db.commit()
    logger.error(
        "Checkout %s (intent %s) failed closed: %s. Payment needs manual refund.",
        checkout.id,
        checkout.payment_intent_id,
        reason,
    )
    return PriceMismatch(reason)


def _order_for_intent(db: Session, store_id: str, payment_intent_id: str) -> Optional[Order]:
    return (
        db.query(Order)
        .join(Campaign, Order.campaign_id == Campaign.id)
        .filter(Campaign.store_id == store_id, Order.stripe_payment_intent_id == payment_intent_id)
        .first()
    )


def _checkout_for_intent(db: Session, store_id: str, payment_intent_id: str) -> Optional[PendingCheckout]:
    return (
        db.query(PendingCheckout)
        .join(Campaign, PendingCheckout.campaign_id == Campaign.id)
        .filter(Campaign.store_id == store_id, PendingCheckout.payment_intent_id == payment_intent_id)
        .first()
    )


def confirm_payment(
    db: Session,
    store_id: str,
    payment_intent_id: str,
    amount_received: Optional[int],
    notifier: Optional[EmailNotifier] = None,
) -> Optional[Order]:
    """
    Turn a confirmed payment into an order, re-pricing from current variant data.

    Idempotent per payment intent. Intents are looked up within store_id, the
    store whose webhook secret signed the event; returns None when that store
    has no checkout for the intent. Raises PriceMismatch (after recording it) when the re-priced
    cart or the amount received differs from what was charged.
    """
    existing = _order_for_intent(db, store_id, payment_intent_id)
    if existing:
        logger.info("Order %s already exists for intent %s", existing.order_number, payment_intent_id)
        return existing

    checkout = _checkout_for_intent(db, store_id, payment_intent_id)
    if not checkout:
        logger.warning("No checkout found for payment intent %s in store %s", payment_intent_id, store_id)
        return None
    if checkout.status == CheckoutStatus.price_mismatch:
        raise PriceMismatch("Checkout already failed price validation")

    campaign = db.query(Campaign).filter(Campaign.id == checkout.campaign_id).first()
    store = campaign.store

    cart = [CartLine.model_validate(line) for line in checkout.cart_lines]
    try:
        priced = price_cart(cart, store.tax_rate, SqlVariantSource(db, campaign.id))
    except PricingError as e:
        raise _fail_closed(db, checkout, f"cart no longer prices: {e.code}: {e.message}")
    if priced != _snapshot(checkout):
        raise _fail_closed(
            db, checkout, f"re-priced total {priced.total_cents} != charged total {checkout.total_cents}"
        )
    if amount_received is not None and amount_received != checkout.total_cents:
        raise _fail_closed(db, checkout, f"amount received {amount_received} != charged total {checkout.total_cents}")

    order_number = _generate_order_number()
    while db.query(Order.id).filter(Order.order_number == order_number).first():
        order_number = _generate_order_number()

    order = Order(
        id=str(uuid.uuid4()),
        order_number=order_number,
        campaign_id=campaign.id,
        customer_email=checkout.customer_email,
        customer_name=checkout.customer_name,
        customer_phone=checkout.customer_phone,
        subtotal_cents=priced.subtotal_cents,
        tax_cents=priced.tax_cents,
        total_cents=priced.total_cents,
        stripe_payment_intent_id=payment_intent_id,
        status=OrderStatus.paid,
    )
    db.add(order)
    for i, line in enumerate(priced.lines):
        db.add(
            OrderItem(
                id=str(uuid.uuid4()),
                order_id=order.id,
                variant_id=line.variant_id,
                customization_value=line.customization_text,
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
                total_price_cents=line.line_total_cents,
                position=i,
            )
        )
        increment_total_ordered(db, line.variant_id, line.quantity)
    checkout.status = CheckoutStatus.completed

    try:
        db.commit()
    except IntegrityError:
        # Concurrent delivery of the same event created the order first
        db.rollback()
        existing = _order_for_intent(db, store_id, payment_intent_id)
        if existing:
            return existing
        raise
    db.refresh(order)
    logger.info("Order %s created for intent %s, total %d", order.order_number, payment_intent_id, order.total_cents)

    if notifier is not None:
        notify_order_placed(db, order, notifier)
    return order


def order_email_data(db: Session, order: Order) -> dict:
    items = []
    for it in order.items:
        variant = db.query(Variant).filter(Variant.id == it.variant_id).first()
        items.append(
            {
                "title": variant.product.title if variant else None,
                "sku": variant.sku if variant else None,
                "options": variant.option_combo if variant else {},
                "customization": it.customization_value,
                "quantity": it.quantity,
                "total_cents": it.total_price_cents,
            }
        )
    return {
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "campaign_name": order.campaign.name if order.campaign else "",
        "items": items,
        "subtotal_cents": order.subtotal_cents,
        "tax_cents": order.tax_cents,
        "total_cents": order.total_cents,
    }


def notify_order_placed(db: Session, order: Order, notifier: EmailNotifier) -> None:
    """Customer confirmation + store notification. Failures are logged only; the order stands."""
    try:
        data = order_email_data(db, order)
        notifier.send(order.customer_email, "order_confirmation", data)
        store = order.campaign.store
        if store and store.contact_email:
            notifier.send(store.contact_email, "admin_new_order", data)
    except Exception as e:
        logger.exception("Failed to send order emails for %s: %s", order.order_number, e)


def mark_payment_failed(db: Session, store_id: str, payment_intent_id: str) -> bool:
    checkout = _checkout_for_intent(db, store_id, payment_intent_id)
    if not checkout:
        logger.warning("Payment failed for unknown intent %s in store %s", payment_intent_id, store_id)
        return False
    if checkout.status == CheckoutStatus.pending:
        checkout.status = CheckoutStatus.failed
        db.commit()
    logger.info("Payment failed for checkout %s (intent %s)", checkout.id, payment_intent_id)
    return True


def mark_refunded(db: Session, store_id: str, payment_intent_id: str) -> Optional[Order]:
    """Mark the order refunded and take its quantities back off the variant counters."""
    order = _order_for_intent(db, store_id, payment_intent_id)
    if not order:
        logger.warning("Refund for intent %s with no order in store %s", payment_intent_id, store_id)
        return None
    if order.status == OrderStatus.refunded:
        return order
    for it in order.items:
        increment_total_ordered(db, it.variant_id, -it.quantity)
    order.status = OrderStatus.refunded
    db.commit()
    db.refresh(order)
    logger.info("Order %s refunded", order.order_number)
    return order
