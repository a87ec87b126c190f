import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.deps import get_db, get_notifier
from storefront.core.errors import PriceMismatch, WebhookSignatureError
from storefront.models.store import Store
from storefront.services.checkout import confirm_payment, mark_payment_failed, mark_refunded
from storefront.services.email import EmailNotifier
from storefront.services.payments import verify_webhook_signature

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/stripe/{store_id}")
async def stripe_webhook(
    store_id: str,
    request: Request,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """
    Stripe webhook for one store's account. The signature is checked with that
    store's webhook secret before anything in the body is used, and intents are
    only matched against that store's checkouts and orders.
    """
    payload = await request.body()
    sig = request.headers.get("stripe-signature")
    if not sig:
        raise HTTPException(status_code=400, detail="Missing stripe-signature header")

    store = db.query(Store).filter(Store.id == store_id).first()
    if not store or not store.stripe_webhook_secret:
        logger.error("Webhook for store %s: store not found or webhook secret not configured", store_id)
        raise HTTPException(status_code=404, detail="Store not configured for webhooks")

    try:
        verify_webhook_signature(
            payload, sig, store.stripe_webhook_secret, tolerance=settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS
        )
    except WebhookSignatureError as e:
        logger.warning("Webhook signature verification failed for store %s: %s", store_id, e.message)
        raise HTTPException(status_code=400, detail="Invalid signature")

    try:
        event = json.loads(payload)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}
    intent_id = obj.get("id")

    if event_type == "payment_intent.succeeded" and intent_id:
        try:
            order = confirm_payment(db, store.id, intent_id, obj.get("amount_received"), notifier)
        except PriceMismatch:
            # Recorded on the checkout for manual refund; retrying would not change the outcome
            return {"ok": True, "status": "price_mismatch"}
        if order is None:
            return {"ok": True, "status": "ignored"}
        return {"ok": True, "status": "order_created", "order_number": order.order_number}

    if event_type == "payment_intent.payment_failed" and intent_id:
        if not mark_payment_failed(db, store.id, intent_id):
            return {"ok": True, "status": "ignored"}
        return {"ok": True, "status": "payment_failed"}

    if event_type == "charge.refunded":
        payment_intent_id = obj.get("payment_intent")
        if not payment_intent_id:
            logger.warning("Refund event without payment_intent for store %s", store_id)
            return {"ok": True, "status": "ignored"}
        if mark_refunded(db, store.id, payment_intent_id) is None:
            return {"ok": True, "status": "ignored"}
        return {"ok": True, "status": "refunded"}

    logger.info("Unhandled webhook event type: %s", event_type)
    return {"ok": True, "status": "ignored"}
