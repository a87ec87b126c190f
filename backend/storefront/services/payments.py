"""Stripe payment boundary: PaymentIntent creation over the HTTP API and webhook signature checks."""
import hashlib
import hmac
import logging
import time
from typing import Dict, Optional

import httpx
from pydantic import BaseModel

from storefront.core.config import settings
from storefront.core.errors import PaymentsNotConfigured, WebhookSignatureError

logger = logging.getLogger(__name__)


class PaymentIntentHandle(BaseModel):
    id: str
    client_secret: str
    amount: int


class PaymentGateway:
    """
    Talks to Stripe with one store's secret key.
    Constructed per request (stores bring their own Stripe accounts) and
    injected into checkout, so tests swap it for a fake.
    """

    def __init__(self, secret_key: str, base_url: Optional[str] = None, timeout: Optional[float] = None):
        if not secret_key:
            raise PaymentsNotConfigured("Stripe secret key not configured for this store")
        self.secret_key = secret_key
        self.base_url = (base_url or settings.STRIPE_API_BASE).rstrip("/")
        self.timeout = timeout or settings.STRIPE_TIMEOUT_SECONDS

    async def create_payment_intent(
        self,
        amount_cents: int,
        metadata: Dict[str, str],
        currency: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> PaymentIntentHandle:
        """
        Create a PaymentIntent for amount_cents.

        Raises:
            httpx.HTTPError: If the request fails
        """
        data = {
            "amount": str(amount_cents),
            "currency": currency or settings.STRIPE_CURRENCY,
            "automatic_payment_methods[enabled]": "true",
        }
        for k, v in metadata.items():
            data[f"metadata[{k}]"] = v
        headers = {}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        url = f"{self.base_url}/v1/payment_intents"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, data=data, headers=headers, auth=(self.secret_key, ""))
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Stripe API error: %s - %s", e.response.status_code, e.response.text)
            raise
        except httpx.HTTPError as e:
            logger.error("Stripe request failed: %s", e)
            raise

        logger.info("Created payment intent %s for %d", body.get("id"), amount_cents)
        return PaymentIntentHandle(id=body["id"], client_secret=body["client_secret"], amount=body["amount"])


def _parse_signature_header(sig_header: str) -> tuple[Optional[int], list[str]]:
    """'t=1492774577,v1=5257a8...,v1=...' -> (1492774577, ['5257a8...', ...])."""
    timestamp = None
    signatures = []
    for part in (sig_header or "").split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                return None, []
        elif key == "v1" and value:
            signatures.append(value)
    return timestamp, signatures


def compute_signature(payload: bytes, secret: str, timestamp: int) -> str:
    signed = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()


def verify_webhook_signature(
    payload: bytes,
    sig_header: str,
    secret: str,
    tolerance: Optional[int] = None,
    now: Optional[float] = None,
) -> None:
    """
    Verify a Stripe-Signature header against the raw request body.

    Raises WebhookSignatureError if no v1 signature matches or the timestamp
    is older than tolerance seconds.
    """
    if not secret:
        raise WebhookSignatureError("Webhook secret not configured")
    timestamp, signatures = _parse_signature_header(sig_header)
    if timestamp is None or not signatures:
        raise WebhookSignatureError("Malformed Stripe-Signature header")

    expected = compute_signature(payload, secret, timestamp)
    if not any(hmac.compare_digest(expected, s) for s in signatures):
        raise WebhookSignatureError("No signature matches the payload")

    tolerance = settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS if tolerance is None else tolerance
    current = time.time() if now is None else now
    if tolerance and current - timestamp > tolerance:
        raise WebhookSignatureError("Signature timestamp outside tolerance")
