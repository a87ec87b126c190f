import asyncio
import time
from urllib.parse import parse_qs

import httpx
import pytest

from storefront.core.errors import PaymentsNotConfigured, WebhookSignatureError
from storefront.services import payments
from storefront.services.payments import PaymentGateway, compute_signature, verify_webhook_signature

SECRET = "whsec_unit"
PAYLOAD = b'{"id": "evt_1", "type": "payment_intent.succeeded"}'


def header(payload=PAYLOAD, secret=SECRET, timestamp=None):
    ts = int(time.time()) if timestamp is None else timestamp
    return f"t={ts},v1={compute_signature(payload, secret, ts)}"


def test_valid_signature_passes():
    verify_webhook_signature(PAYLOAD, header(), SECRET)


def test_any_matching_v1_is_accepted():
    ts = int(time.time())
    sig = f"t={ts},v1=deadbeef,v1={compute_signature(PAYLOAD, SECRET, ts)}"
    verify_webhook_signature(PAYLOAD, sig, SECRET)


@pytest.mark.parametrize(
    "sig_header",
    [
        "",
        "garbage",
        "t=notanumber,v1=abc",
        "t=1700000000",
    ],
)
def test_malformed_header(sig_header):
    with pytest.raises(WebhookSignatureError):
        verify_webhook_signature(PAYLOAD, sig_header, SECRET)


def test_tampered_payload_rejected():
    with pytest.raises(WebhookSignatureError):
        verify_webhook_signature(PAYLOAD + b" ", header(), SECRET)


def test_wrong_secret_rejected():
    with pytest.raises(WebhookSignatureError):
        verify_webhook_signature(PAYLOAD, header(secret="whsec_other"), SECRET)


def test_old_timestamp_rejected():
    ts = 1_700_000_000
    with pytest.raises(WebhookSignatureError):
        verify_webhook_signature(PAYLOAD, header(timestamp=ts), SECRET, tolerance=300, now=ts + 301)
    verify_webhook_signature(PAYLOAD, header(timestamp=ts), SECRET, tolerance=300, now=ts + 299)


def test_gateway_requires_key():
    with pytest.raises(PaymentsNotConfigured):
        PaymentGateway("")


def mock_client(monkeypatch, handler):
    real_client = httpx.AsyncClient
    monkeypatch.setattr(
        payments.httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )


def test_create_payment_intent_posts_form(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["idempotency"] = request.headers.get("idempotency-key")
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(200, json={"id": "pi_123", "client_secret": "pi_123_secret_abc", "amount": 2808})

    mock_client(monkeypatch, handler)
    gateway = PaymentGateway("sk_test_abc", base_url="https://stripe.test/")

    intent = asyncio.run(
        gateway.create_payment_intent(2808, {"checkout_id": "chk-1", "store_id": "st-1"}, idempotency_key="chk-1")
    )

    assert intent.id == "pi_123"
    assert intent.client_secret == "pi_123_secret_abc"
    assert seen["url"] == "https://stripe.test/v1/payment_intents"
    assert seen["auth"].startswith("Basic ")
    assert seen["idempotency"] == "chk-1"
    assert seen["form"]["amount"] == ["2808"]
    assert seen["form"]["currency"] == ["usd"]
    assert seen["form"]["metadata[checkout_id]"] == ["chk-1"]


def test_processor_error_propagates(monkeypatch):
    mock_client(monkeypatch, lambda request: httpx.Response(402, json={"error": {"message": "card_declined"}}))
    gateway = PaymentGateway("sk_test_abc")

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(gateway.create_payment_intent(500, {}))
