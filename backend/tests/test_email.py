import smtplib

import pytest

from storefront.core.config import settings
from storefront.services import email
from storefront.services.email import EmailNotifier, format_cents, render_template

ORDER = {
    "order_number": "SQ-7K2M9QXA",
    "customer_name": "Ana <Silva>",
    "customer_email": "ana.silva@riversidefc.org",
    "campaign_name": "Spring Kit 2026",
    "items": [
        {"title": "Training Tee", "sku": "L-BLU-X1Y2", "options": {"Size": "L", "Color": "Blue"}, "customization": "SILVA 7", "quantity": 2, "total_cents": 2600},
    ],
    "subtotal_cents": 2600,
    "tax_cents": 208,
    "total_cents": 2808,
}


@pytest.mark.parametrize("cents,expected", [(0, "$0.00"), (5, "$0.05"), (2808, "$28.08"), (123456789, "$1,234,567.89"), (-150, "-$1.50")])
def test_format_cents(cents, expected):
    assert format_cents(cents) == expected


def test_order_confirmation():
    subject, html_body, text_body = render_template("order_confirmation", ORDER)

    assert subject == "Order confirmed: SQ-7K2M9QXA"
    assert "Ana &lt;Silva&gt;" in html_body
    assert "2 x Training Tee (Size: L, Color: Blue)" in text_body
    assert '"SILVA 7"' in text_body
    assert "Total: $28.08" in text_body


def test_shipped_and_admin_templates():
    assert render_template("order_shipped", ORDER)[0] == "Your order #SQ-7K2M9QXA has shipped!"
    subject, _, text_body = render_template("admin_new_order", ORDER)
    assert subject == "New Order: SQ-7K2M9QXA"
    assert "ana.silva@riversidefc.org" in text_body


def test_unknown_template_is_a_programming_error():
    with pytest.raises(KeyError):
        render_template("welcome_aboard", ORDER)


def test_disabled_email_returns_false(monkeypatch):
    monkeypatch.setattr(settings, "DISABLE_EMAIL", True)
    assert EmailNotifier().send("ana.silva@riversidefc.org", "order_shipped", ORDER) is False


def test_unconfigured_smtp_returns_false(monkeypatch):
    monkeypatch.setattr(settings, "DISABLE_EMAIL", False)
    monkeypatch.setattr(settings, "SMTP_HOST", "")
    assert EmailNotifier().send("ana.silva@riversidefc.org", "order_shipped", ORDER) is False


class FakeSMTP:
    sent = []
    fail_with = None

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        if self.fail_with:
            raise self.fail_with

    def sendmail(self, from_addr, to_addrs, msg):
        FakeSMTP.sent.append((from_addr, to_addrs, msg))


@pytest.fixture
def smtp(monkeypatch):
    monkeypatch.setattr(settings, "DISABLE_EMAIL", False)
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.riversidefc.org")
    monkeypatch.setattr(settings, "SMTP_USER", "mailer")
    monkeypatch.setattr(settings, "SMTP_PASSWORD", "hunter2")
    FakeSMTP.sent = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(email.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_send_over_smtp(smtp):
    assert EmailNotifier().send("ana.silva@riversidefc.org", "order_confirmation", ORDER) is True

    from_addr, to_addrs, msg = smtp.sent[0]
    assert from_addr == settings.SMTP_FROM_EMAIL
    assert to_addrs == ["ana.silva@riversidefc.org"]
    assert "Subject: Order confirmed: SQ-7K2M9QXA" in msg


def test_smtp_failure_is_logged_not_raised(smtp, caplog):
    smtp.fail_with = smtplib.SMTPAuthenticationError(535, b"bad credentials")

    assert EmailNotifier().send("ana.silva@riversidefc.org", "order_shipped", ORDER) is False
    assert "SMTP login failed" in caplog.text
