"""Send customer and store emails (order confirmation, shipping, new order) via SMTP."""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Callable

from storefront.core.config import settings

logger = logging.getLogger(__name__)

# Avoid blocking the request forever if SMTP is slow or unreachable
SMTP_TIMEOUT_SECONDS = 15


def format_cents(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    cents = abs(int(cents))
    return f"{sign}${cents // 100:,}.{cents % 100:02d}"


def _wrap_html(body: str) -> str:
    return f"""
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: sans-serif; max-width: 560px; margin: 0 auto; padding: 24px;">
{body}
  <p style="font-size: 12px; color: #a3a3a3; margin-top: 32px;">
    Squadra
  </p>
</body>
</html>
"""


def _item_rows(items: list[dict]) -> tuple[str, str]:
    """(html rows, text rows) for an order's items."""
    html_rows = []
    text_rows = []
    for it in items:
        options = ", ".join(f"{k}: {v}" for k, v in (it.get("options") or {}).items())
        name = it.get("title") or it.get("sku") or "Item"
        custom = it.get("customization")
        line = f"{it['quantity']} x {name}"
        if options:
            line += f" ({options})"
        if custom:
            line += f" - \"{custom}\""
        price = format_cents(it["total_cents"])
        html_rows.append(
            f'<tr><td style="padding: 4px 0;">{html.escape(line)}</td>'
            f'<td style="padding: 4px 0; text-align: right;">{price}</td></tr>'
        )
        text_rows.append(f"{line}  {price}")
    return "\n".join(html_rows), "\n".join(text_rows)


def _totals(data: dict) -> tuple[str, str]:
    rows = [
        ("Subtotal", data["subtotal_cents"]),
        ("Tax", data["tax_cents"]),
        ("Total", data["total_cents"]),
    ]
    html_part = "".join(
        f'<tr><td style="padding: 4px 0; color: #737373;">{label}</td>'
        f'<td style="padding: 4px 0; text-align: right;">{format_cents(v)}</td></tr>'
        for label, v in rows
    )
    text_part = "\n".join(f"{label}: {format_cents(v)}" for label, v in rows)
    return html_part, text_part


def _render_order_confirmation(data: dict) -> tuple[str, str, str]:
    name = html.escape(data.get("customer_name") or "there")
    order_number = data["order_number"]
    item_html, item_text = _item_rows(data.get("items", []))
    totals_html, totals_text = _totals(data)
    subject = f"Order confirmed: {order_number}"
    body = f"""
  <p style="font-size: 16px; color: #1a1a1a; line-height: 1.5;">Hi {name},</p>
  <p style="font-size: 16px; color: #1a1a1a; line-height: 1.5;">
    Thanks for your order in <strong>{html.escape(data.get("campaign_name", ""))}</strong>.
    Your order number is <strong>{html.escape(order_number)}</strong>.
  </p>
  <table style="width: 100%; font-size: 14px; margin: 24px 0;">{item_html}{totals_html}</table>
  <p style="font-size: 14px; color: #737373;">
    This is a preorder: items are produced after the campaign closes. We'll email you when your order ships.
  </p>
"""
    text = (
        f"Hi {data.get('customer_name') or 'there'},\n\n"
        f"Thanks for your order in {data.get('campaign_name', '')}. Your order number is {order_number}.\n\n"
        f"{item_text}\n\n{totals_text}\n\n"
        "This is a preorder: items are produced after the campaign closes. "
        "We'll email you when your order ships.\n"
    )
    return subject, _wrap_html(body), text


def _render_order_shipped(data: dict) -> tuple[str, str, str]:
    name = html.escape(data.get("customer_name") or "there")
    order_number = data["order_number"]
    subject = f"Your order #{order_number} has shipped!"
    body = f"""
  <p style="font-size: 16px; color: #1a1a1a; line-height: 1.5;">Hi {name},</p>
  <p style="font-size: 16px; color: #1a1a1a; line-height: 1.5;">
    Good news: order <strong>{html.escape(order_number)}</strong> is on its way.
  </p>
"""
    text = (
        f"Hi {data.get('customer_name') or 'there'},\n\n"
        f"Good news: order {order_number} is on its way.\n"
    )
    return subject, _wrap_html(body), text


def _render_admin_new_order(data: dict) -> tuple[str, str, str]:
    order_number = data["order_number"]
    item_html, item_text = _item_rows(data.get("items", []))
    totals_html, totals_text = _totals(data)
    subject = f"New Order: {order_number}"
    body = f"""
  <p style="font-size: 16px; color: #1a1a1a; line-height: 1.5;">
    New order in <strong>{html.escape(data.get("campaign_name", ""))}</strong>.
  </p>
  <ul style="font-size: 14px; color: #1a1a1a;">
    <li><strong>Order Number:</strong> {html.escape(order_number)}</li>
    <li><strong>Customer:</strong> {html.escape(data.get("customer_name", ""))} ({html.escape(data.get("customer_email", ""))})</li>
  </ul>
  <table style="width: 100%; font-size: 14px; margin: 24px 0;">{item_html}{totals_html}</table>
"""
    text = (
        f"New order in {data.get('campaign_name', '')}.\n\n"
        f"Order Number: {order_number}\n"
        f"Customer: {data.get('customer_name', '')} ({data.get('customer_email', '')})\n\n"
        f"{item_text}\n\n{totals_text}\n"
    )
    return subject, _wrap_html(body), text


TEMPLATES: dict[str, Callable[[dict], tuple[str, str, str]]] = {
    "order_confirmation": _render_order_confirmation,
    "order_shipped": _render_order_shipped,
    "admin_new_order": _render_admin_new_order,
}


def render_template(template_id: str, data: dict[str, Any]) -> tuple[str, str, str]:
    """Return (subject, html, text). Unknown template_id raises KeyError."""
    return TEMPLATES[template_id](data)


class EmailNotifier:
    """
    Notification sink. send() never raises for delivery problems: they are
    logged and reported as False so callers can treat email as fire-and-forget.
    """

    def send(self, to_email: str, template_id: str, data: dict[str, Any]) -> bool:
        subject, html_body, text_body = render_template(template_id, data)

        if settings.DISABLE_EMAIL:
            logger.info("Email disabled - would have sent %s to %s", template_id, to_email)
            return False
        if not settings.SMTP_HOST or not settings.SMTP_USER:
            logger.warning("SMTP not configured (SMTP_HOST/SMTP_USER). Skipping %s.", template_id)
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        try:
            with smtplib.SMTP(
                settings.SMTP_HOST, settings.SMTP_PORT, timeout=SMTP_TIMEOUT_SECONDS
            ) as server:
                server.starttls()
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                server.sendmail(settings.SMTP_FROM_EMAIL, [to_email], msg.as_string())
            logger.info("%s email sent to %s", template_id, to_email)
            return True
        except smtplib.SMTPAuthenticationError as e:
            logger.exception("SMTP login failed for %s: %s", to_email, e)
            return False
        except (OSError, TimeoutError) as e:
            logger.exception("SMTP connection error (timeout or network) for %s: %s", to_email, e)
            return False
        except smtplib.SMTPException as e:
            logger.exception("Failed to send %s email to %s: %s", template_id, to_email, e)
            return False
