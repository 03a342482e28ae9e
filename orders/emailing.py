"""
orders.emailing

Order confirmation + receipt emails (HTML template, plain-text fallback via strip_tags).

Every sender returns an EmailResult instead of raising: a mail failure must not
undo an order that has already been paid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.html import strip_tags

from .models import Order

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "messageId": self.message_id, "error": self.error}


def _context(order: Order) -> Dict[str, Any]:
    return {
        "order": order,
        "pricing": order.pricing_dict(),
        "store_name": getattr(settings, "STORE_NAME", "Storefront"),
    }


def _send(order: Order, *, template: str, subject: str, to: str) -> EmailResult:
    if not to:
        return EmailResult(success=False, error="no recipient")
    try:
        html_body = render_to_string(template, _context(order))
        msg = EmailMultiAlternatives(
            subject=subject,
            body=strip_tags(html_body),
            from_email=None,  # DEFAULT_FROM_EMAIL
            to=[to],
        )
        msg.attach_alternative(html_body, "text/html")
        msg.send(fail_silently=False)
    except Exception as e:
        logger.exception("Order email %s failed for %s", template, order.order_number)
        return EmailResult(success=False, error=str(e))

    status = getattr(msg, "anymail_status", None)
    message_id = getattr(status, "message_id", None) if status is not None else None
    return EmailResult(success=True, message_id=message_id)


def send_order_confirmation(order: Order) -> EmailResult:
    store = getattr(settings, "STORE_NAME", "Storefront")
    return _send(
        order,
        template="orders/email_order_confirmation.html",
        subject=f"{store}: order {order.order_number} confirmed",
        to=order.email,
    )


def send_order_receipt(order: Order) -> EmailResult:
    store = getattr(settings, "STORE_NAME", "Storefront")
    return _send(
        order,
        template="orders/email_order_receipt.html",
        subject=f"{store}: receipt for order {order.order_number}",
        to=order.email,
    )


def send_owner_notification(order: Order) -> EmailResult:
    return _send(
        order,
        template="orders/email_owner_notification.html",
        subject=f"New order {order.order_number} from {order.customer_name or order.email}",
        to=getattr(settings, "ORDER_NOTIFICATION_EMAIL", ""),
    )


def send_order_emails(order: Order) -> Dict[str, Dict[str, Any]]:
    """
    Send confirmation + receipt, record the outcome on `order.emails_sent`,
    and return {"confirmation": {...}, "receipt": {...}}.
    """
    results = {
        "confirmation": send_order_confirmation(order),
        "receipt": send_order_receipt(order),
    }

    now = timezone.now().isoformat()
    sent = dict(order.emails_sent or {})
    for kind, result in results.items():
        if result.success:
            sent[kind] = {"sent": True, "timestamp": now, "messageId": result.message_id}
        else:
            sent[kind] = {"sent": False, "timestamp": now, "error": result.error}
    order.emails_sent = sent
    order.save(update_fields=["emails_sent", "updated_at"])

    if getattr(settings, "ORDER_NOTIFICATION_EMAIL", ""):
        send_owner_notification(order)

    return {kind: result.as_dict() for kind, result in results.items()}
