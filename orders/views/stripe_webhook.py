"""
orders.views.stripe_webhook

Stripe webhook receiver.

payment_intent.succeeded → confirm the order named in the intent metadata
(same path as process-order with paymentData). Re-deliveries of the same event
are no-ops because confirm_payment() skips orders already confirmed with that
payment id.

ENV VARS
- STRIPE_WEBHOOK_SECRET (required): webhook signing secret (whsec_...)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import stripe
from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from storefront import errors
from storefront.http import json_error, json_ok

from ..lifecycle import confirm_payment, find_order

log = logging.getLogger(__name__)


def _to_plain_dict(obj: Any) -> Dict[str, Any]:
    """Stripe objects / mappings as a plain (recursive) dict."""
    fn = getattr(obj, "to_dict", None)
    if callable(fn):
        return fn()
    return dict(obj)


def _handle_payment_intent_succeeded(intent: Dict[str, Any]) -> Dict[str, Any]:
    metadata = intent.get("metadata") or {}
    ref = metadata.get("order_id") or metadata.get("order_number")
    if not ref:
        log.warning("PaymentIntent %s has no order reference in metadata", intent.get("id"))
        return {"ignored": True, "reason": "no_order_reference"}

    order = find_order(ref)

    voucher_amount: Optional[str] = metadata.get("voucher_amount") or None
    result = confirm_payment(
        order,
        {
            "paymentMethod": "card",
            "paymentId": intent.get("id") or "",
            "voucherCode": metadata.get("voucher_code") or "",
            "voucherAmount": voucher_amount,
        },
    )
    return {"orderNumber": result.order.order_number, "status": result.order.status}


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> JsonResponse:
    secret = settings.STRIPE_WEBHOOK_SECRET
    if not secret:
        log.error("Stripe webhook misconfigured: STRIPE_WEBHOOK_SECRET missing")
        return json_error("Webhook not configured.", 500, code="misconfigured")

    sig_header = request.META.get("HTTP_STRIPE_SIGNATURE", "")
    if not sig_header:
        return json_error("Missing Stripe-Signature header.", 400, code="missing_signature")

    try:
        event = stripe.Webhook.construct_event(payload=request.body, sig_header=sig_header, secret=secret)
    except ValueError:
        return json_error("Invalid JSON payload.", 400, code="invalid_payload")
    except stripe.SignatureVerificationError:
        return json_error("Signature verification failed.", 400, code="bad_signature")

    event = _to_plain_dict(event)
    event_type = str(event.get("type") or "")
    log.info("Stripe webhook received: type=%s id=%s", event_type, event.get("id"))

    if event_type != "payment_intent.succeeded":
        return json_ok({"event": event_type, "ignored": True})

    try:
        data = _handle_payment_intent_succeeded(event["data"]["object"])
    except errors.NotFound:
        # Not ours (or already purged); acknowledge so Stripe stops retrying.
        log.warning("Stripe webhook: order for event %s not found", event.get("id"))
        return json_ok({"event": event_type, "ignored": True, "reason": "order_not_found"})
    except Exception:
        log.exception("Stripe webhook handler error type=%s", event_type)
        # 500 so Stripe retries.
        return json_error("Webhook handler error.", 500, code="handler_error")

    return json_ok({"event": event_type, **data})
