"""
orders.views.payments

Create Stripe PaymentIntents for pending orders (Django authoritative).

POST /api/payments/create-intent   {"orderId": "<uuid or order number>", "voucherCode": "optional"}
→ {success, clientSecret, paymentIntentId, amount, currency, voucher}

The amount is always computed here from the stored order total minus a voucher
re-evaluated server-side; the browser never supplies the amount.

ENV/SETTINGS
- STRIPE_MODE = "test" | "live" (defaults to live)
- STRIPE_TEST_SECRET_KEY / STRIPE_LIVE_SECRET_KEY (legacy STRIPE_SECRET_KEY still read)
- PAYMENT_RATE_LIMIT_PER_MIN (defaults to 20)
"""

from __future__ import annotations

import logging
from decimal import Decimal

import stripe
from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.utils.crypto import salted_hmac
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from storefront import errors
from storefront.http import check_rate_limit, get_ip, json_endpoint, json_ok, parse_json_body

from ..lifecycle import currency_for, find_order, to_minor_units
from ..models import Order
from ..serializers import PaymentIntentSerializer
from ..vouchers import evaluate_voucher

logger = logging.getLogger(__name__)


def _idempotency_key(order: Order, amount: int, currency: str, voucher_code: str) -> str:
    """
    Stripe idempotency keys may only be reused with identical parameters, so
    every parameter that can change between attempts is part of the hash.
    """
    payload = f"{settings.STRIPE_MODE}|{order.pk}|{amount}|{currency}|{voucher_code}"
    digest = salted_hmac("storefront.payment_intent", payload).hexdigest()
    return f"sf_pi_{digest[:40]}"


@csrf_exempt
@require_POST
@json_endpoint
def create_payment_intent(request: HttpRequest) -> JsonResponse:
    serializer = PaymentIntentSerializer(data=parse_json_body(request))
    if not serializer.is_valid():
        raise errors.ValidationError("Invalid request", extra={"errors": serializer.errors})
    v = serializer.validated_data

    if not settings.STRIPE_SECRET_KEY:
        raise errors.Unavailable("Payments are not configured.")

    ip = get_ip(request)
    check_rate_limit("payment_intent", ip, settings.PAYMENT_RATE_LIMIT_PER_MIN)

    order = find_order(v["orderId"])
    if order.status != Order.Status.PENDING:
        raise errors.Conflict("Order is not awaiting payment.")

    total = order.total
    discount = Decimal("0.00")
    voucher_payload = None
    code = (v.get("voucherCode") or "").strip()
    if code:
        evaluation = evaluate_voucher(
            code,
            total,
            email=order.email,
            is_founding_member=order.customer.is_founding_member,
        )
        if not evaluation.valid:
            raise errors.ValidationError(evaluation.message)
        discount = evaluation.discount_amount
        voucher_payload = evaluation.as_dict()["voucher"]

    charge = max(Decimal("0.00"), total - discount)
    amount = to_minor_units(charge)
    currency = currency_for(order.country)
    if amount <= 0:
        raise errors.ValidationError("Nothing to pay for this order; confirm it without a payment intent.")

    stripe.api_key = settings.STRIPE_SECRET_KEY
    logger.info("PaymentIntent create: order=%s amount=%s %s mode=%s ip=%s",
                order.order_number, amount, currency, settings.STRIPE_MODE, ip)

    try:
        intent = stripe.PaymentIntent.create(
            amount=amount,
            currency=currency.lower(),
            automatic_payment_methods={"enabled": True},
            receipt_email=order.email,
            metadata={
                "order_id": str(order.pk),
                "order_number": order.order_number,
                "voucher_code": code.upper(),
                "voucher_amount": str(discount),
                "total_before_discount": str(total),
            },
            idempotency_key=_idempotency_key(order, amount, currency, code.upper()),
        )
    except stripe.StripeError as e:
        logger.exception("Stripe PaymentIntent create failed for %s", order.order_number)
        raise errors.Unavailable(getattr(e, "user_message", None) or "Unable to start payment.")

    return json_ok({
        "clientSecret": intent.client_secret,
        "paymentIntentId": intent.id,
        "amount": amount,
        "currency": currency,
        "voucher": voucher_payload,
    })
