"""
orders.views.catalog

Pricing quote + voucher validation for the checkout UI.

POST /api/pricing/quote       {cardConfig, country, isFoundingMember?, includeAppSubscription?}
POST /api/vouchers/validate   {code, orderAmount? | cardConfig + country, isFoundingMember?, email?}

A signed-in customer's own founding-member flag overrides the one in the body.
"""

from __future__ import annotations

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from storefront import errors
from storefront.http import json_endpoint, json_ok, parse_json_body

from ..pricing import calculate_pricing, format_price, order_amount_for_voucher
from ..serializers import PricingQuoteSerializer, VoucherValidateSerializer
from ..vouchers import evaluate_voucher


def _founding_flag(request: HttpRequest, claimed: bool) -> bool:
    customer = getattr(request, "customer", None)
    if customer is not None:
        return customer.is_founding_member
    return claimed


def _validated(serializer_cls, data):
    serializer = serializer_cls(data=data)
    if not serializer.is_valid():
        raise errors.ValidationError("Invalid request", extra={"errors": serializer.errors})
    return serializer.validated_data


@csrf_exempt
@require_POST
@json_endpoint
def pricing_quote(request: HttpRequest) -> JsonResponse:
    v = _validated(PricingQuoteSerializer, parse_json_body(request))
    pricing = calculate_pricing(
        v["cardConfig"],
        v["country"],
        is_founding_member=_founding_flag(request, v["isFoundingMember"]),
        include_app_subscription=v["includeAppSubscription"],
    )
    return json_ok({
        "pricing": pricing.as_dict(),
        "display": {
            "subtotal": format_price(pricing.subtotal),
            "appSubscription": format_price(pricing.app_subscription_price),
            "tax": format_price(pricing.tax_amount),
            "total": format_price(pricing.total_before_discount),
        },
    })


@csrf_exempt
@require_POST
@json_endpoint
def validate_voucher(request: HttpRequest) -> JsonResponse:
    v = _validated(VoucherValidateSerializer, parse_json_body(request))
    founding = _founding_flag(request, v["isFoundingMember"])

    amount = v.get("orderAmount")
    if amount is None:
        if not v.get("cardConfig"):
            raise errors.ValidationError("orderAmount or cardConfig is required.")
        amount = order_amount_for_voucher(v["cardConfig"], v["country"], founding)

    evaluation = evaluate_voucher(v["code"], amount, email=v.get("email") or None, is_founding_member=founding)
    return json_ok({**evaluation.as_dict(), "orderAmount": float(amount)})
