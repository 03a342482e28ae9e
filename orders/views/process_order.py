"""
orders.views.process_order

POST /api/orders/process-order

Body:
  {
    "cardConfig":   {"baseMaterial": "pvc", "quantity": 1, "isDigitalOnly": false, ...},
    "checkoutData": {"fullName", "email", "phoneNumber", "addressLine1", ..., "country", "postalCode"},
    "pricing":      {"subtotal", "appSubscription", "shipping", "tax", "total"}      (optional),
    "paymentData":  {"paymentMethod", "paymentId", "voucherCode", "voucherDiscount", "voucherAmount"} (optional),
    "orderId":      "<uuid or order number>"                                          (optional)
  }

Response:
  confirmed → {success, order, emailResults}
  pending   → {success, order, message}
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from storefront import errors
from storefront.http import json_endpoint, json_ok, parse_json_body

from ..lifecycle import process_order as run_process_order
from ..models import Order
from ..serializers import ProcessOrderSerializer

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
@json_endpoint
def process_order(request: HttpRequest) -> JsonResponse:
    data = parse_json_body(request)
    if not data.get("cardConfig") or not data.get("checkoutData"):
        raise errors.ValidationError("Missing required data")

    serializer = ProcessOrderSerializer(data=data)
    if not serializer.is_valid():
        raise errors.ValidationError("Invalid order data", extra={"errors": serializer.errors})
    v = serializer.validated_data

    result = run_process_order(
        v["cardConfig"],
        v["checkoutData"],
        pricing=v.get("pricing"),
        payment_data=v.get("paymentData"),
        order_ref=v.get("orderId"),
    )
    order = result.order

    payload = {"order": order.as_public_dict()}
    if result.warnings:
        payload["warnings"] = result.warnings

    if order.status == Order.Status.CONFIRMED:
        payload["emailResults"] = result.email_results
        return json_ok(payload)

    payload["message"] = "Order created. Awaiting payment confirmation."
    return json_ok(payload)
