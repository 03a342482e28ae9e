"""
orders.lifecycle

Order creation + confirmation.

    pending --[payment confirmed]--> confirmed

process_order() is the single entry point used by the checkout endpoint:
- without orderId: upsert the customer, create the order (pending, or confirmed
  when payment data is already present)
- with orderId (UUID or order number): apply payment + voucher to that order

Payment records, voucher redemption, shipping address records and emails are
side effects: each failure is logged and never aborts the order write.

========= CHANGE LOG =========
2026-10-12 • ADD: confirm_payment() shared by process-order and the Stripe webhook.  # CHANGED:
           • FIX: voucher discount is applied against total_before_discount so a
             repeated confirmation cannot discount twice.                          # CHANGED:
2026-10-05 • ADD: Payment + VoucherUsage side effects on confirmation.
2026-10-03 • ADD: process_order create path.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional, Tuple

from django.db import IntegrityError, transaction

from accounts.models import Customer
from accounts.phone import to_e164
from storefront import errors

from .emailing import send_order_emails
from .models import Order, Payment, ShippingAddress
from .order_numbers import generate_unique_order_number
from .pricing import DIGITAL_MATERIAL, audit_client_pricing, material_of, to_money
from .vouchers import redeem_voucher

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
INDIA = {"IN", "INDIA"}


@dataclass
class OrderResult:
    order: Order
    created: bool
    payment: Optional[Payment] = None
    email_results: Optional[Dict[str, Any]] = None
    warnings: list = field(default_factory=list)


# ---- helpers ----

def determine_plan_type(card_config: Mapping[str, Any], total: Decimal) -> str:
    digital_only = bool(card_config.get("isDigitalOnly"))
    if digital_only and total == 0:
        return Order.PlanType.DIGITAL_ONLY
    if material_of(card_config) == DIGITAL_MATERIAL and (digital_only or total > 0):
        return Order.PlanType.DIGITAL_PROFILE_APP
    return Order.PlanType.NFC_CARD_FULL


def currency_for(country: Optional[str]) -> str:
    return "INR" if (country or "").strip().upper() in INDIA else "USD"


def to_minor_units(amount: Any) -> int:
    return int((to_money(amount, ZERO) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def find_order(ref: str) -> Order:
    ref = (ref or "").strip()
    if not ref:
        raise errors.NotFound("Order not found.")
    try:
        order = Order.objects.filter(id=uuid.UUID(ref)).first()
    except ValueError:
        order = Order.objects.filter(order_number=ref).first()
    if order is None:
        raise errors.NotFound("Order not found.")
    return order


def split_name(full_name: str) -> Tuple[str, str]:
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def _pricing_snapshot(pricing: Optional[Mapping[str, Any]], warnings: list) -> Dict[str, Decimal]:
    if not pricing:
        logger.warning("No pricing submitted with order; storing zeros")
        warnings.append("pricing_missing")
        pricing = {}
    return {
        "subtotal": to_money(pricing.get("subtotal"), ZERO),
        "subscription": to_money(pricing.get("appSubscription"), ZERO),
        "shipping": to_money(pricing.get("shipping"), ZERO),
        "tax": to_money(pricing.get("tax"), ZERO),
        "total": to_money(pricing.get("total"), ZERO),
    }


def _shipping_snapshot(checkout: Mapping[str, Any]) -> Dict[str, str]:
    keys = ("fullName", "email", "phoneNumber", "addressLine1", "addressLine2", "city", "state", "country", "postalCode")
    return {k: str(checkout.get(k) or "").strip() for k in keys}


def upsert_customer(checkout: Mapping[str, Any]) -> Customer:
    email = str(checkout.get("email") or "").strip().lower()
    if not email:
        raise errors.ValidationError("Email is required.")
    first, last = split_name(str(checkout.get("fullName") or ""))

    phone = None
    raw_phone = str(checkout.get("phoneNumber") or "").strip()
    if raw_phone:
        try:
            phone = to_e164(raw_phone)
        except ValueError:
            logger.info("Checkout phone %r is not a valid number; kept on the order only", raw_phone[:6])

    if phone and Customer.objects.filter(phone_number=phone).exclude(email=email).exists():
        phone = None  # belongs to someone else

    try:
        with transaction.atomic():
            customer = Customer.objects.filter(email=email).first()
            if customer is None:
                return Customer.objects.create(
                    email=email,
                    first_name=first[:80],
                    last_name=last[:80],
                    phone_number=phone,
                    email_verified=True,
                    mobile_verified=bool(phone),
                    status=Customer.Status.ACTIVE,
                )

            fields = []
            if first and not customer.first_name:
                customer.first_name = first[:80]
                fields.append("first_name")
            if last and not customer.last_name:
                customer.last_name = last[:80]
                fields.append("last_name")
            if not customer.email_verified:
                customer.email_verified = True
                fields.append("email_verified")
            if phone and not customer.phone_number:
                customer.phone_number = phone
                customer.mobile_verified = True
                fields += ["phone_number", "mobile_verified"]
            if fields:
                customer.save(update_fields=fields + ["updated_at"])
            return customer
    except IntegrityError:
        logger.exception("Customer upsert failed for order checkout")
        raise errors.Internal("User creation failed.")


# ---- side effects (logged, never raised) ----

def _record_payment(order: Order, payment_data: Mapping[str, Any], country: str) -> Tuple[Optional[Payment], bool]:
    try:
        return Payment.objects.get_or_create(
            order=order,
            defaults={
                "provider_payment_id": str(payment_data.get("paymentId") or ""),
                "amount": to_minor_units(order.total),
                "currency": currency_for(country),
                "status": Payment.Status.SUCCEEDED,
                "payment_method": str(payment_data.get("paymentMethod") or ""),
                "metadata": {
                    "voucherCode": order.voucher_code or None,
                    "voucherDiscount": float(order.voucher_discount) if order.voucher_discount is not None else None,
                    "voucherAmount": float(order.voucher_amount) if order.voucher_amount is not None else None,
                    "totalBeforeDiscount": (
                        float(order.total_before_discount) if order.total_before_discount is not None else None
                    ),
                },
            },
        )
    except Exception:
        logger.exception("Payment record failed for order %s", order.order_number)
        return None, False


def _redeem(order: Order, customer: Optional[Customer]) -> None:
    if not order.voucher_code:
        return
    try:
        redeem_voucher(
            order.voucher_code,
            order=order,
            discount_amount=order.voucher_amount or ZERO,
            customer=customer,
            email=order.email,
        )
    except Exception:
        logger.exception("Voucher tracking failed for order %s code=%s", order.order_number, order.voucher_code)


def _record_shipping(order: Order, customer: Customer, checkout: Mapping[str, Any]) -> None:
    try:
        ShippingAddress.objects.get_or_create(
            order=order,
            defaults={
                "customer": customer,
                "full_name": str(checkout.get("fullName") or "")[:160],
                "phone_number": str(checkout.get("phoneNumber") or "")[:32],
                "address_line1": str(checkout.get("addressLine1") or "")[:255],
                "address_line2": str(checkout.get("addressLine2") or "")[:255],
                "city": str(checkout.get("city") or "")[:120],
                "state": str(checkout.get("state") or "")[:120],
                "postal_code": str(checkout.get("postalCode") or "")[:20],
                "country": str(checkout.get("country") or "")[:64],
            },
        )
    except Exception:
        logger.exception("Shipping address record failed for order %s", order.order_number)


def _send_emails(order: Order) -> Optional[Dict[str, Any]]:
    try:
        return send_order_emails(order)
    except Exception:
        logger.exception("Order emails failed for %s", order.order_number)
        return None


# ---- confirmation ----

def _apply_payment(order: Order, payment_data: Mapping[str, Any]) -> None:
    order.status = Order.Status.CONFIRMED
    order.payment_method = str(payment_data.get("paymentMethod") or order.payment_method or "")[:32]
    order.payment_id = str(payment_data.get("paymentId") or order.payment_id or "")[:255]

    code = str(payment_data.get("voucherCode") or "").strip().upper()
    if code:
        order.voucher_code = code[:64]
    if payment_data.get("voucherDiscount") not in (None, ""):
        order.voucher_discount = to_money(payment_data["voucherDiscount"])

    voucher_amount = to_money(payment_data.get("voucherAmount"), ZERO)
    if voucher_amount > 0:
        base = order.total_before_discount if order.total_before_discount is not None else order.total
        order.total_before_discount = base
        order.voucher_amount = voucher_amount
        order.total = max(ZERO, base - voucher_amount)

    order.save()


def confirm_payment(
    order: Order,
    payment_data: Mapping[str, Any],
    *,
    customer: Optional[Customer] = None,
    country: Optional[str] = None,
) -> OrderResult:
    """Mark `order` confirmed, record the payment + voucher use, send emails."""
    already = order.status == Order.Status.CONFIRMED and order.payment_id and (
        order.payment_id == str(payment_data.get("paymentId") or "")
    )
    if already:
        logger.info("Order %s already confirmed with payment %s", order.order_number, order.payment_id)
        return OrderResult(order=order, created=False, payment=getattr(order, "payment", None))

    _apply_payment(order, payment_data)
    logger.info("Order %s confirmed (total=%s voucher=%s)", order.order_number, order.total, order.voucher_code or "-")

    payment, created = _record_payment(order, payment_data, country if country is not None else order.country)
    if created:
        _redeem(order, customer or order.customer)

    return OrderResult(order=order, created=False, payment=payment, email_results=_send_emails(order))


# ---- entry point ----

def process_order(
    card_config: Optional[Mapping[str, Any]],
    checkout_data: Optional[Mapping[str, Any]],
    pricing: Optional[Mapping[str, Any]] = None,
    payment_data: Optional[Mapping[str, Any]] = None,
    order_ref: Optional[str] = None,
) -> OrderResult:
    if not card_config or not checkout_data:
        raise errors.ValidationError("Missing required data")

    warnings: list = []
    customer = upsert_customer(checkout_data)
    country = str(checkout_data.get("country") or "")

    if order_ref:
        order = find_order(order_ref)
        if payment_data:
            result = confirm_payment(order, payment_data, customer=customer, country=country)
        else:
            result = OrderResult(order=order, created=False)
        _record_shipping(order, customer, checkout_data)
        return result

    snapshot = _pricing_snapshot(pricing, warnings)
    audit = audit_client_pricing(card_config, country, snapshot["total"], customer.is_founding_member)
    if not audit.matches:
        warnings.append("pricing_mismatch")

    plan_type = determine_plan_type(card_config, snapshot["total"])
    order = Order.objects.create(
        order_number=generate_unique_order_number(
            plan_type,
            exists=lambda n: Order.objects.filter(order_number=n).exists(),
        ),
        customer=customer,
        status=Order.Status.PENDING,
        plan_type=plan_type,
        card_config=dict(card_config),
        customer_name=str(checkout_data.get("fullName") or "")[:160],
        email=customer.email,
        phone_number=str(checkout_data.get("phoneNumber") or "")[:32],
        shipping=_shipping_snapshot(checkout_data),
        subtotal=snapshot["subtotal"],
        subscription_amount=snapshot["subscription"],
        shipping_amount=snapshot["shipping"],
        tax_amount=snapshot["tax"],
        total=snapshot["total"],
    )
    logger.info("Order %s created (%s, total=%s)", order.order_number, plan_type, order.total)

    _record_shipping(order, customer, checkout_data)

    if payment_data:
        result = confirm_payment(order, payment_data, customer=customer, country=country)
        result.created = True
        result.warnings = warnings
        return result

    return OrderResult(order=order, created=True, warnings=warnings)
