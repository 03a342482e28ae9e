"""
orders.vouchers

Voucher evaluation (read-only) and redemption (after payment).

evaluate_voucher never raises: unknown codes, rule failures and lookup errors
all come back as `valid=False` with a message, so a bad code can never block
checkout. redeem_voucher bumps `used_count` (only while the voucher is active
and under its usage limit) and writes the VoucherUsage row in the same
transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from django.db import transaction
from django.db.models import F, Q

from .models import Order, Voucher, VoucherUsage
from .pricing import calculate_discount_amount, format_price, to_money

logger = logging.getLogger(__name__)

# Auto-applied at checkout for founding members (covers the app subscription).
FOUNDING_MEMBER_VOUCHER = "BONDS N BEYONDFM"


@dataclass(frozen=True)
class VoucherEvaluation:
    valid: bool
    code: str
    message: str
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = None
    discount_amount: Decimal = Decimal("0.00")

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"valid": self.valid, "message": self.message}
        if self.valid:
            data["voucher"] = {
                "code": self.code,
                "discount_type": self.discount_type,
                "discount_value": float(self.discount_value or 0),
                "discount_amount": float(self.discount_amount),
            }
        return data


def _invalid(code: str, message: str) -> VoucherEvaluation:
    return VoucherEvaluation(valid=False, code=code, message=message)


def find_voucher(code: str) -> Optional[Voucher]:
    code = (code or "").strip()
    if not code:
        return None
    return Voucher.objects.filter(code__iexact=code).first()


def evaluate_voucher(
    code: str,
    order_amount: Any,
    email: Optional[str] = None,
    is_founding_member: bool = False,
) -> VoucherEvaluation:
    normalized = (code or "").strip().upper()
    if not normalized:
        return _invalid(normalized, "Please enter a voucher code.")

    try:
        voucher = find_voucher(normalized)
        if voucher is None:
            return _invalid(normalized, "Invalid voucher code.")
        if not voucher.is_active:
            return _invalid(normalized, "This voucher is no longer active.")
        if not voucher.is_within_window():
            return _invalid(normalized, "This voucher has expired or is not yet valid.")
        if voucher.is_exhausted:
            return _invalid(normalized, "This voucher has reached its usage limit.")
        if voucher.founding_members_only and not is_founding_member:
            return _invalid(normalized, "This voucher is only available to founding members.")

        amount = to_money(order_amount, Decimal("0"))
        if amount < voucher.min_order_amount:
            return _invalid(
                normalized,
                f"Minimum order amount for this voucher is {format_price(voucher.min_order_amount)}.",
            )

        discount = calculate_discount_amount(
            amount,
            voucher.discount_type,
            voucher.discount_value,
            voucher.max_discount_amount,
        )
    except Exception:
        logger.exception("Voucher evaluation failed for code=%s", normalized)
        return _invalid(normalized, "Unable to validate voucher right now.")

    return VoucherEvaluation(
        valid=True,
        code=voucher.code,
        message=f"Voucher applied: {format_price(discount)} off.",
        discount_type=voucher.discount_type,
        discount_value=voucher.discount_value,
        discount_amount=discount,
    )


def redeem_voucher(
    code: str,
    *,
    order: Order,
    discount_amount: Any,
    customer=None,
    email: str = "",
) -> Optional[VoucherUsage]:
    """
    Record one use of `code` against `order`. Returns None for unknown or
    inactive codes and for vouchers already at their usage limit.
    """
    voucher = find_voucher(code)
    if voucher is None:
        logger.warning("Voucher %s not found during redemption for order %s", code, order.order_number)
        return None

    with transaction.atomic():
        # The limit and active flag are re-checked in the UPDATE itself, so two
        # concurrent redemptions cannot both take the last use.
        bumped = (
            Voucher.objects.filter(pk=voucher.pk, is_active=True)
            .filter(Q(usage_limit__isnull=True) | Q(used_count__lt=F("usage_limit")))
            .update(used_count=F("used_count") + 1)
        )
        if not bumped:
            logger.warning(
                "Voucher %s not redeemed on order %s: inactive or usage limit reached",
                voucher.code,
                order.order_number,
            )
            return None
        usage = VoucherUsage.objects.create(
            voucher=voucher,
            customer=customer,
            user_email=email or "",
            order=order,
            discount_amount=to_money(discount_amount, Decimal("0")),
        )

    logger.info("Voucher %s redeemed on order %s (%s)", voucher.code, order.order_number, usage.discount_amount)
    return usage
