"""
orders.pricing

Card pricing (pure, deterministic, Decimal arithmetic).

    subtotal              = material price × quantity
    app subscription      = 120 × quantity (digital: 120 once), 0 for founding members
    tax                   = subtotal × country rate   (subscription is never taxed)
    total before discount = subtotal + subscription + tax + shipping

The checkout UI computes the same numbers client-side and submits them with the
order; `audit_client_pricing` recomputes them and only logs disagreements.

========= CHANGE LOG =========
2026-10-19 • FIX: max_discount_amount of 0 is treated as no cap.  # CHANGED:
2026-10-12 • ADD: audit_client_pricing (advisory, never blocks an order).
2026-10-05 • ADD: calculate_discount_amount shared with voucher evaluation.
2026-10-03 • ADD: PricingBreakdown + material / tax tables.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

MATERIAL_PRICES: Dict[str, Decimal] = {
    "pvc": Decimal("69"),
    "metal": Decimal("99"),
    "wood": Decimal("79"),
    "digital": Decimal("59"),
}
DEFAULT_MATERIAL = "pvc"
DIGITAL_MATERIAL = "digital"

APP_SUBSCRIPTION_PRICE = Decimal("120")

TAX_RATES: Dict[str, Decimal] = {
    "IN": Decimal("0.18"),
    "US": Decimal("0.08"),
    "CA": Decimal("0.13"),
    "GB": Decimal("0.20"),
    "AU": Decimal("0.10"),
}
DEFAULT_TAX_RATE = Decimal("0.05")

SHIPPING_COST = Decimal("0")

# Physical cards priced below this were almost certainly mis-computed client-side.
MIN_EXPECTED_TOTAL = Decimal("50")

DISCOUNT_FIXED = "fixed"
DISCOUNT_PERCENTAGE = "percentage"


def to_money(value: Any, default: Optional[Decimal] = None) -> Decimal:
    """Coerce a number / numeric string to a 2-dp Decimal."""
    if value is None or value == "":
        if default is None:
            raise ValueError("amount is required")
        return default
    if isinstance(value, bool):
        raise ValueError(f"not an amount: {value!r}")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"not an amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"not an amount: {value!r}")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def normalize_material(material: Optional[str]) -> str:
    m = (material or "").strip().lower()
    return m if m in MATERIAL_PRICES else DEFAULT_MATERIAL


def material_of(card_config: Mapping[str, Any]) -> str:
    """Material key of a card config (`baseMaterial`, or `material` from older clients)."""
    return normalize_material(card_config.get("baseMaterial") or card_config.get("material"))


def quantity_of(card_config: Mapping[str, Any]) -> int:
    try:
        qty = int(card_config.get("quantity") or 1)
    except (TypeError, ValueError):
        return 1
    return qty if qty >= 1 else 1


def tax_rate_for(country: Optional[str]) -> Decimal:
    return TAX_RATES.get((country or "").strip().upper(), DEFAULT_TAX_RATE)


@dataclass(frozen=True)
class PricingBreakdown:
    material: str
    material_price: Decimal
    quantity: int
    subtotal: Decimal
    app_subscription_price: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    total_before_discount: Decimal
    total_without_app_subscription: Decimal

    def as_dict(self) -> Dict[str, Any]:
        return {
            "material": self.material,
            "materialPrice": float(self.material_price),
            "quantity": self.quantity,
            "subtotal": float(self.subtotal),
            "appSubscriptionPrice": float(self.app_subscription_price),
            "taxRate": float(self.tax_rate),
            "taxAmount": float(self.tax_amount),
            "shippingCost": float(self.shipping_cost),
            "totalBeforeDiscount": float(self.total_before_discount),
            "totalWithoutAppSubscription": float(self.total_without_app_subscription),
        }


def calculate_pricing(
    card_config: Mapping[str, Any],
    country: Optional[str],
    is_founding_member: bool = False,
    include_app_subscription: bool = True,
) -> PricingBreakdown:
    material = material_of(card_config)
    price = MATERIAL_PRICES[material]
    qty = quantity_of(card_config)

    subtotal = (price * qty).quantize(CENTS)

    if is_founding_member or not include_app_subscription:
        subscription = Decimal("0.00")
    elif material == DIGITAL_MATERIAL:
        subscription = APP_SUBSCRIPTION_PRICE.quantize(CENTS)
    else:
        subscription = (APP_SUBSCRIPTION_PRICE * qty).quantize(CENTS)

    rate = tax_rate_for(country)
    tax = (subtotal * rate).quantize(CENTS, rounding=ROUND_HALF_UP)
    shipping = SHIPPING_COST.quantize(CENTS)

    return PricingBreakdown(
        material=material,
        material_price=price.quantize(CENTS),
        quantity=qty,
        subtotal=subtotal,
        app_subscription_price=subscription,
        tax_rate=rate,
        tax_amount=tax,
        shipping_cost=shipping,
        total_before_discount=subtotal + subscription + tax + shipping,
        total_without_app_subscription=subtotal + tax + shipping,
    )


def order_amount_for_voucher(
    card_config: Mapping[str, Any],
    country: Optional[str],
    is_founding_member: bool = False,
) -> Decimal:
    """Amount a voucher is evaluated against (subscription always included)."""
    return calculate_pricing(card_config, country, is_founding_member, True).total_before_discount


REQUIRED_PRICING_FIELDS = ("materialPrice", "quantity", "subtotal", "taxAmount", "totalBeforeDiscount")


def validate_pricing_data(data: Optional[Mapping[str, Any]]) -> bool:
    if not data:
        return False
    for field in REQUIRED_PRICING_FIELDS:
        if field not in data:
            return False
        try:
            if to_money(data[field]) < 0:
                return False
        except ValueError:
            return False
    return True


def format_price(amount: Any) -> str:
    return f"${to_money(amount, Decimal('0')):.2f}"


def calculate_discount_amount(
    order_amount: Any,
    discount_type: str,
    discount_value: Any,
    max_discount_amount: Any = None,
) -> Decimal:
    amount = to_money(order_amount, Decimal("0"))
    value = to_money(discount_value, Decimal("0"))
    if amount <= 0 or value <= 0:
        return Decimal("0.00")

    if discount_type == DISCOUNT_PERCENTAGE:
        discount = amount * value / Decimal("100")
    else:
        discount = value

    # A zero or negative cap means "no cap".
    cap = to_money(max_discount_amount, Decimal("0"))
    if cap > 0:
        discount = min(discount, cap)

    discount = min(discount, amount)
    return max(discount, Decimal("0")).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingAudit:
    submitted_total: Decimal
    expected_total: Decimal
    expected_total_without_subscription: Decimal
    matches: bool


def audit_client_pricing(
    card_config: Mapping[str, Any],
    country: Optional[str],
    submitted_total: Any,
    is_founding_member: bool = False,
) -> PricingAudit:
    """Recompute the price and log when the client's total disagrees. Never raises."""
    try:
        total = to_money(submitted_total, Decimal("0"))
    except ValueError:
        total = Decimal("0")

    pricing = calculate_pricing(card_config, country, is_founding_member)
    expected = {pricing.total_before_discount, pricing.total_without_app_subscription}
    matches = total in expected

    if pricing.material != DIGITAL_MATERIAL and total < MIN_EXPECTED_TOTAL:
        logger.warning(
            "Suspiciously low total for physical card: submitted=%s expected=%s material=%s qty=%s country=%s",
            total, pricing.total_before_discount, pricing.material, pricing.quantity, country,
        )
    elif not matches:
        logger.warning(
            "Client pricing mismatch: submitted=%s expected=%s (without subscription %s) country=%s",
            total, pricing.total_before_discount, pricing.total_without_app_subscription, country,
        )

    return PricingAudit(
        submitted_total=total,
        expected_total=pricing.total_before_discount,
        expected_total_without_subscription=pricing.total_without_app_subscription,
        matches=matches,
    )
