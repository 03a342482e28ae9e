"""
orders.models.order

Card order persistence.

Pricing is stored as a snapshot of what the customer was shown at checkout
(subtotal / subscription / shipping / tax / total) plus the voucher applied on
payment confirmation. Orders are never deleted by the checkout flow.

========= CHANGE LOG =========
2026-10-12 • ADD: emails_sent tracking (confirmation / receipt).  # CHANGED:
2026-10-05 • ADD: voucher + payment fields for the confirmation update path.
2026-10-03 • ADD: Order model.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models


class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        CANCELLED = "cancelled", "Cancelled"

    class PlanType(models.TextChoices):
        DIGITAL_ONLY = "digital-only", "Digital only"
        DIGITAL_PROFILE_APP = "digital-profile-app", "Digital profile + app"
        NFC_CARD_FULL = "nfc-card-full", "NFC card (full)"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=40, unique=True)

    customer = models.ForeignKey(
        "accounts.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING, db_index=True)
    plan_type = models.CharField(max_length=32, choices=PlanType.choices, default=PlanType.NFC_CARD_FULL)

    # ---- what was ordered ----
    card_config = models.JSONField(default=dict, help_text="Material, quantity, color, card text, ...")
    customer_name = models.CharField(max_length=160, blank=True, default="")
    email = models.EmailField(db_index=True)
    phone_number = models.CharField(max_length=32, blank=True, default="")
    shipping = models.JSONField(default=dict, blank=True, help_text="Address snapshot at checkout.")

    # ---- pricing snapshot ----
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    subscription_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    shipping_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total_before_discount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    voucher_code = models.CharField(max_length=64, blank=True, default="")
    voucher_discount = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        help_text="Voucher discount value as advertised (percent or amount).",
    )
    voucher_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    # ---- payment ----
    payment_method = models.CharField(max_length=32, blank=True, default="")
    payment_id = models.CharField(max_length=255, blank=True, default="", db_index=True)

    emails_sent = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["email"]),
        ]

    def __str__(self) -> str:
        return f"Order({self.order_number})<{self.status}>"

    @property
    def material(self) -> str:
        return str((self.card_config or {}).get("baseMaterial") or (self.card_config or {}).get("material") or "")

    @property
    def country(self) -> str:
        return str((self.shipping or {}).get("country") or "")

    def pricing_dict(self) -> dict:
        data = {
            "subtotal": float(self.subtotal),
            "appSubscription": float(self.subscription_amount),
            "shipping": float(self.shipping_amount),
            "tax": float(self.tax_amount),
            "total": float(self.total),
        }
        if self.total_before_discount is not None:
            data["totalBeforeDiscount"] = float(self.total_before_discount)
        if self.voucher_amount is not None:
            data["voucherAmount"] = float(self.voucher_amount)
        return data

    def as_public_dict(self) -> dict:
        return {
            "id": str(self.id),
            "orderNumber": self.order_number,
            "status": self.status,
            "planType": self.plan_type,
            "customerName": self.customer_name,
            "email": self.email,
            "phoneNumber": self.phone_number,
            "cardConfig": self.card_config,
            "shipping": self.shipping,
            "pricing": self.pricing_dict(),
            "voucherCode": self.voucher_code or None,
            "paymentMethod": self.payment_method or None,
            "paymentId": self.payment_id or None,
            "emailsSent": self.emails_sent,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
