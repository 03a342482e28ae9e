"""
orders.models.voucher

Voucher codes + their redemption log.

Codes are stored upper-case and matched case-insensitively. `used_count` is
only ever bumped together with a VoucherUsage insert (see orders.vouchers).
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.utils import timezone


class Voucher(models.Model):
    class DiscountType(models.TextChoices):
        FIXED = "fixed", "Fixed amount"
        PERCENTAGE = "percentage", "Percentage"

    code = models.CharField(max_length=64, unique=True)
    description = models.CharField(max_length=255, blank=True, default="")
    discount_type = models.CharField(max_length=16, choices=DiscountType.choices, default=DiscountType.FIXED)
    discount_value = models.DecimalField(max_digits=10, decimal_places=2)
    max_discount_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    min_order_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    usage_limit = models.PositiveIntegerField(null=True, blank=True, help_text="Blank = unlimited.")
    used_count = models.PositiveIntegerField(default=0)

    founding_members_only = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True, db_index=True)
    valid_from = models.DateTimeField(null=True, blank=True)
    valid_until = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("code",)

    def __str__(self) -> str:
        return self.code

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)

    def is_within_window(self, now=None) -> bool:
        now = now or timezone.now()
        if self.valid_from and now < self.valid_from:
            return False
        if self.valid_until and now > self.valid_until:
            return False
        return True

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and self.used_count >= self.usage_limit


class VoucherUsage(models.Model):
    voucher = models.ForeignKey(Voucher, on_delete=models.PROTECT, related_name="usages")
    customer = models.ForeignKey(
        "accounts.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="voucher_usages",
    )
    user_email = models.EmailField(blank=True, default="")
    order = models.ForeignKey("orders.Order", on_delete=models.PROTECT, related_name="voucher_usages")
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)
        constraints = [
            models.UniqueConstraint(fields=["voucher", "order"], name="uniq_voucher_usage_per_order"),
        ]

    def __str__(self) -> str:
        return f"{self.voucher.code} → {self.order_id}"
