"""
orders.models.payment

One Payment per confirmed order. Amounts are in the smallest currency unit.
Rows are written once and never edited.
"""

from __future__ import annotations

from django.db import models


class Payment(models.Model):
    class Status(models.TextChoices):
        SUCCEEDED = "succeeded", "Succeeded"
        FAILED = "failed", "Failed"
        REFUNDED = "refunded", "Refunded"

    order = models.OneToOneField("orders.Order", on_delete=models.PROTECT, related_name="payment")
    provider_payment_id = models.CharField(max_length=255, blank=True, default="", db_index=True)
    amount = models.IntegerField(help_text="Amount in the smallest currency unit (e.g. cents / paise).")
    currency = models.CharField(max_length=8)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.SUCCEEDED)
    payment_method = models.CharField(max_length=32, blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self) -> str:
        return f"Payment({self.provider_payment_id or self.pk}) {self.amount} {self.currency}"
