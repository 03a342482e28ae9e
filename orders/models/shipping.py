"""
orders.models.shipping

Shipping address captured at checkout, one per order.
"""

from __future__ import annotations

from django.db import models


class ShippingAddress(models.Model):
    order = models.OneToOneField("orders.Order", on_delete=models.CASCADE, related_name="shipping_address")
    customer = models.ForeignKey(
        "accounts.Customer",
        on_delete=models.CASCADE,
        related_name="shipping_addresses",
    )
    full_name = models.CharField(max_length=160, blank=True, default="")
    phone_number = models.CharField(max_length=32, blank=True, default="")
    address_line1 = models.CharField(max_length=255, blank=True, default="")
    address_line2 = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=120, blank=True, default="")
    state = models.CharField(max_length=120, blank=True, default="")
    postal_code = models.CharField(max_length=20, blank=True, default="")
    country = models.CharField(max_length=64, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.full_name}, {self.city} {self.country}".strip(", ")
