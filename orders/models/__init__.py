"""
Orders models package entrypoint.

This app uses a models/ package; Django discovers models through these imports.
"""

from .order import Order
from .payment import Payment
from .shipping import ShippingAddress
from .voucher import Voucher, VoucherUsage

__all__ = [
    "Order",
    "Payment",
    "ShippingAddress",
    "Voucher",
    "VoucherUsage",
]
