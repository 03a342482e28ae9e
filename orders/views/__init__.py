"""
Orders views package.

process_order     POST /api/orders/process-order
customer_orders   GET  /api/orders/mine
catalog           POST /api/pricing/quote, POST /api/vouchers/validate
payments          POST /api/payments/create-intent
stripe_webhook    POST /api/payments/stripe/webhook
"""

from .catalog import pricing_quote, validate_voucher
from .customer_orders import CustomerOrderListView
from .payments import create_payment_intent
from .process_order import process_order
from .stripe_webhook import stripe_webhook

__all__ = [
    "CustomerOrderListView",
    "create_payment_intent",
    "pricing_quote",
    "process_order",
    "stripe_webhook",
    "validate_voucher",
]
