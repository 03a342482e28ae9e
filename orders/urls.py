from django.urls import path

from . import views

app_name = "orders"

urlpatterns = [
    path("orders/process-order", views.process_order, name="process_order"),
    path("orders/mine", views.CustomerOrderListView.as_view(), name="customer_orders"),
    path("pricing/quote", views.pricing_quote, name="pricing_quote"),
    path("vouchers/validate", views.validate_voucher, name="validate_voucher"),
    path("payments/create-intent", views.create_payment_intent, name="create_payment_intent"),
    path("payments/stripe/webhook", views.stripe_webhook, name="stripe_webhook"),
]
