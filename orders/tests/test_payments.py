"""
Stripe PaymentIntent creation + webhook confirmation.
Stripe calls are patched; no network.
"""

from __future__ import annotations

import json
from decimal import Decimal as D
from unittest import mock

import stripe
from django.core import mail
from django.core.cache import cache
from django.test import Client, TestCase, override_settings

from accounts.models import Customer
from orders.models import Order, Payment, Voucher, VoucherUsage


def _order(**kwargs):
    customer = Customer.objects.create(email="ana@example.com", status=Customer.Status.ACTIVE)
    defaults = {
        "order_number": "NFC-261019-ABCDE",
        "customer": customer,
        "email": "ana@example.com",
        "shipping": {"country": "US"},
        "total": D("194.52"),
    }
    defaults.update(kwargs)
    return Order.objects.create(**defaults)


class CreatePaymentIntentTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = Client()
        self.order = _order()

    def _post(self, body):
        return self.client.post("/api/payments/create-intent", data=json.dumps(body), content_type="application/json")

    @mock.patch("stripe.PaymentIntent.create")
    def test_amount_comes_from_stored_order(self, create):
        create.return_value = mock.Mock(id="pi_123", client_secret="pi_123_secret_abc")

        r = self._post({"orderId": self.order.order_number, "amount": 1})

        self.assertEqual(r.status_code, 200, r.content)
        data = r.json()
        self.assertEqual(data["clientSecret"], "pi_123_secret_abc")
        self.assertEqual(data["amount"], 19452)
        self.assertEqual(data["currency"], "USD")
        self.assertIsNone(data["voucher"])

        kwargs = create.call_args.kwargs
        self.assertEqual(kwargs["amount"], 19452)
        self.assertEqual(kwargs["currency"], "usd")
        self.assertEqual(kwargs["metadata"]["order_id"], str(self.order.pk))
        self.assertTrue(kwargs["idempotency_key"].startswith("sf_pi_"))

    @mock.patch("stripe.PaymentIntent.create")
    def test_voucher_is_reevaluated_server_side(self, create):
        create.return_value = mock.Mock(id="pi_124", client_secret="secret")
        Voucher.objects.create(code="FLAT25", discount_value=D("25"))

        r = self._post({"orderId": str(self.order.pk), "voucherCode": "flat25"})

        self.assertEqual(r.status_code, 200, r.content)
        self.assertEqual(r.json()["amount"], 16952)
        self.assertEqual(r.json()["voucher"]["discount_amount"], 25.0)
        metadata = create.call_args.kwargs["metadata"]
        self.assertEqual(metadata["voucher_code"], "FLAT25")
        self.assertEqual(metadata["voucher_amount"], "25.00")
        self.assertEqual(metadata["total_before_discount"], "194.52")

    @mock.patch("stripe.PaymentIntent.create")
    def test_invalid_voucher_is_rejected(self, create):
        r = self._post({"orderId": str(self.order.pk), "voucherCode": "NOPE"})
        self.assertEqual(r.status_code, 400)
        create.assert_not_called()

    @mock.patch("stripe.PaymentIntent.create")
    def test_confirmed_order_is_conflict(self, create):
        Order.objects.filter(pk=self.order.pk).update(status=Order.Status.CONFIRMED)
        r = self._post({"orderId": str(self.order.pk)})
        self.assertEqual(r.status_code, 409)
        create.assert_not_called()

    def test_unknown_order_is_404(self):
        self.assertEqual(self._post({"orderId": "NFC-000000-ZZZZZ"}).status_code, 404)

    @override_settings(STRIPE_SECRET_KEY="")
    def test_missing_key_is_503(self):
        self.assertEqual(self._post({"orderId": str(self.order.pk)}).status_code, 503)

    @mock.patch("stripe.PaymentIntent.create", side_effect=stripe.StripeError("card_declined"))
    def test_stripe_error_is_503(self, create):
        r = self._post({"orderId": str(self.order.pk)})
        self.assertEqual(r.status_code, 503)

    @override_settings(PAYMENT_RATE_LIMIT_PER_MIN=1)
    @mock.patch("stripe.PaymentIntent.create")
    def test_rate_limited_per_ip(self, create):
        create.return_value = mock.Mock(id="pi_1", client_secret="s")
        self.assertEqual(self._post({"orderId": str(self.order.pk)}).status_code, 200)
        self.assertEqual(self._post({"orderId": str(self.order.pk)}).status_code, 429)


class StripeWebhookTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = Client()
        self.order = _order()

    def _event(self, event_type="payment_intent.succeeded", **metadata):
        meta = {"order_id": str(self.order.pk), "order_number": self.order.order_number}
        meta.update(metadata)
        return {
            "id": "evt_1",
            "type": event_type,
            "data": {"object": {"id": "pi_555", "metadata": meta}},
        }

    def _deliver(self, event):
        with mock.patch("stripe.Webhook.construct_event", return_value=event):
            return self.client.post(
                "/api/payments/stripe/webhook",
                data=json.dumps(event),
                content_type="application/json",
                HTTP_STRIPE_SIGNATURE="t=1,v1=abc",
            )

    def test_succeeded_confirms_order(self):
        r = self._deliver(self._event())

        self.assertEqual(r.status_code, 200, r.content)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.CONFIRMED)
        self.assertEqual(self.order.payment_id, "pi_555")
        self.assertEqual(self.order.payment_method, "card")
        self.assertEqual(Payment.objects.get().amount, 19452)
        self.assertEqual(Payment.objects.get().currency, "USD")
        self.assertEqual(len(mail.outbox), 2)

    def test_voucher_from_metadata_is_applied_once(self):
        Voucher.objects.create(code="FLAT25", discount_value=D("25"))
        event = self._event(voucher_code="FLAT25", voucher_amount="25.00", total_before_discount="194.52")

        self._deliver(event)
        self._deliver(event)  # Stripe re-delivery

        self.order.refresh_from_db()
        self.assertEqual(self.order.total, D("169.52"))
        self.assertEqual(self.order.total_before_discount, D("194.52"))
        self.assertEqual(VoucherUsage.objects.count(), 1)
        self.assertEqual(Voucher.objects.get().used_count, 1)
        self.assertEqual(len(mail.outbox), 2)

    def test_other_events_are_ignored(self):
        r = self._deliver(self._event("charge.refunded"))
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.json()["ignored"])
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.PENDING)

    def test_unknown_order_is_acknowledged(self):
        r = self._deliver(self._event(order_id="", order_number="NFC-000000-ZZZZZ"))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["reason"], "order_not_found")

    def test_missing_signature_header(self):
        r = self.client.post("/api/payments/stripe/webhook", data="{}", content_type="application/json")
        self.assertEqual(r.status_code, 400)

    def test_bad_signature(self):
        with mock.patch(
            "stripe.Webhook.construct_event",
            side_effect=stripe.SignatureVerificationError("bad", "t=1,v1=abc"),
        ):
            r = self.client.post(
                "/api/payments/stripe/webhook",
                data="{}",
                content_type="application/json",
                HTTP_STRIPE_SIGNATURE="t=1,v1=abc",
            )
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["code"], "bad_signature")

    @override_settings(STRIPE_WEBHOOK_SECRET="")
    def test_missing_secret_is_500(self):
        r = self._deliver(self._event())
        self.assertEqual(r.status_code, 500)
