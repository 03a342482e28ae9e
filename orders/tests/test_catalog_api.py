import json
from decimal import Decimal as D

from django.test import Client, TestCase

from accounts.models import Customer
from accounts.sessions import create_session
from orders.models import Voucher


class CatalogApiTests(TestCase):
    def setUp(self):
        self.client = Client()

    def _post(self, path, body):
        return self.client.post(path, data=json.dumps(body), content_type="application/json")

    def test_health(self):
        r = self.client.get("/api/health/")
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.json()["success"])

    def test_quote(self):
        r = self._post("/api/pricing/quote", {"cardConfig": {"baseMaterial": "pvc", "quantity": 1}, "country": "IN"})

        self.assertEqual(r.status_code, 200, r.content)
        data = r.json()
        self.assertEqual(data["pricing"]["totalBeforeDiscount"], 201.42)
        self.assertEqual(data["display"]["total"], "$201.42")
        self.assertEqual(data["display"]["tax"], "$12.42")

    def test_quote_rejects_bad_quantity(self):
        r = self._post("/api/pricing/quote", {"cardConfig": {"baseMaterial": "pvc", "quantity": 0}, "country": "IN"})
        self.assertEqual(r.status_code, 400)
        self.assertIn("cardConfig", r.json()["errors"])

    def test_signed_in_founding_member_flag_wins(self):
        customer = Customer.objects.create(
            email="ana@example.com", status=Customer.Status.ACTIVE, is_founding_member=True,
        )
        self.client.cookies["session"] = create_session(customer).token

        r = self._post("/api/pricing/quote", {"cardConfig": {"baseMaterial": "pvc"}, "country": "IN"})
        self.assertEqual(r.json()["pricing"]["totalBeforeDiscount"], 81.42)

    def test_validate_voucher_against_computed_amount(self):
        Voucher.objects.create(code="WELCOME10", discount_type="percentage", discount_value=D("10"))

        r = self._post(
            "/api/vouchers/validate",
            {"code": "welcome10", "cardConfig": {"baseMaterial": "pvc"}, "country": "IN"},
        )

        data = r.json()
        self.assertTrue(data["valid"])
        self.assertEqual(data["orderAmount"], 201.42)
        self.assertEqual(data["voucher"]["discount_amount"], 20.14)

    def test_validate_unknown_voucher_is_not_an_error(self):
        r = self._post("/api/vouchers/validate", {"code": "NOPE", "orderAmount": 100})
        self.assertEqual(r.status_code, 200)
        self.assertFalse(r.json()["valid"])

    def test_validate_needs_an_amount_source(self):
        r = self._post("/api/vouchers/validate", {"code": "NOPE"})
        self.assertEqual(r.status_code, 400)
