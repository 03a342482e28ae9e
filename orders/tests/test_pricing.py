from decimal import Decimal as D

from django.test import SimpleTestCase

from orders.pricing import (
    audit_client_pricing,
    calculate_discount_amount,
    calculate_pricing,
    format_price,
    order_amount_for_voucher,
    tax_rate_for,
    validate_pricing_data,
)


class CalculatePricingTests(SimpleTestCase):
    def test_pvc_card_in_india(self):
        p = calculate_pricing({"baseMaterial": "pvc", "quantity": 1}, "IN")

        self.assertEqual(p.subtotal, D("69.00"))
        self.assertEqual(p.app_subscription_price, D("120.00"))
        self.assertEqual(p.tax_amount, D("12.42"))
        self.assertEqual(p.total_before_discount, D("201.42"))
        self.assertEqual(p.total_without_app_subscription, D("81.42"))

    def test_founding_member_skips_subscription(self):
        p = calculate_pricing({"baseMaterial": "pvc", "quantity": 1}, "IN", is_founding_member=True)
        self.assertEqual(p.app_subscription_price, D("0.00"))
        self.assertEqual(p.total_before_discount, D("81.42"))

    def test_subscription_scales_with_quantity_for_physical_cards(self):
        p = calculate_pricing({"baseMaterial": "metal", "quantity": 2}, "US")

        self.assertEqual(p.subtotal, D("198.00"))
        self.assertEqual(p.app_subscription_price, D("240.00"))
        # subscription is not taxed
        self.assertEqual(p.tax_amount, D("15.84"))
        self.assertEqual(p.total_before_discount, D("453.84"))

    def test_digital_subscription_is_charged_once(self):
        p = calculate_pricing({"baseMaterial": "digital", "quantity": 3}, "ZZ")

        self.assertEqual(p.subtotal, D("177.00"))
        self.assertEqual(p.app_subscription_price, D("120.00"))
        self.assertEqual(p.tax_rate, D("0.05"))
        self.assertEqual(p.tax_amount, D("8.85"))
        self.assertEqual(p.total_before_discount, D("305.85"))

    def test_unknown_material_and_bad_quantity_fall_back(self):
        p = calculate_pricing({"baseMaterial": "gold", "quantity": "lots"}, "IN")
        self.assertEqual(p.material, "pvc")
        self.assertEqual(p.material_price, D("69.00"))
        self.assertEqual(p.quantity, 1)

    def test_legacy_material_key(self):
        p = calculate_pricing({"material": "Wood"}, "GB")
        self.assertEqual(p.material, "wood")
        self.assertEqual(p.tax_amount, D("15.80"))

    def test_subscription_can_be_excluded(self):
        p = calculate_pricing({"baseMaterial": "pvc"}, "IN", include_app_subscription=False)
        self.assertEqual(p.total_before_discount, p.total_without_app_subscription)

    def test_voucher_amount_always_includes_subscription(self):
        self.assertEqual(order_amount_for_voucher({"baseMaterial": "pvc"}, "IN"), D("201.42"))

    def test_tax_rate_lookup_is_case_insensitive(self):
        self.assertEqual(tax_rate_for(" ca "), D("0.13"))
        self.assertEqual(tax_rate_for(None), D("0.05"))

    def test_as_dict_uses_camel_case(self):
        data = calculate_pricing({"baseMaterial": "pvc"}, "IN").as_dict()
        self.assertEqual(data["totalBeforeDiscount"], 201.42)
        self.assertEqual(data["appSubscriptionPrice"], 120.0)


class DiscountTests(SimpleTestCase):
    def test_percentage(self):
        self.assertEqual(calculate_discount_amount("200", "percentage", "10"), D("20.00"))

    def test_percentage_capped_by_max(self):
        self.assertEqual(calculate_discount_amount("201.42", "percentage", "10", "15"), D("15.00"))

    def test_zero_max_means_no_cap(self):
        self.assertEqual(calculate_discount_amount("200", "percentage", "10", "0"), D("20.00"))
        self.assertEqual(calculate_discount_amount("200", "fixed", "30", 0), D("30.00"))

    def test_fixed_never_exceeds_order_amount(self):
        self.assertEqual(calculate_discount_amount("81.42", "fixed", "120"), D("81.42"))

    def test_zero_or_negative_inputs(self):
        self.assertEqual(calculate_discount_amount("0", "fixed", "10"), D("0.00"))
        self.assertEqual(calculate_discount_amount("50", "fixed", "-5"), D("0.00"))

    def test_rounding_half_up(self):
        # 33.35 × 15% = 5.0025
        self.assertEqual(calculate_discount_amount("33.35", "percentage", "15"), D("5.00"))
        # 10.10 × 5% = 0.505
        self.assertEqual(calculate_discount_amount("10.10", "percentage", "5"), D("0.51"))


class HelperTests(SimpleTestCase):
    def test_format_price(self):
        self.assertEqual(format_price(201.42), "$201.42")
        self.assertEqual(format_price("5"), "$5.00")
        self.assertEqual(format_price(None), "$0.00")

    def test_validate_pricing_data(self):
        good = {"materialPrice": 69, "quantity": 1, "subtotal": 69, "taxAmount": 12.42, "totalBeforeDiscount": 201.42}
        self.assertTrue(validate_pricing_data(good))
        self.assertFalse(validate_pricing_data(None))
        self.assertFalse(validate_pricing_data({**good, "subtotal": -1}))
        self.assertFalse(validate_pricing_data({k: v for k, v in good.items() if k != "taxAmount"}))
        self.assertFalse(validate_pricing_data({**good, "quantity": "two"}))


class AuditTests(SimpleTestCase):
    def test_matching_total(self):
        with self.assertNoLogs("orders.pricing", "WARNING"):
            audit = audit_client_pricing({"baseMaterial": "pvc"}, "IN", "201.42")
        self.assertTrue(audit.matches)

    def test_total_without_subscription_is_accepted(self):
        self.assertTrue(audit_client_pricing({"baseMaterial": "pvc"}, "IN", 81.42).matches)

    def test_low_total_for_physical_card_is_logged(self):
        with self.assertLogs("orders.pricing", "WARNING") as logs:
            audit = audit_client_pricing({"baseMaterial": "metal"}, "US", 10)
        self.assertFalse(audit.matches)
        self.assertIn("Suspiciously low", logs.output[0])

    def test_mismatch_is_logged_not_raised(self):
        with self.assertLogs("orders.pricing", "WARNING") as logs:
            audit = audit_client_pricing({"baseMaterial": "pvc"}, "IN", "garbage")
        self.assertEqual(audit.submitted_total, D("0"))
        self.assertEqual(len(logs.output), 1)
