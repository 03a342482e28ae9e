from django.test import SimpleTestCase, override_settings

from accounts.phone import mask_identifier, normalize_email, to_e164


class PhoneNormalizationTests(SimpleTestCase):
    def test_national_number_gets_default_country_code(self):
        self.assertEqual(to_e164("98765 43210"), "+919876543210")

    def test_trunk_zero_is_dropped(self):
        self.assertEqual(to_e164("098765-43210"), "+919876543210")

    def test_international_forms(self):
        self.assertEqual(to_e164("+1 (415) 555-0100"), "+14155550100")
        self.assertEqual(to_e164("0044 20 7946 0958"), "+442079460958")

    @override_settings(DEFAULT_PHONE_COUNTRY_CODE="1")
    def test_default_country_code_from_settings(self):
        self.assertEqual(to_e164("415 555 0100"), "+14155550100")

    def test_garbage_is_rejected(self):
        for raw in ("", "abc", "+12", "12345"):
            with self.assertRaises(ValueError):
                to_e164(raw)

    def test_email_normalization(self):
        self.assertEqual(normalize_email(" Ana@Example.com "), "ana@example.com")
        with self.assertRaises(ValueError):
            normalize_email("ana@")

    def test_mask_identifier(self):
        self.assertEqual(mask_identifier("ana@example.com"), "an***@example.com")
        self.assertEqual(mask_identifier("+919876543210"), "+91***10")
