"""
HTTP tests for /api/auth/*: send-otp → verify → session cookie → me → logout.
"""

from __future__ import annotations

import json

from django.core.cache import cache
from django.test import Client, TestCase, override_settings

from accounts.models import Customer, CustomerSession, OtpRecord


class AuthApiTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = Client()

    def _post(self, path, body):
        return self.client.post(path, data=json.dumps(body), content_type="application/json")

    def _code_for(self, identifier):
        return OtpRecord.objects.get(identifier=identifier).code

    # ---- send-otp ----

    def test_registration_send_normalizes_email(self):
        r = self._post("/api/auth/send-otp", {"email": "  Ana@Example.COM ", "firstName": "Ana", "lastName": "Silva"})

        self.assertEqual(r.status_code, 200, r.content)
        data = r.json()
        self.assertTrue(data["success"])
        self.assertEqual(data["type"], "registration")
        self.assertEqual(data["identifier"], "ana@example.com")
        self.assertNotIn("devOtp", data)  # DEBUG is off

        record = OtpRecord.objects.get(identifier="ana@example.com")
        self.assertEqual(record.temp_user_data["firstName"], "Ana")

    def test_registration_requires_names(self):
        r = self._post("/api/auth/send-otp", {"email": "ana@example.com"})
        self.assertEqual(r.status_code, 400)
        self.assertFalse(r.json()["success"])

    def test_registration_rejects_bad_email(self):
        r = self._post("/api/auth/send-otp", {"email": "not-an-email", "firstName": "A", "lastName": "B"})
        self.assertEqual(r.status_code, 400)

    def test_resend_within_cooldown_returns_429(self):
        body = {"email": "ana@example.com", "firstName": "Ana", "lastName": "Silva"}
        self.assertEqual(self._post("/api/auth/send-otp", body).status_code, 200)

        r = self._post("/api/auth/send-otp", body)
        self.assertEqual(r.status_code, 429)
        data = r.json()
        self.assertTrue(data["rateLimited"])
        self.assertEqual(data["code"], "rate_limited")

    def test_login_for_unknown_account_is_404(self):
        r = self._post("/api/auth/send-otp", {"emailOrPhone": "ghost@example.com"})
        self.assertEqual(r.status_code, 404)

    def test_login_by_phone_uses_canonical_number(self):
        Customer.objects.create(phone_number="+919876543210", status=Customer.Status.ACTIVE)

        r = self._post("/api/auth/send-otp", {"emailOrPhone": "098765 43210"})

        self.assertEqual(r.status_code, 200, r.content)
        data = r.json()
        self.assertEqual(data["type"], "login")
        self.assertEqual(data["identifier"], "+919876543210")
        self.assertEqual(data["smsStatus"], "database")

    @override_settings(DEBUG=True)
    def test_dev_mode_exposes_code(self):
        r = self._post("/api/auth/send-otp", {"mobile": "9876543210", "firstName": "Ravi", "lastName": "K"})
        self.assertEqual(r.json()["devOtp"], self._code_for("+919876543210"))

    @override_settings(
        EMAIL_BACKEND="django.core.mail.backends.smtp.EmailBackend",
        EMAIL_HOST="",
        EMAIL_HOST_USER="",
        EMAIL_HOST_PASSWORD="",
    )
    def test_email_channel_not_configured_is_503(self):
        r = self._post("/api/auth/send-otp", {"email": "ana@example.com", "firstName": "Ana", "lastName": "S"})
        self.assertEqual(r.status_code, 503)

    # ---- verify + session ----

    def test_full_email_registration_flow(self):
        self._post("/api/auth/send-otp", {"email": "ana@example.com", "firstName": "Ana", "lastName": "Silva"})

        r = self._post("/api/auth/verify-otp", {"email": "ana@example.com", "otp": self._code_for("ana@example.com")})

        self.assertEqual(r.status_code, 200, r.content)
        data = r.json()
        self.assertTrue(data["verified"])
        self.assertEqual(data["user"]["email"], "ana@example.com")
        self.assertEqual(data["user"]["status"], "active")

        cookie = r.cookies["session"]
        self.assertTrue(cookie["httponly"])
        self.assertEqual(cookie["samesite"], "Lax")
        self.assertEqual(int(cookie["max-age"]), 30 * 24 * 3600)
        self.assertTrue(CustomerSession.objects.filter(token=cookie.value).exists())

        me = self.client.get("/api/auth/me")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["user"]["firstName"], "Ana")

        out = self._post("/api/auth/logout", {})
        self.assertEqual(out.status_code, 200)
        self.assertFalse(CustomerSession.objects.exists())
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)

    def test_wrong_code_is_400_and_code_stays_usable(self):
        self._post("/api/auth/send-otp", {"email": "ana@example.com", "firstName": "Ana", "lastName": "Silva"})
        code = self._code_for("ana@example.com")
        wrong = "000000" if code != "000000" else "111111"

        r = self._post("/api/auth/verify-otp", {"email": "ana@example.com", "otp": wrong})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["code"], "mismatch")

        r = self._post("/api/auth/verify-otp", {"email": "ana@example.com", "otp": code})
        self.assertEqual(r.status_code, 200)

    def test_repeated_wrong_codes_lock_the_code_out(self):
        self._post("/api/auth/send-otp", {"email": "ana@example.com", "firstName": "Ana", "lastName": "Silva"})
        code = self._code_for("ana@example.com")
        wrong = "000000" if code != "000000" else "111111"

        statuses = [
            self._post("/api/auth/verify-otp", {"email": "ana@example.com", "otp": wrong}).status_code
            for _ in range(5)
        ]
        self.assertEqual(statuses, [400, 400, 400, 400, 429])

        r = self._post("/api/auth/verify-otp", {"email": "ana@example.com", "otp": code})
        self.assertEqual(r.status_code, 404)
        self.assertFalse(CustomerSession.objects.exists())

    @override_settings(OTP_VERIFY_RATE_LIMIT_PER_MIN=2)
    def test_verify_is_rate_limited_per_ip(self):
        body = {"email": "ana@example.com", "otp": "123456"}
        self.assertEqual(self._post("/api/auth/verify-otp", body).status_code, 404)
        self.assertEqual(self._post("/api/auth/verify-otp", body).status_code, 404)

        r = self._post("/api/auth/verify-otp", body)
        self.assertEqual(r.status_code, 429)
        self.assertTrue(r.json()["rateLimited"])

    def test_malformed_code_is_400(self):
        r = self._post("/api/auth/verify-otp", {"email": "ana@example.com", "otp": "12ab"})
        self.assertEqual(r.status_code, 400)

    def test_verify_without_any_code_issued_is_404(self):
        r = self._post("/api/auth/verify-otp", {"email": "ana@example.com", "otp": "123456"})
        self.assertEqual(r.status_code, 404)

    def test_mobile_verify_issues_seven_day_session(self):
        self._post("/api/auth/send-otp", {"mobile": "+919876543210", "firstName": "Ravi", "lastName": "K"})

        r = self._post("/api/auth/verify-mobile-otp", {"mobile": "+919876543210", "otp": self._code_for("+919876543210")})

        self.assertEqual(r.status_code, 200, r.content)
        self.assertEqual(int(r.cookies["session"]["max-age"]), 7 * 24 * 3600)
        customer = Customer.objects.get(phone_number="+919876543210")
        self.assertTrue(customer.mobile_verified)

    def test_suspended_customer_gets_403(self):
        Customer.objects.create(email="ana@example.com", status=Customer.Status.SUSPENDED)
        self._post("/api/auth/send-otp", {"emailOrPhone": "ana@example.com"})

        r = self._post("/api/auth/verify-otp", {"email": "ana@example.com", "otp": self._code_for("ana@example.com")})

        self.assertEqual(r.status_code, 403)
        self.assertNotIn("session", r.cookies)

    def test_me_without_session_is_401(self):
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)
