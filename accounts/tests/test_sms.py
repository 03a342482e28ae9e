from unittest import mock

import requests
from django.test import SimpleTestCase, override_settings

from accounts.sms import (
    Approved,
    Declined,
    ProviderUnavailable,
    SmsProviderError,
    TwilioVerifyClient,
)


def _resp(status_code, body=None):
    r = mock.Mock(status_code=status_code)
    r.json.return_value = body or {}
    return r


class TwilioVerifyClientTests(SimpleTestCase):
    def setUp(self):
        self.session = mock.Mock()
        self.client = TwilioVerifyClient("AC1", "tok", "VA1", timeout=5, session=self.session)

    def test_start_posts_with_auth_and_timeout(self):
        self.session.post.return_value = _resp(201, {"status": "pending"})

        self.client.start("+919876543210")

        args, kwargs = self.session.post.call_args
        self.assertEqual(args[0], "https://verify.twilio.com/v2/Services/VA1/Verifications")
        self.assertEqual(kwargs["data"], {"To": "+919876543210", "Channel": "sms"})
        self.assertEqual(kwargs["auth"], ("AC1", "tok"))
        self.assertEqual(kwargs["timeout"], 5)

    def test_start_failure_carries_provider_code(self):
        self.session.post.return_value = _resp(400, {"code": 60200})
        with self.assertRaises(SmsProviderError) as ctx:
            self.client.start("+919876543210")
        self.assertEqual(ctx.exception.error_code, 60200)

    def test_start_network_error(self):
        self.session.post.side_effect = requests.Timeout("slow")
        with self.assertRaises(SmsProviderError):
            self.client.start("+919876543210")

    def test_check_outcomes(self):
        self.session.post.return_value = _resp(200, {"status": "approved"})
        self.assertEqual(self.client.check("+919876543210", "123456"), Approved())

        self.session.post.return_value = _resp(200, {"status": "pending"})
        self.assertEqual(self.client.check("+919876543210", "123456"), Declined(reason="pending"))

        self.session.post.return_value = _resp(429, {"code": 60202})
        self.assertEqual(self.client.check("+919876543210", "123456").error_code, 60202)

        self.session.post.return_value = _resp(503)
        self.assertIsInstance(self.client.check("+919876543210", "123456"), ProviderUnavailable)

        self.session.post.side_effect = requests.ConnectionError("down")
        self.assertIsInstance(self.client.check("+919876543210", "123456"), ProviderUnavailable)

    @override_settings(TWILIO_ACCOUNT_SID="AC1", TWILIO_AUTH_TOKEN="", TWILIO_VERIFY_SERVICE_SID="VA1")
    def test_partial_settings_are_not_configured(self):
        self.assertFalse(TwilioVerifyClient.from_settings().configured)
