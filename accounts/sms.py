"""
accounts.sms

Twilio Verify client (REST over `requests`, explicit timeout).

start(to)       -> sends a provider-generated code, raises SmsProviderError on failure
check(to, code) -> Approved | Declined | ProviderUnavailable

ENV/SETTINGS
- TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_VERIFY_SERVICE_SID
- TWILIO_TIMEOUT (seconds, default 15)

When the three keys are not all set the client reports `configured = False` and
callers fall back to locally generated codes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

VERIFY_BASE_URL = "https://verify.twilio.com/v2"

# Twilio Verify error codes surfaced to callers.
MAX_CHECK_ATTEMPTS = 60202
INVALID_PARAMETER = 60200


@dataclass(frozen=True)
class Approved:
    pass


@dataclass(frozen=True)
class Declined:
    reason: str = ""
    error_code: Optional[int] = None


@dataclass(frozen=True)
class ProviderUnavailable:
    reason: str = ""


VerifyOutcome = Union[Approved, Declined, ProviderUnavailable]


class SmsProviderError(Exception):
    def __init__(self, message: str, error_code: Optional[int] = None):
        super().__init__(message)
        self.error_code = error_code


def _error_code(resp: requests.Response) -> Optional[int]:
    try:
        code = resp.json().get("code")
        return int(code) if code is not None else None
    except (ValueError, TypeError, AttributeError):
        return None


class TwilioVerifyClient:
    def __init__(self, account_sid: str, auth_token: str, service_sid: str, timeout: int = 15,
                 session: Optional[requests.Session] = None):
        self.account_sid = account_sid or ""
        self.auth_token = auth_token or ""
        self.service_sid = service_sid or ""
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls) -> "TwilioVerifyClient":
        return cls(
            settings.TWILIO_ACCOUNT_SID,
            settings.TWILIO_AUTH_TOKEN,
            settings.TWILIO_VERIFY_SERVICE_SID,
            timeout=getattr(settings, "TWILIO_TIMEOUT", 15),
        )

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.service_sid)

    def _post(self, path: str, data: dict) -> requests.Response:
        url = f"{VERIFY_BASE_URL}/Services/{self.service_sid}/{path}"
        return self.session.post(
            url,
            data=data,
            auth=(self.account_sid, self.auth_token),
            timeout=self.timeout,
        )

    def start(self, to: str) -> None:
        try:
            resp = self._post("Verifications", {"To": to, "Channel": "sms"})
        except requests.RequestException as e:
            raise SmsProviderError(f"SMS provider unreachable: {e}") from e

        if resp.status_code not in (200, 201):
            code = _error_code(resp)
            raise SmsProviderError(f"SMS provider rejected send (HTTP {resp.status_code})", error_code=code)

        logger.info("Twilio verification started status=%s", resp.json().get("status"))

    def check(self, to: str, code: str) -> VerifyOutcome:
        try:
            resp = self._post("VerificationCheck", {"To": to, "Code": code})
        except requests.RequestException as e:
            logger.warning("Twilio verification check unreachable: %s", e)
            return ProviderUnavailable(str(e))

        if resp.status_code >= 500:
            return ProviderUnavailable(f"HTTP {resp.status_code}")

        if resp.status_code != 200:
            return Declined(reason=f"HTTP {resp.status_code}", error_code=_error_code(resp))

        try:
            status = (resp.json().get("status") or "").lower()
        except ValueError:
            return ProviderUnavailable("invalid JSON from provider")

        if status == "approved":
            return Approved()
        return Declined(reason=status or "not approved")
