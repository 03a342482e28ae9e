"""
accounts.otp

One-time passcode lifecycle for email + SMS.

    none --send--> issued --verify(match)--> verified --> consumed (row deleted)
                   issued --(10 min)--> expired (row deleted on next verify)
                   issued --(5 wrong codes)--> locked out (row deleted, 429)

Send is guarded by two gate entries per identifier:
- lock:<id>      held while a send is in flight (auto-expires after 10 s, released in finally)
- cooldown:<id>  60 s between sends

Delivery failures are reported on the result; the stored code is never rolled back.

========= CHANGE LOG =========
2026-10-19 • FIX: wrong codes are counted per record; the code is dropped after
             OTP_MAX_VERIFY_ATTEMPTS misses.                         # CHANGED:
2026-10-12 • ADD: Twilio Verify channel with local-code fallback.  # CHANGED:
           • ADD: complete_verification() materializes the customer from the
             registration details stored alongside the code.      # CHANGED:
2026-10-03 • ADD: OtpLifecycle.send / verify.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Mapping, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from storefront import errors

from .emailing import email_channel_configured, send_otp_email
from .models import Customer, OtpRecord, six_digit_code
from .phone import mask_identifier, normalize_email, to_e164
from .sms import (
    INVALID_PARAMETER,
    MAX_CHECK_ATTEMPTS,
    Approved,
    Declined,
    SmsProviderError,
    TwilioVerifyClient,
)
from .throttle import CacheGate, Gate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OtpSendResult:
    identifier: str
    channel: str
    delivery: str
    expires_at: datetime
    delivered: bool
    code: str
    delivery_error: str = ""
    provider_failed: bool = False

    @property
    def sms_status(self) -> str:
        """sent | fallback | database (SMS channel only)."""
        if self.delivery == OtpRecord.Delivery.SMS_PROVIDER:
            return "sent"
        return "fallback" if self.provider_failed else "database"


class OtpLifecycle:
    def __init__(
        self,
        gate: Optional[Gate] = None,
        sms_client: Optional[TwilioVerifyClient] = None,
        ttl_seconds: Optional[int] = None,
        cooldown_seconds: Optional[int] = None,
        lock_seconds: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ):
        self.gate = gate or CacheGate()
        self.sms = sms_client or TwilioVerifyClient.from_settings()
        self.ttl = ttl_seconds or settings.OTP_TTL_SECONDS
        self.cooldown = cooldown_seconds or settings.OTP_RESEND_COOLDOWN_SECONDS
        self.lock_ttl = lock_seconds or settings.OTP_SEND_LOCK_SECONDS
        self.max_attempts = max_attempts or settings.OTP_MAX_VERIFY_ATTEMPTS

    # ---- send ----

    def send(
        self,
        identifier: str,
        channel: str,
        *,
        temp_user_data: Optional[Dict[str, Any]] = None,
        customer: Optional[Customer] = None,
        first_name: Optional[str] = None,
    ) -> OtpSendResult:
        if channel == OtpRecord.Channel.EMAIL and not email_channel_configured():
            raise errors.Unavailable("Email service is not configured. Please try again later.")

        lock_key = f"lock:{identifier}"
        if not self.gate.check_and_set(lock_key, self.lock_ttl):
            raise errors.RateLimited("A code is already being sent. Please wait.", retry_after=self.lock_ttl)

        try:
            cooldown_key = f"cooldown:{identifier}"
            if not self.gate.check_and_set(cooldown_key, self.cooldown):
                wait = self.gate.remaining(cooldown_key) or self.cooldown
                raise errors.RateLimited(
                    f"Please wait {wait} seconds before requesting another code.",
                    retry_after=wait,
                )
            try:
                return self._issue(identifier, channel, temp_user_data, customer, first_name)
            except Exception:
                # Nothing was issued; let the caller retry right away.
                self.gate.release(cooldown_key)
                raise
        finally:
            self.gate.release(lock_key)

    def _issue(self, identifier, channel, temp_user_data, customer, first_name) -> OtpSendResult:
        code = six_digit_code()
        expires_at = timezone.now() + timedelta(seconds=self.ttl)

        if channel == OtpRecord.Channel.EMAIL:
            delivery = OtpRecord.Delivery.EMAIL
        elif self.sms.configured:
            delivery = OtpRecord.Delivery.SMS_PROVIDER
        else:
            delivery = OtpRecord.Delivery.SMS_LOCAL

        record, _ = OtpRecord.objects.update_or_create(
            identifier=identifier,
            defaults={
                "channel": channel,
                "code": code,
                "expires_at": expires_at,
                "verified": False,
                "failed_attempts": 0,
                "delivery": delivery,
                "temp_user_data": temp_user_data,
                "customer": customer,
            },
        )
        logger.info("OTP issued for %s via %s (%s)", mask_identifier(identifier), channel, delivery)

        delivered = False
        delivery_error = ""
        provider_failed = False

        if delivery == OtpRecord.Delivery.EMAIL:
            try:
                send_otp_email(
                    to_email=identifier,
                    code=code,
                    first_name=first_name,
                    ttl_minutes=max(1, self.ttl // 60),
                )
                delivered = True
            except Exception as e:
                logger.exception("OTP email delivery failed for %s", mask_identifier(identifier))
                delivery_error = str(e)

        elif delivery == OtpRecord.Delivery.SMS_PROVIDER:
            try:
                self.sms.start(identifier)
                delivered = True
            except SmsProviderError as e:
                logger.warning(
                    "SMS provider send failed for %s (code=%s); using local code",
                    mask_identifier(identifier), e.error_code,
                )
                provider_failed = True
                delivery_error = str(e)
                delivery = OtpRecord.Delivery.SMS_LOCAL
                record.delivery = delivery
                record.save(update_fields=["delivery", "updated_at"])

        return OtpSendResult(
            identifier=identifier,
            channel=channel,
            delivery=delivery,
            expires_at=expires_at,
            delivered=delivered,
            code=code,
            delivery_error=delivery_error,
            provider_failed=provider_failed,
        )

    # ---- verify ----

    def verify(self, identifier: str, code: str) -> OtpRecord:
        """
        Check `code` for `identifier` and consume the record on success.

        Returns the (now deleted) record so the caller can read channel and
        temp_user_data. Raises NotFound / Expired / Mismatch, or RateLimited
        once too many wrong codes were tried.
        """
        record = OtpRecord.objects.filter(identifier=identifier).first()
        if record is None:
            raise errors.NotFound("No verification code found. Please request a new one.")

        if record.is_expired():
            record.delete()
            raise errors.Expired()

        if not self._code_accepted(record, code):
            self._record_failure(record)
            raise errors.Mismatch()

        with transaction.atomic():
            record.verified = True
            record.save(update_fields=["verified", "updated_at"])
            deleted, _ = OtpRecord.objects.filter(pk=record.pk).delete()
        if not deleted:
            # A concurrent request consumed it first.
            raise errors.NotFound("Verification code already used. Please request a new one.")

        logger.info("OTP verified for %s", mask_identifier(identifier))
        return record

    def _record_failure(self, record: OtpRecord) -> None:
        """Count a wrong code; the record is dropped once `max_attempts` is reached."""
        rows = OtpRecord.objects.filter(pk=record.pk)
        rows.update(failed_attempts=F("failed_attempts") + 1)
        attempts = rows.values_list("failed_attempts", flat=True).first()
        logger.info(
            "OTP mismatch for %s (attempt %s of %s)",
            mask_identifier(record.identifier),
            attempts,
            self.max_attempts,
        )
        if attempts is None or attempts >= self.max_attempts:
            rows.delete()
            raise errors.RateLimited("Too many incorrect attempts. Please request a new code.")

    def _code_accepted(self, record: OtpRecord, code: str) -> bool:
        if record.delivery == OtpRecord.Delivery.SMS_PROVIDER and self.sms.configured:
            outcome = self.sms.check(record.identifier, code)
            if isinstance(outcome, Approved):
                return True
            if isinstance(outcome, Declined):
                if outcome.error_code == MAX_CHECK_ATTEMPTS:
                    raise errors.RateLimited("Too many verification attempts. Please request a new code.")
                if outcome.error_code == INVALID_PARAMETER:
                    raise errors.ValidationError("Invalid verification code format.")
                return False
            logger.warning("SMS provider unavailable (%s); checking local code", outcome.reason)
        return record.matches(code)


# ---- customer materialization ----

def _lookup(record: OtpRecord) -> Dict[str, str]:
    if record.channel == OtpRecord.Channel.EMAIL:
        return {"email": record.identifier}
    return {"phone_number": record.identifier}


def _mark_verified(customer: Customer, channel: str) -> Customer:
    fields = []
    if channel == OtpRecord.Channel.EMAIL and not customer.email_verified:
        customer.email_verified = True
        fields.append("email_verified")
    if channel == OtpRecord.Channel.SMS and not customer.mobile_verified:
        customer.mobile_verified = True
        fields.append("mobile_verified")
    if customer.status == Customer.Status.PENDING:
        customer.status = Customer.Status.ACTIVE
        fields.append("status")
    if fields:
        customer.save(update_fields=fields + ["updated_at"])
    return customer


def _secondary_email(data: Mapping[str, Any]) -> Optional[str]:
    try:
        email = normalize_email(data.get("email") or "")
    except ValueError:
        return None
    return None if Customer.objects.filter(email=email).exists() else email


def _secondary_phone(data: Mapping[str, Any]) -> Optional[str]:
    raw = data.get("mobile") or data.get("phoneNumber") or ""
    if not raw:
        return None
    try:
        phone = to_e164(raw)
    except ValueError:
        return None
    return None if Customer.objects.filter(phone_number=phone).exists() else phone


def _materialize(record: OtpRecord, data: Mapping[str, Any]) -> Customer:
    is_email = record.channel == OtpRecord.Channel.EMAIL
    founding = bool(data.get("isFoundingMember"))
    since = None
    if founding:
        raw_since = data.get("foundingMemberSince")
        since = parse_datetime(raw_since) if isinstance(raw_since, str) else None
        since = since or timezone.now()

    fields = {
        "first_name": (data.get("firstName") or "").strip()[:80],
        "last_name": (data.get("lastName") or "").strip()[:80],
        "email": record.identifier if is_email else _secondary_email(data),
        "phone_number": None if is_email else record.identifier,
        "status": Customer.Status.PENDING,
        "is_founding_member": founding,
        "founding_member_plan": (data.get("foundingMemberPlan") or "")[:64] if founding else "",
        "founding_member_since": since,
    }
    if is_email:
        fields["phone_number"] = _secondary_phone(data)

    try:
        with transaction.atomic():
            customer = Customer.objects.create(**fields)
        logger.info("Customer %s registered via %s", customer.pk, record.channel)
    except IntegrityError:
        customer = Customer.objects.filter(**_lookup(record)).first()
        if customer is None:
            raise errors.Conflict("An account with these details already exists.")
        logger.info("Customer %s already existed; activating", customer.pk)

    return customer


def complete_verification(record: OtpRecord, registration_data: Optional[Mapping[str, Any]] = None) -> Customer:
    """
    Resolve the customer behind a verified code, creating + activating a new
    one from the stored registration details when needed.
    """
    customer = Customer.objects.filter(**_lookup(record)).first()

    if customer is None:
        data = record.temp_user_data or registration_data
        if not data:
            raise errors.ValidationError("Registration data not found. Please register again.")
        customer = _materialize(record, data)

    if customer.status == Customer.Status.SUSPENDED:
        raise errors.Forbidden("Your account has been suspended. Please contact support.")

    _mark_verified(customer, record.channel)

    if customer.status != Customer.Status.ACTIVE:
        raise errors.Forbidden("Your account is not active.")
    return customer
